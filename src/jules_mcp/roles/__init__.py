"""Worker roles and prompt composition exports."""

from .prompts import ROLE_PROMPTS, WorkerRole, coerce_role, compose_prompt, role_prefix

__all__ = [
    "ROLE_PROMPTS",
    "WorkerRole",
    "coerce_role",
    "compose_prompt",
    "role_prefix",
]
