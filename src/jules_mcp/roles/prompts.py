"""Role templates prepended to every worker prompt."""

from __future__ import annotations

import logging
from enum import Enum

logger = logging.getLogger(__name__)

PARENT_PLACEHOLDER = "{parent_id}"


class WorkerRole(str, Enum):
    MAESTRO = "MAESTRO"
    CREW = "CREW"
    FREELANCER = "FREELANCER"
    EVALUATOR = "EVALUATOR"


ROLE_PROMPTS: dict[WorkerRole, str] = {
    WorkerRole.MAESTRO: """
[SYSTEM: ROLE INSTRUCTIONS]
ROLE: MAESTRO
You are a MAESTRO.
Your goal is to plan, prioritize, and manage the execution of a complex task.

ORCHESTRATION PROTOCOL:
1. Analyze Dependencies: identify independent vs. dependent subtasks.
2. Group & Sequence: create a staged execution plan.
3. Branching Strategy: maintain integration branches and assign Crew branches.
4. Execution Loop: create Crew workers, wait for them, verify results, merge.

You must interface with the human user for major decisions.
""",
    WorkerRole.CREW: """
[SYSTEM: ROLE INSTRUCTIONS]
ROLE: CREW
You are a CREW member.
You report to a Maestro (Session ID: {parent_id}).
Your goal is to execute the specific task assigned to you.
You must report your progress and any blockers to the Maestro.
""",
    WorkerRole.EVALUATOR: """
[SYSTEM: ROLE INSTRUCTIONS]
ROLE: EVALUATOR
You are an EVALUATOR.
Your goal is to analyze the task and estimate the effort, complexity, and approach required.
Do not implement the solution yet. Provide a detailed estimation and risk assessment.
""",
    WorkerRole.FREELANCER: """
[SYSTEM: ROLE INSTRUCTIONS]
ROLE: FREELANCER
You are a generic worker (Freelancer).
Execute the task as described.
""",
}


def coerce_role(value: str | WorkerRole | None) -> WorkerRole:
    """Map a caller-supplied role onto a known role, falling back to FREELANCER."""

    if isinstance(value, WorkerRole):
        return value
    if isinstance(value, str):
        try:
            return WorkerRole(value.strip().upper())
        except ValueError:
            pass
    logger.debug("Unrecognized worker role, using FREELANCER", extra={"role": value})
    return WorkerRole.FREELANCER


def role_prefix(role: WorkerRole, parent_id: str | None = None) -> str:
    template = ROLE_PROMPTS[role]
    if role is WorkerRole.CREW:
        if parent_id:
            return template.replace(PARENT_PLACEHOLDER, parent_id)
        # Left unfilled; callers decide whether a parentless Crew is acceptable.
        logger.warning("Composing CREW prompt without a parent session id")
    return template


def compose_prompt(role: str | WorkerRole | None, task: str, parent_id: str | None = None) -> str:
    """Return the full outbound prompt for a worker."""

    prefix = role_prefix(coerce_role(role), parent_id)
    return f"{prefix}\n\n[TASK DESCRIPTION]\n{task}"


__all__ = [
    "PARENT_PLACEHOLDER",
    "ROLE_PROMPTS",
    "WorkerRole",
    "coerce_role",
    "compose_prompt",
    "role_prefix",
]
