"""Apply pipeline step models and update events.

The pipeline worker emits ``ApplyUpdate`` events; the consumer folds them
into a list of mutable ``ApplyStep`` records with :func:`apply_update`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TypeAlias

from relaycode.constants import APPLY_STEP_ORDER, APPLY_STEP_TITLES, STEP_MEMORY
from relaycode.logging import get_logger
from relaycode.models.enums import PatchStatus, StepStatus

__all__ = [
    "ApplySubstep",
    "ApplyStep",
    "UpdateStep",
    "AddSubstep",
    "UpdateSubstep",
    "ApplyUpdate",
    "initial_apply_steps",
    "apply_update",
    "find_step",
    "active_step",
    "derive_patch_status",
]

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ApplySubstep:
    """A leaf unit of work nested under a step (one file write, one script).

    Attributes:
        id: Substep id, unique within its parent step.
        title: Display line (e.g. "[✓] write: src/a.ts (strategy: replace)").
        status: Substep status.
        file_id: File this substep attributes its outcome to, if any.
        error: Failure message when the substep failed.
    """

    id: str
    title: str
    status: StepStatus
    file_id: str | None = None
    error: str | None = None


@dataclass(slots=True)
class ApplyStep:
    """One stage of the apply pipeline.

    Attributes:
        id: Stage id (snapshot, memory, post-command, linter).
        title: Display title.
        status: Stage status.
        substeps: Ordered substeps added while the stage ran.
        duration: Seconds the stage took, once terminal.
        details: Explanation attached to skipped or failed stages.
    """

    id: str
    title: str
    status: StepStatus = StepStatus.PENDING
    substeps: list[ApplySubstep] = field(default_factory=list)
    duration: float | None = None
    details: str | None = None


@dataclass(frozen=True, slots=True)
class UpdateStep:
    """Change the status of a step."""

    step_id: str
    status: StepStatus
    duration: float | None = None
    details: str | None = None


@dataclass(frozen=True, slots=True)
class AddSubstep:
    """Append a substep to a step."""

    parent_id: str
    substep: ApplySubstep


@dataclass(frozen=True, slots=True)
class UpdateSubstep:
    """Change the status of an existing substep, optionally its title and error."""

    parent_id: str
    substep_id: str
    status: StepStatus
    title: str | None = None
    error: str | None = None


# Union of everything the pipeline worker can emit
ApplyUpdate: TypeAlias = UpdateStep | AddSubstep | UpdateSubstep


def initial_apply_steps() -> list[ApplyStep]:
    """Build a fresh, all-pending step list in pipeline order."""
    return [
        ApplyStep(id=step_id, title=APPLY_STEP_TITLES[step_id])
        for step_id in APPLY_STEP_ORDER
    ]


def find_step(steps: list[ApplyStep], step_id: str) -> ApplyStep | None:
    for step in steps:
        if step.id == step_id:
            return step
    return None


def active_step(steps: list[ApplyStep]) -> ApplyStep | None:
    for step in steps:
        if step.status is StepStatus.ACTIVE:
            return step
    return None


def apply_update(steps: list[ApplyStep], update: ApplyUpdate) -> bool:
    """Fold one update event into the step list.

    A step may only become done or failed after it was active. Updates that
    break this rule, or that address unknown steps, are logged and dropped.

    Args:
        steps: Step list to mutate in place.
        update: Event emitted by the pipeline worker.

    Returns:
        True if the update was applied.
    """
    if isinstance(update, UpdateStep):
        step = find_step(steps, update.step_id)
        if step is None:
            logger.warning("apply_update_unknown_step", step_id=update.step_id)
            return False
        if update.status in (StepStatus.DONE, StepStatus.FAILED) and (
            step.status is not StepStatus.ACTIVE
        ):
            logger.warning(
                "apply_update_out_of_order",
                step_id=step.id,
                from_status=step.status.value,
                to_status=update.status.value,
            )
            return False
        step.status = update.status
        if update.duration is not None:
            step.duration = update.duration
        if update.details is not None:
            step.details = update.details
        return True

    if isinstance(update, AddSubstep):
        step = find_step(steps, update.parent_id)
        if step is None:
            logger.warning("apply_update_unknown_step", step_id=update.parent_id)
            return False
        step.substeps.append(update.substep)
        return True

    step = find_step(steps, update.parent_id)
    if step is None:
        logger.warning("apply_update_unknown_step", step_id=update.parent_id)
        return False
    for index, substep in enumerate(step.substeps):
        if substep.id == update.substep_id:
            step.substeps[index] = ApplySubstep(
                id=substep.id,
                title=update.title if update.title is not None else substep.title,
                status=update.status,
                file_id=substep.file_id,
                error=update.error if update.error is not None else substep.error,
            )
            return True
    logger.warning(
        "apply_update_unknown_substep",
        step_id=update.parent_id,
        substep_id=update.substep_id,
    )
    return False


def derive_patch_status(steps: list[ApplyStep], file_ids: list[str]) -> PatchStatus:
    """Compute the patch status from the memory step's substeps.

    Args:
        steps: Current step list.
        file_ids: Every file in the transaction.

    Returns:
        SUCCESS when every file has a done memory substep and none failed.
    """
    memory = find_step(steps, STEP_MEMORY)
    substeps = memory.substeps if memory is not None else []
    if any(s.status is StepStatus.FAILED for s in substeps):
        return PatchStatus.PARTIAL_FAILURE
    written = {s.file_id for s in substeps if s.status is StepStatus.DONE}
    if any(file_id not in written for file_id in file_ids):
        return PatchStatus.PARTIAL_FAILURE
    return PatchStatus.SUCCESS
