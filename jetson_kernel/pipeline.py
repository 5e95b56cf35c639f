from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Protocol, Sequence

from .context import AcquireContext

logger = logging.getLogger(__name__)


class Step(Protocol):
    """A single step of the acquisition workflow."""

    step_id: str

    def run(self, ctx: AcquireContext) -> None:
        ...


@dataclass(frozen=True)
class PipelineResult:
    ran_steps: List[str]
    skipped_steps: List[str]
    stopped_early: bool


def run_pipeline(*, ctx: AcquireContext, steps: Sequence[Step]) -> PipelineResult:
    """Run steps in order; any exception propagates and ends the run.

    A step that sets ``ctx.done`` finishes the run successfully; the
    remaining steps are reported as skipped.
    """

    ran: List[str] = []
    skipped: List[str] = []

    for step in steps:
        if ctx.done:
            skipped.append(step.step_id)
            continue
        logger.debug("Running step %s", step.step_id)
        step.run(ctx)
        ran.append(step.step_id)

    if skipped:
        logger.debug("Skipped steps: %s", ", ".join(skipped))
    return PipelineResult(ran_steps=ran, skipped_steps=skipped, stopped_early=bool(skipped))
