"""Review workflow: file state machine, prompts and the apply pipeline."""

from __future__ import annotations

from relaycode.review.pipeline import (
    END_OF_STREAM,
    ApplyOutcome,
    ApplyPipeline,
    ApplyRun,
    CancellationToken,
)
from relaycode.review.session import ALLOWED_TRANSITIONS, BulkOutcome, ReviewSession

__all__ = [
    "ALLOWED_TRANSITIONS",
    "END_OF_STREAM",
    "ApplyOutcome",
    "ApplyPipeline",
    "ApplyRun",
    "BulkOutcome",
    "CancellationToken",
    "ReviewSession",
]
