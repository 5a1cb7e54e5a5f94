"""Service layer for orchestrating event handling."""

from cidgraph.services.submission import SubmissionOutcome, SubmissionService

__all__ = [
    "SubmissionOutcome",
    "SubmissionService",
]
