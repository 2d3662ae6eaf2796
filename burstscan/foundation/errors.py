"""Exceptions for internal-consistency failures.

These are programming errors, not recoverable input conditions.  The batch
driver skips units that fail for ordinary reasons but always re-raises an
InvariantViolation.
"""

from __future__ import annotations


class InvariantViolation(RuntimeError):
    """Base class for broken internal invariants."""


class EmptySiteError(InvariantViolation):
    """Raised when a time-based query is made against a site with no events."""

    def __init__(self, experiment_name: str, site_id: str) -> None:
        self.experiment_name = experiment_name
        self.site_id = site_id
        super().__init__(
            f"Site '{site_id}' in experiment '{experiment_name}' has no events"
        )


class AmbiguousOrderingError(InvariantViolation):
    """Raised when two distinct objects cannot be ordered by their identifying fields."""
