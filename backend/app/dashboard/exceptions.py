"""Dashboard exceptions with structured context.

Usage:
    from app.dashboard.exceptions import PredictionError

    raise PredictionError("Scoring service returned 503", context={"status": 503})
"""

from __future__ import annotations


class DashboardError(Exception):
    """Base exception for all dashboard errors.

    Args:
        message: Human-readable error description.
        context: Optional dict of structured data for logging/debugging.
    """

    def __init__(self, message: str, context: dict | None = None) -> None:
        self.context = context or {}
        super().__init__(message)

    def __str__(self) -> str:
        base = super().__str__()
        if self.context:
            return f"{base} | context={self.context}"
        return base


class LoadError(DashboardError):
    """Building or loading the dashboard snapshot failed."""


class PredictionError(DashboardError):
    """An inference cycle failed (local simulation or remote scoring)."""


class DeliveryError(DashboardError):
    """Sending a message to one subscriber failed. Never leaves the broadcaster."""
