from __future__ import annotations


class ImpactSimError(Exception):
    """Base class for every error raised by impactsim."""


class InvalidInput(ImpactSimError, ValueError):
    """A required field is missing, non-numeric or outside its physical range."""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class UpstreamUnavailable(ImpactSimError):
    """Population-density or geocoding lookup failed or timed out."""


class ComputationError(ImpactSimError):
    """A formula produced a non-finite value from inputs that passed validation."""
