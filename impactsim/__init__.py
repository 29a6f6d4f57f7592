"""Asteroid-impact effects, casualty and deflection estimates."""

from .casualties import LocationCategory, PopulationImpact, Severity, casualties_for, compute_casualties
from .errors import ComputationError, ImpactSimError, InvalidInput, UpstreamUnavailable
from .impact_model import ImpactEffects, ImpactModel, ImpactorParameters, compute_impact_effects
from .mitigation import MitigationOutcome, MitigationStrategy, compute_mitigation

__version__ = "1.0.0"

__all__ = [
    "ComputationError",
    "ImpactEffects",
    "ImpactModel",
    "ImpactSimError",
    "ImpactorParameters",
    "InvalidInput",
    "LocationCategory",
    "MitigationOutcome",
    "MitigationStrategy",
    "PopulationImpact",
    "Severity",
    "UpstreamUnavailable",
    "casualties_for",
    "compute_casualties",
    "compute_impact_effects",
    "compute_mitigation",
]
