"""Liveness probing for federated apps."""

from .prober import HealthProber, classify_status

__all__ = ["HealthProber", "classify_status"]
