"""Logging, tracing and metrics for the Campus Bites API."""

from campus_bites.observability.config import configure_logging, setup_observability
from campus_bites.observability.decorators import traced

__all__ = ["setup_observability", "configure_logging", "traced"]
