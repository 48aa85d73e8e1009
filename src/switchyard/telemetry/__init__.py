"""Telemetry module.

This module provides tracing capabilities.
"""

from .tracer import Tracer, get_tracer

__all__ = ["Tracer", "get_tracer"]
