"""Exceptions raised by the plan generator."""
from __future__ import annotations


class InferenceError(RuntimeError):
    """Raised when the inference service is unreachable or returns an error."""


class MalformedPlanError(ValueError):
    """Raised internally when a response holds no parseable JSON object."""
