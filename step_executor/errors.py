"""Exceptions raised while executing action steps."""
from __future__ import annotations


class StepError(Exception):
    """Base class for failures confined to a single step."""


class UnknownActionError(StepError):
    """Raised when a step names an action outside the supported vocabulary."""


class InvalidStepError(StepError):
    """Raised when a step lacks a field its action requires."""


class ElementTimeoutError(StepError):
    """Raised when waiting for an element exceeds its timeout."""


class NavigationTimeoutError(StepError):
    """Raised when a page load exceeds its timeout."""


class VerificationError(StepError):
    """Raised when a verify/assert step's expected condition does not hold."""


class SessionError(RuntimeError):
    """Raised when the browser session cannot be opened or closed."""
