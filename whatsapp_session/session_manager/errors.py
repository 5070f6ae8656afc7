"""Failure taxonomy for the session lifecycle.

Every error is caught at the lifecycle boundary and turned into a state
transition; none of them reach the HTTP layer.
"""

from __future__ import annotations


class LifecycleError(Exception):
    """Base class for lifecycle failures."""


class LaunchError(LifecycleError):
    """The automation engine failed to start (missing binary, sandbox failure)."""


class NavigationError(LifecycleError):
    """WhatsApp Web was unreachable or did not load in time."""


class DetectionTimeoutError(LifecycleError):
    """Neither the chat UI nor the login screen appeared."""


class LoginRequiredError(LifecycleError):
    """No valid session and interactive login was not possible or not completed."""


class PersistError(LifecycleError):
    """The session could not be written to durable storage."""


class ConnectionLost(LifecycleError):
    """A keep-alive probe failed on a previously ready session."""
