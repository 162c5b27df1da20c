"""
Browser Authentication Layer.

This package signs in through an automated browser and captures the
resulting session cookies.
"""

from .authenticator import (
    Credentials,
    LoginSelectors,
    LoginTimeouts,
    SessionAuthenticator,
    is_same_resource,
)
from .browser import BrowserDriver, DialogEvent, PlaywrightDriver
from .flow import LoginFlow, LoginFlowState

__all__ = [
    "BrowserDriver",
    "Credentials",
    "DialogEvent",
    "LoginFlow",
    "LoginFlowState",
    "LoginSelectors",
    "LoginTimeouts",
    "PlaywrightDriver",
    "SessionAuthenticator",
    "is_same_resource",
]
