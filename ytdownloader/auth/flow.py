"""
State tracking for the scripted browser login.
"""

import logging
from enum import Enum

from ytdownloader.exceptions import LoginFlowError

log = logging.getLogger(__name__)


class LoginFlowState(Enum):
    """Stages of the login. Each stage names the step currently being performed."""

    START = "start"
    EMAIL_ENTERED = "email_entered"
    PASSWORD_ENTERED = "password_entered"
    CONSENT_HANDLED = "consent_handled"
    PASSKEY_BANNER_HANDLED = "passkey_banner_handled"
    HOMEPAGE_CONFIRMED = "homepage_confirmed"
    TARGET_PAGE_CONFIRMED = "target_page_confirmed"
    COOKIES_CAPTURED = "cookies_captured"
    FAILED = "failed"


_SEQUENCE = (
    LoginFlowState.START,
    LoginFlowState.EMAIL_ENTERED,
    LoginFlowState.PASSWORD_ENTERED,
    LoginFlowState.CONSENT_HANDLED,
    LoginFlowState.PASSKEY_BANNER_HANDLED,
    LoginFlowState.HOMEPAGE_CONFIRMED,
    LoginFlowState.TARGET_PAGE_CONFIRMED,
    LoginFlowState.COOKIES_CAPTURED,
)


class LoginFlow:
    """
    Forward-only state machine for one login attempt.

    The only repeat allowed is a single re-navigation to the target page while
    in TARGET_PAGE_CONFIRMED. Every visited state, including that repeat, is
    appended to ``history``.
    """

    MAX_TARGET_RETRIES = 1

    def __init__(self):
        self.state = LoginFlowState.START
        self.history: list[LoginFlowState] = [LoginFlowState.START]
        self.target_retries = 0
        self.failed_stage: LoginFlowState | None = None

    @property
    def succeeded(self) -> bool:
        return self.state is LoginFlowState.COOKIES_CAPTURED

    @property
    def can_retry_target(self) -> bool:
        return (
            self.state is LoginFlowState.TARGET_PAGE_CONFIRMED
            and self.target_retries < self.MAX_TARGET_RETRIES
        )

    def advance(self) -> LoginFlowState:
        """Moves to the next stage and returns it."""
        if self.state is LoginFlowState.FAILED or self.succeeded:
            raise LoginFlowError(f"Cannot advance from terminal state '{self.state.value}'.")
        self.state = _SEQUENCE[_SEQUENCE.index(self.state) + 1]
        self.history.append(self.state)
        return self.state

    def retry_target(self) -> None:
        """Records the one permitted repeat of the target-page navigation."""
        if not self.can_retry_target:
            raise LoginFlowError("The target page navigation may only be retried once.")
        self.target_retries += 1
        self.history.append(LoginFlowState.TARGET_PAGE_CONFIRMED)

    def fail(self) -> LoginFlowState:
        """Enters FAILED and returns the stage that was being attempted."""
        if self.state is LoginFlowState.FAILED:
            return self.failed_stage
        self.failed_stage = self.state
        self.state = LoginFlowState.FAILED
        self.history.append(LoginFlowState.FAILED)
        return self.failed_stage
