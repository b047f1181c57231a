"""
Exception hierarchy for the AgriVision dashboard

- AuthError: sign-in / sign-up / sign-out / session problems (shown in forms)
- FetchError: prediction queries (logged, stale data stays visible)
- SubscriptionError: change feed connection (logged only)
"""
from typing import Optional


class AgriAppError(Exception):
    """Base error for the application"""

    def __init__(self, message: str, *, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        return self.message


class AuthError(AgriAppError):
    """Invalid credentials, network failure or expired token"""

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        code: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message, cause=cause)
        self.status = status
        self.code = code


class FetchError(AgriAppError):
    """Network/timeout or malformed response while reading predictions"""


class SubscriptionError(AgriAppError):
    """Change feed connection dropped or could not be opened"""
