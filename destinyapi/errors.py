"""
Errors handed to request callbacks.

Errors are not raised through the request pipeline; they are passed as the
first argument of a completion callback, `fn(error, data)`.
"""

from typing import Any, Dict, Optional


class APIError(Exception):
    """Base error for anything that went wrong talking to the Bungie API."""

    action = 'retry'

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        action: Optional[str] = None,
        text: str = '',
        body: Any = None,
    ):
        self.message = message
        self.code = code
        self.text = text
        self.body = body
        if action is not None:
            self.action = action
        super().__init__(self.message)


class TransportError(APIError):
    """Non-success HTTP status, timeout or network failure."""


class ParseError(APIError):
    """Response body is not valid JSON."""


class ApplicationError(APIError):
    """The API answered with a non-benign `ErrorCode`."""

    action = 'none'

    def __init__(self, message: str, data: Optional[Dict[str, Any]] = None):
        self.data = data or {}
        super().__init__(
            message or 'Unknown Bungie API error',
            code=self.data.get('ErrorCode'),
            body=self.data,
        )


class ThrottleError(ApplicationError):
    """Throttled more often than the configured retry bound allows."""

    action = 'retry'


class BootstrapError(APIError):
    """Any failure that happened while gathering the account information."""

    action = 'login'

    def __init__(
        self, reason: str, cause: Optional[Exception] = None, action: str = 'login'
    ):
        self.reason = reason
        self.cause = cause
        super().__init__(
            reason,
            code=getattr(cause, 'code', None),
            action=action,
            text=getattr(cause, 'text', ''),
            body=getattr(cause, 'body', None),
        )

    def __str__(self) -> str:
        if self.cause is None:
            return self.reason
        return f'{self.reason}: {self.cause}'
