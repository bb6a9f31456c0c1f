from __future__ import annotations


class PredictaError(Exception):
    """Base class for errors raised by the bookkeeping pipeline."""


class CommandValidationError(PredictaError):
    """A canonical command had the wrong shape or invalid arguments."""

    def __init__(self, command: str, usage: str, reason: str = "") -> None:
        super().__init__(reason or f"Invalid {command} command")
        self.command = command
        self.usage = usage
        self.reason = reason


class AmountParseError(PredictaError):
    def __init__(self, token: str, reason: str = "") -> None:
        super().__init__(reason or f"Invalid amount: {token!r}")
        self.token = token


class UnknownCommandError(PredictaError):
    def __init__(self, text: str) -> None:
        super().__init__(f"Unknown command: {text!r}")
        self.text = text


class StoreError(PredictaError):
    pass


class MessagingError(PredictaError):
    pass


class BusinessNotFoundError(StoreError):
    def __init__(self, business_id: int) -> None:
        super().__init__(f"Business not found: {business_id}")
        self.business_id = business_id
