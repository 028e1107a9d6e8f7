"""Exception types shared across the state layer."""


class KinotekaError(Exception):
    """Base class for all errors raised by kinoteka."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class StoreError(KinotekaError):
    """The remote store rejected a request or could not be reached."""

    def __init__(self, message: str, code: str | None = None, status: int | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.status = status


class GatewayError(KinotekaError):
    """An external HTTP gateway returned an error or could not be reached."""


class InvalidInputError(KinotekaError, ValueError):
    """User input failed validation before any remote call was made."""
