"""Error types raised and returned by the Livy client."""


class LivyClientError(Exception):
    """Base class for all Livy client errors."""


class InvalidArgumentError(LivyClientError, ValueError):
    """Raised synchronously when an argument fails validation, before any I/O."""


class RemoteFailure(LivyClientError):
    """Livy answered with a status code outside the success range.

    The message is the HTTP status message. The raw response body is kept
    on the error as well as being returned alongside it.
    """

    def __init__(self, status_code: int, status_message: str, body: str):
        super().__init__(status_message)
        self.status_code = status_code
        self.status_message = status_message
        self.body = body


class TransportFailure(LivyClientError):
    """Connection-level fault: refused, reset, DNS or mid-stream abort."""

    def __init__(self, error: Exception):
        super().__init__(str(error))
        self.error = error
        self.__cause__ = error
