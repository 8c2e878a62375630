"""Client-side error types for the Appgram portal API.

Every failure of an external collaborator (fetching a survey, submitting a
response) surfaces as an :class:`AppgramError`.  The ``code`` mirrors the
portal's ``{code, message}`` error object: the HTTP status as a string for
HTTP errors, ``"NETWORK_ERROR"`` for transport failures.
"""


class AppgramError(Exception):
    """A portal call failed.  ``message`` is safe to show to end users."""

    def __init__(self, message: str, code: str = "UNKNOWN") -> None:
        super().__init__(message)
        self.message = message
        self.code = code

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class NotFoundError(AppgramError):
    """The requested resource does not exist (HTTP 404)."""

    def __init__(self, message: str = "Resource not found", code: str = "404") -> None:
        super().__init__(message, code)


class NetworkError(AppgramError):
    """The request never got an HTTP response (DNS, connect, timeout...)."""

    def __init__(self, message: str = "Network error", code: str = "NETWORK_ERROR") -> None:
        super().__init__(message, code)


def get_error_message(err: object, default: str) -> str:
    """Best user-facing text for ``err``, or ``default`` when it has none."""
    if isinstance(err, AppgramError):
        return err.message or default
    if isinstance(err, dict):
        msg = err.get("message")
        return msg if isinstance(msg, str) and msg else default
    if isinstance(err, str):
        return err or default
    if isinstance(err, Exception):
        return str(err) or default
    return default
