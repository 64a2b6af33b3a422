from typing import Optional, Union

# Exceptions
class HTTPClientError(Exception):
    """Base exception for all errors raised by the client pipeline."""
    pass

class TransportError(HTTPClientError):
    """Raised when the network call itself fails (DNS, connect, TLS, timeout)."""
    def __init__(self, message: str, code: Optional[Union[int, str]] = None,
                 url: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.url = url

    def __str__(self) -> str:
        if self.code is None:
            return self.message
        return f"Transport error: ({self.code}) {self.message}"

class TransportTimeoutError(TransportError):
    """Raised when the connection or overall timeout is exceeded."""
    pass

class MalformedResponseError(HTTPClientError):
    """Raised when the raw response cannot be parsed."""
    def __init__(self, message: str, line: Optional[str] = None):
        super().__init__(message)
        self.line = line

class RedirectError(HTTPClientError):
    """Base class for redirect-following failures."""
    def __init__(self, message: str, response=None):
        super().__init__(message)
        self.response = response

class RedirectLimitExceeded(RedirectError):
    """Raised when the redirect counter has reached the configured maximum."""
    def __init__(self, message: str = "Redirection limit exceeded", response=None,
                 max_redirects: int = 0):
        super().__init__(message, response)
        self.max_redirects = max_redirects

class MissingLocationError(RedirectError):
    """Raised when a 3xx response carries no Location header."""
    pass

class UnsupportedProtocolVersionError(HTTPClientError):
    """Raised when the requested HTTP version cannot be spoken by the transport."""
    def __init__(self, message: str, version: Optional[str] = None):
        super().__init__(message)
        self.version = version
