"""HTTPConnect - A Python HTTP client with redirect following and cookie propagation."""

# Import key classes for easier access
from .client import HTTPClient, AsyncHTTPClient, Session
from .base import HTTPClientTransport, Transport, TransportInfo
from .config import ClientConfig
from .cookies import build_cookie_header, set_request_cookies
from .exceptions import (
    HTTPClientError,
    TransportError,
    TransportTimeoutError,
    MalformedResponseError,
    RedirectError,
    RedirectLimitExceeded,
    MissingLocationError,
    UnsupportedProtocolVersionError
)
from .middlewares import BaseMiddleware, LoggingMiddleware, BasicAuthMiddleware, UserAgentMiddleware
from .models import DefaultMessageFactory, MessageFactory, Request, Response, URI
from .parser import parse_response
from .redirects import RedirectState, resolve_location
from .utils import basic_auth

__version__ = "0.1.0"
__author__ = "Moises-Tohias"
