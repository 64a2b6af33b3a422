import logging
# Configure logging
logger = logging.getLogger(__name__)

from typing import Optional

from .models import Request, Response
from .utils import basic_auth

# Middleware System
class BaseMiddleware:
    """Base class for HTTP middleware. Hooks run once per top-level send."""

    def process_request(self, request: Request) -> Request:
        """Process the request before it's sent."""
        return request

    def process_response(self, response: Response) -> Response:
        """Process the response after it's received."""
        return response

    def process_error(self, error: Exception, request: Request) -> Exception:
        """Process an error that occurred during the request."""
        return error

class LoggingMiddleware(BaseMiddleware):
    """Middleware for logging requests and responses."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def process_request(self, request: Request) -> Request:
        self.logger.debug(f"Request: {request.method} {request.uri}")
        return request

    def process_response(self, response: Response) -> Response:
        self.logger.debug(f"Response: {response.status_code} {response.reason_phrase}")
        return response

    def process_error(self, error: Exception, request: Request) -> Exception:
        self.logger.error(f"Request failed: {request.method} {request.uri} - {error}")
        return error

class BasicAuthMiddleware(BaseMiddleware):
    """Middleware adding Basic authentication to requests that carry none."""

    def __init__(self, username: str, password: str):
        self.username = username
        self.password = password

    def process_request(self, request: Request) -> Request:
        if not request.has_header('Authorization'):
            request = basic_auth(request, self.username, self.password)
        return request

class UserAgentMiddleware(BaseMiddleware):
    """Middleware for adding User-Agent header."""

    def __init__(self, user_agent: str):
        self.user_agent = user_agent

    def process_request(self, request: Request) -> Request:
        if not request.has_header('User-Agent'):
            request = request.with_header('User-Agent', self.user_agent)
        return request
