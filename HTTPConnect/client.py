"""
HTTP client orchestration: transport call, response parsing, redirect following
and cookie propagation.
"""

import asyncio
import logging
import warnings
from typing import Any, List, Optional, Union

from .base import HTTPClientTransport, Transport
from .config import ClientConfig
from .cookies import set_request_cookies
from .middlewares import BaseMiddleware
from .models import DefaultMessageFactory, HeadersInput, MessageFactory, Request, Response, URI
from .parser import parse_response
from .redirects import RedirectState, redirect_request

logger = logging.getLogger(__name__)


class HTTPClient:
    """Blocking HTTP client.

    The instance holds only configuration and collaborators; the redirect
    counter lives in a RedirectState created for each ``send_request`` call,
    so one client can serve several threads.

    Available options (see ClientConfig): connection_timeout, timeout,
    follow_redirects, max_redirects, ssl_verify_peer, decode_content,
    use_cookies, transport_options. Unknown options are ignored.
    """

    def __init__(self, factory: Optional[MessageFactory] = None,
                 transport: Optional[Transport] = None,
                 middleware: Optional[List[BaseMiddleware]] = None,
                 config: Optional[ClientConfig] = None,
                 **options: Any):
        self.factory = factory or DefaultMessageFactory()
        self.transport = transport or HTTPClientTransport()
        self.middleware = middleware or []
        if config is None:
            config = ClientConfig.from_options(options)
        elif options:
            config = config.merged(**options)
        self.config = config
        self._closed = False

    def send_request(self, request: Request) -> Response:
        """Send a request and follow redirects until a final response.

        Raises:
            TransportError: on network failure
            MalformedResponseError: if a response cannot be parsed
            RedirectLimitExceeded: if more than ``max_redirects`` redirects are needed
            MissingLocationError: if a redirect response has no Location
            UnsupportedProtocolVersionError: if the transport cannot speak the requested version
        """
        if self._closed:
            raise RuntimeError("Client is closed")

        # Process request through middleware
        for middleware in self.middleware:
            request = middleware.process_request(request)

        try:
            state = RedirectState(limit=self.config.max_redirects)
            response = self._transmit(request, state)
            response = self.maybe_redirect(request, response, state)
        except Exception as error:
            # Process error through middleware
            for middleware in self.middleware:
                error = middleware.process_error(error, request)
            raise error

        # Process response through middleware
        for middleware in reversed(self.middleware):
            response = middleware.process_response(response)
        return response

    def send(self, request: Request) -> Response:
        """Deprecated alias of send_request."""
        warnings.warn(
            "HTTPClient.send is deprecated. Use HTTPClient.send_request",
            DeprecationWarning,
            stacklevel=2
        )
        return self.send_request(request)

    def request(self, method: str, url: Union[str, URI], headers: HeadersInput = None,
                body: Union[bytes, str] = b'', protocol_version: Optional[str] = '1.1') -> Response:
        """Build a request from plain values and send it."""
        if isinstance(url, str):
            url = self.factory.create_uri(url)
        request = Request(
            method=method,
            uri=url,
            headers=headers,
            body=body,
            protocol_version=protocol_version
        )
        return self.send_request(request)

    def get(self, url: Union[str, URI], headers: HeadersInput = None) -> Response:
        return self.request('GET', url, headers=headers)

    def post(self, url: Union[str, URI], body: Union[bytes, str] = b'',
             headers: HeadersInput = None) -> Response:
        return self.request('POST', url, headers=headers, body=body)

    def maybe_redirect(self, request: Request, response: Response,
                       state: Optional[RedirectState] = None) -> Response:
        """Follow redirects starting from ``response`` and return the final response.

        Non-3xx responses, and every response when following is disabled, are
        returned unchanged.
        """
        if state is None:
            state = RedirectState(limit=self.config.max_redirects)
        while True:
            next_request = redirect_request(request, response, self.config, state, self.factory)
            if next_request is None:
                return response
            request = next_request
            response = self._transmit(request, state)

    def set_request_cookies(self, request: Request, response: Response) -> Request:
        """Attach the cookies ``response`` set to ``request`` (see cookies.build_cookie_header)."""
        return set_request_cookies(request, response, enabled=self.config.use_cookies)

    def _transmit(self, request: Request, state: RedirectState) -> Response:
        """One transport call plus parsing; counts redirects the transport followed."""
        raw, info = self.transport.invoke(request, self.config)
        if info.redirect_count:
            logger.debug(f"Transport followed {info.redirect_count} redirects for {request.uri}")
        state.advance(info.redirect_count)
        return parse_response(raw, info.header_size, self.factory)

    def close(self):
        """Close the client."""
        self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class Session:
    """Sends requests through a client, carrying cookies from each response to the next request.

    Cookies travel only between top-level calls: a Set-Cookie on an
    intermediate redirect response is not sent to the next hop of the same
    call. Only the final response's cookies reach the following request.
    """

    def __init__(self, client: Optional[HTTPClient] = None, **options: Any):
        self.client = client or HTTPClient(**options)
        self.last_response: Optional[Response] = None

    def send_request(self, request: Request) -> Response:
        if self.last_response is not None:
            request = self.client.set_request_cookies(request, self.last_response)
        response = self.client.send_request(request)
        self.last_response = response
        return response

    def reset(self):
        """Forget the previous response and its cookies."""
        self.last_response = None

    def close(self):
        self.reset()
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class AsyncHTTPClient:
    """Asynchronous facade running the blocking pipeline in the loop's default executor."""

    def __init__(self, client: Optional[HTTPClient] = None, **options: Any):
        self._client = client or HTTPClient(**options)

    @property
    def config(self) -> ClientConfig:
        return self._client.config

    async def send_request(self, request: Request) -> Response:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._client.send_request, request)

    async def request(self, method: str, url: Union[str, URI], headers: HeadersInput = None,
                      body: Union[bytes, str] = b'', protocol_version: Optional[str] = '1.1') -> Response:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, lambda: self._client.request(method, url, headers, body, protocol_version)
        )

    async def close(self):
        """Close the client."""
        self._client.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
