import logging
import posixpath
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

from .config import ClientConfig
from .exceptions import MalformedResponseError, MissingLocationError, RedirectLimitExceeded
from .models import DefaultMessageFactory, MessageFactory, Request, Response, URI

logger = logging.getLogger(__name__)


@dataclass
class RedirectState:
    """Redirects followed during one top-level send."""
    limit: int
    count: int = 0

    @property
    def exhausted(self) -> bool:
        return self.count >= self.limit

    def advance(self, followed: int = 1) -> None:
        self.count += followed


def _merge_path(base_path: str, path: str) -> str:
    """Resolve a relative Location path against the original request path."""
    if path.startswith('/'):
        merged = path
    else:
        merged = base_path[:base_path.rfind('/') + 1] + path if '/' in base_path else '/' + path
    trailing = merged.endswith(('/', '/.', '/..'))
    normalized = posixpath.normpath(merged)
    # normpath keeps a leading '//' and drops trailing slashes
    if normalized.startswith('//'):
        normalized = '/' + normalized.lstrip('/')
    if trailing and normalized != '/':
        normalized += '/'
    return normalized


def resolve_location(original: URI, location: str,
                     factory: Optional[MessageFactory] = None) -> URI:
    """Merge the components present in ``location`` over ``original``.

    Scheme, user info, host and port fall back to the original URI one by one.
    The query is taken from the Location as a whole whenever it carries a
    path or a query; the fragment falls back to the original when absent.
    """
    factory = factory or DefaultMessageFactory()
    parts = urlsplit(location.strip())
    uri = factory.create_uri()

    uri = uri.with_scheme(parts.scheme or original.scheme)

    if parts.username:
        user, password = parts.username, parts.password
    elif ':' in original.user_info:
        user, password = original.user_info.split(':', 1)
    else:
        user, password = original.user_info, None
    if user:
        uri = uri.with_user_info(user, password)

    uri = uri.with_host(parts.hostname or original.host)

    try:
        location_port = parts.port
    except ValueError:
        raise MalformedResponseError(f"Invalid port in Location: {location!r}", line=location)
    port = location_port if location_port is not None else original.port
    if port:
        uri = uri.with_port(port)

    has_path = parts.path != ''
    has_query = '?' in location.split('#', 1)[0]
    has_fragment = '#' in location

    path = _merge_path(original.path, parts.path) if has_path else original.path
    query = parts.query if (has_path or has_query) else original.query
    fragment = parts.fragment if has_fragment else original.fragment

    return uri.with_path(path).with_query(query).with_fragment(fragment)


def redirect_request(request: Request, response: Response, config: ClientConfig,
                     state: RedirectState,
                     factory: Optional[MessageFactory] = None) -> Optional[Request]:
    """Return the request for the next hop, or None when ``response`` is final.

    Raises:
        RedirectLimitExceeded: if ``state`` already holds ``max_redirects`` redirects
        MissingLocationError: if a 3xx response has no Location header
    """
    status_code = response.status_code
    if status_code < 300 or status_code >= 400 or not config.follow_redirects:
        return None

    if state.exhausted:
        raise RedirectLimitExceeded(
            f"Redirection limit exceeded: {state.count} of {state.limit} redirects followed",
            response=response,
            max_redirects=state.limit,
        )

    location = response.get_header('location')
    if not location:
        raise MissingLocationError(
            f"Redirect response {status_code} has no Location header",
            response=response,
        )

    state.advance()
    uri = resolve_location(request.uri, location[0], factory)
    logger.debug(f"Redirect {state.count}/{state.limit}: {status_code} {request.uri} -> {uri}")
    # Method and body are preserved on every redirect status, including 303.
    return request.with_uri(uri)
