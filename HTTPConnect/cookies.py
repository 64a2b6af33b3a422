"""
Cookie propagation from one response to the next request.

The filter is stateless: it looks only at the ``Set-Cookie`` lines of the
prior response and the URI of the request about to be sent.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Optional

from .models import Request, Response, URI
from .utils import parse_http_date

logger = logging.getLogger(__name__)


def _cookie_accepted(name: str, attributes, uri: URI, now: datetime) -> bool:
    """Evaluate the attributes of one cookie in order; the first failing test rejects it."""
    for item in attributes:
        item = item.strip()
        if not item:
            continue
        param, _, item_value = item.partition('=')
        param = param.strip().lower()
        item_value = item_value.strip()

        if param == 'expires':
            expires = parse_http_date(item_value)
            if expires is None:
                logger.debug(f"Cookie '{name}': ignoring unparsable expires {item_value!r}")
            elif expires < now:
                logger.debug(f"Cookie '{name}' expired at {expires.isoformat()}")
                return False

        elif param == 'max-age':
            try:
                max_age = int(item_value)
            except ValueError:
                logger.debug(f"Cookie '{name}': ignoring invalid max-age {item_value!r}")
                continue
            if max_age <= 0:
                logger.debug(f"Cookie '{name}' expired by max-age={max_age}")
                return False

        elif param == 'domain':
            # Leading-dot domains match by substring containment, not strict suffix.
            if item_value != uri.host and not (item_value.startswith('.') and item_value in uri.host):
                logger.debug(f"Cookie '{name}' domain {item_value!r} does not match {uri.host!r}")
                return False

        elif param == 'path':
            if item_value != '/' and item_value != uri.path:
                logger.debug(f"Cookie '{name}' path {item_value!r} does not match {uri.path!r}")
                return False

        elif param == 'secure':
            if uri.scheme != 'https':
                logger.debug(f"Cookie '{name}' is secure, target scheme is {uri.scheme!r}")
                return False

    return True


def build_cookie_header(prior_response: Response, target_request: Request,
                        enabled: bool = True, now: Optional[datetime] = None) -> Optional[str]:
    """Compute the Cookie header for ``target_request`` from ``prior_response``.

    Returns None when cookies are disabled, when the response sets no cookie,
    or when every cookie was filtered out.
    """
    if not enabled:
        return None
    set_cookies = prior_response.get_header('set-cookie')
    if not set_cookies:
        return None

    now = now or datetime.now(timezone.utc)
    uri = target_request.uri
    cookie_headers: Dict[str, str] = {}

    for cookie in set_cookies:
        key_and_value, *attributes = cookie.split(';')
        key, equals, value = key_and_value.partition('=')
        key = key.strip()
        value = value.strip()
        if not equals or not key:
            logger.debug(f"Skipping Set-Cookie without name=value pair: {cookie!r}")
            continue
        # A later cookie with the same name replaces the earlier one, even if it is rejected.
        cookie_headers.pop(key, None)
        if _cookie_accepted(key, attributes, uri, now):
            cookie_headers[key] = f"{key}={value}"

    if not cookie_headers:
        return None
    return '; '.join(cookie_headers.values())


def set_request_cookies(request: Request, response: Response, enabled: bool = True,
                        now: Optional[datetime] = None) -> Request:
    """Return ``request`` carrying the cookies ``response`` set for it."""
    header = build_cookie_header(response, request, enabled=enabled, now=now)
    if header is None:
        return request
    return request.with_header('Cookie', header)
