"""
Raw HTTP/1.x response parsing.

The transport hands back the bytes it received: one or more status+header
framings followed by the body. Only the last framing describes the response
actually returned; earlier ones come from redirects the transport followed
on its own or from interim ``100 Continue`` responses.
"""

import logging
from typing import List, Optional
from urllib.parse import unquote

from .exceptions import MalformedResponseError
from .models import DefaultMessageFactory, MessageFactory, Response

logger = logging.getLogger(__name__)

HEADER_ENCODING = 'iso-8859-1'


def last_header_block(raw_headers: str) -> str:
    """Return the last non-empty framing of a header block."""
    blocks = raw_headers.split("\r\n\r\n")
    last = blocks.pop().strip()
    while blocks and last == '':
        last = blocks.pop().strip()
    return last


def add_header(response: Response, name: str, value: str) -> Response:
    """Append a header value, creating the header when it does not exist yet."""
    if response.has_header(name):
        return response.with_added_header(name, value)
    return response.with_header(name, value)


def apply_status_line(response: Response, line: str) -> Response:
    parts = line.split(' ', 2)
    code = parts[1] if len(parts) > 1 else ''
    if not (code.isascii() and code.isdigit() and len(code) == 3 and 100 <= int(code) < 600):
        raise MalformedResponseError(f"Malformed status line: {line!r}", line=line)
    version = parts[0].split('/', 1)[1] if '/' in parts[0] else ''
    reason = parts[2].strip() if len(parts) > 2 else ''
    return response.with_status(int(code), reason).with_protocol_version(version)


def split_header_line(line: str):
    name, colon, value = line.partition(':')
    if not colon:
        raise MalformedResponseError(f"Malformed header line: {line!r}", line=line)
    name = unquote(name.strip())
    if not name:
        raise MalformedResponseError(f"Empty header name: {line!r}", line=line)
    return name, unquote(value.strip())


def parse_response(raw: bytes, header_size: int,
                   factory: Optional[MessageFactory] = None) -> Response:
    """Build a Response from raw transport output.

    Args:
        raw: status line(s), headers and body exactly as received
        header_size: offset of the first body byte in ``raw``
        factory: creates the response and body stream

    Raises:
        MalformedResponseError: if the status line or a header line cannot be read
    """
    factory = factory or DefaultMessageFactory()
    if header_size < 0 or header_size > len(raw):
        raise MalformedResponseError(
            f"Header size {header_size} outside of response length {len(raw)}"
        )

    response = factory.create_response()
    header_lines: List[str] = last_header_block(raw[:header_size].decode(HEADER_ENCODING)).split("\r\n")

    seen_status = False
    for line in header_lines:
        line = line.strip()
        if line == '':
            continue
        # Status line
        if line.lower().startswith('http/'):
            response = apply_status_line(response, line)
            seen_status = True
            continue
        name, value = split_header_line(line)
        response = add_header(response, name, value)

    if not seen_status:
        raise MalformedResponseError("Response has no status line")

    body = raw[header_size:]
    logger.debug(f"Parsed response: {response.status_code} with {len(response.headers)} headers, {len(body)} body bytes")
    return response.with_body(factory.create_stream_from_string(body))
