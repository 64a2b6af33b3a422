import io
from dataclasses import dataclass, field, replace
from http.client import responses
from typing import (BinaryIO, Dict, Iterable, Iterator, List, Mapping, Optional,
                    Protocol, Tuple, Union, runtime_checkable)
from urllib.parse import urlsplit

HTTP_METHODS = ('GET', 'HEAD', 'POST', 'PUT', 'DELETE', 'PATCH', 'OPTIONS', 'CONNECT', 'TRACE')
PROTOCOL_VERSIONS = ('1.0', '1.1', '2.0')
DEFAULT_PORTS = {'http': 80, 'https': 443}

HeaderValue = Union[str, Iterable[str]]
HeaderList = Tuple[Tuple[str, Tuple[str, ...]], ...]
HeadersInput = Union[None, Mapping[str, HeaderValue], Iterable[Tuple[str, HeaderValue]]]


def _header_values(value: HeaderValue) -> Tuple[str, ...]:
    if isinstance(value, (str, bytes)):
        value = [value]
    values = []
    for item in value:
        if isinstance(item, bytes):
            item = item.decode('latin-1')
        values.append(str(item))
    return tuple(values)


def normalize_headers(headers: HeadersInput) -> HeaderList:
    """Turn a mapping or a list of pairs into the immutable header layout.

    Names that differ only by case are merged under the first spelling seen.
    """
    if not headers:
        return ()
    pairs = headers.items() if isinstance(headers, Mapping) else headers
    merged: Dict[str, Tuple[str, List[str]]] = {}
    for name, value in pairs:
        key = name.lower()
        if key not in merged:
            merged[key] = (name, [])
        merged[key][1].extend(_header_values(value))
    return tuple((name, tuple(values)) for name, values in merged.values())


# URI
@dataclass(frozen=True)
class URI:
    """Immutable URI value. Every ``with_*`` call returns a new instance."""
    scheme: str = ''
    user_info: str = ''
    host: str = ''
    port: Optional[int] = None
    path: str = ''
    query: str = ''
    fragment: str = ''

    @classmethod
    def parse(cls, uri: str = '') -> 'URI':
        parts = urlsplit(uri)
        user_info = parts.netloc.rpartition('@')[0] if '@' in parts.netloc else ''
        return cls(
            scheme=parts.scheme.lower(),
            user_info=user_info,
            host=parts.hostname or '',
            port=parts.port,
            path=parts.path,
            query=parts.query,
            fragment=parts.fragment,
        )

    @property
    def authority(self) -> str:
        if not self.host:
            return ''
        host = f"[{self.host}]" if ':' in self.host else self.host
        authority = f"{self.user_info}@{host}" if self.user_info else host
        if self.port is not None and self.port != DEFAULT_PORTS.get(self.scheme):
            authority += f":{self.port}"
        return authority

    @property
    def request_target(self) -> str:
        """Path plus query as sent on the request line."""
        target = self.path or '/'
        if self.query:
            target += '?' + self.query
        return target

    def with_scheme(self, scheme: str) -> 'URI':
        return replace(self, scheme=scheme.lower())

    def with_user_info(self, user: str, password: Optional[str] = None) -> 'URI':
        user_info = user or ''
        if user_info and password:
            user_info += ':' + password
        return replace(self, user_info=user_info)

    def with_host(self, host: str) -> 'URI':
        return replace(self, host=host.lower())

    def with_port(self, port: Optional[int]) -> 'URI':
        if port is not None and not 0 < int(port) < 65536:
            raise ValueError(f"Invalid port: {port}")
        return replace(self, port=None if port is None else int(port))

    def with_path(self, path: str) -> 'URI':
        return replace(self, path=path)

    def with_query(self, query: str) -> 'URI':
        return replace(self, query=query)

    def with_fragment(self, fragment: str) -> 'URI':
        return replace(self, fragment=fragment)

    def __str__(self) -> str:
        uri = f"{self.scheme}:" if self.scheme else ''
        authority = self.authority
        path = self.path
        if authority:
            uri += '//' + authority
            if path and not path.startswith('/'):
                path = '/' + path
        uri += path
        if self.query:
            uri += '?' + self.query
        if self.fragment:
            uri += '#' + self.fragment
        return uri


# Request/Response Models
class HeadersMixin:
    """Case-insensitive, multi-valued header access shared by requests and responses."""

    headers: HeaderList

    def has_header(self, name: str) -> bool:
        return bool(self.get_header(name))

    def get_header(self, name: str) -> List[str]:
        key = name.lower()
        for header_name, values in self.headers:
            if header_name.lower() == key:
                return list(values)
        return []

    def get_header_line(self, name: str) -> str:
        return ', '.join(self.get_header(name))

    def get_headers(self) -> Dict[str, List[str]]:
        return {name: list(values) for name, values in self.headers}

    def header_items(self) -> Iterator[Tuple[str, str]]:
        """Yield one ``(name, value)`` pair per value, in insertion order."""
        for name, values in self.headers:
            for value in values:
                yield name, value

    def with_header(self, name: str, value: HeaderValue):
        key = name.lower()
        headers = [(n, v) for n, v in self.headers if n.lower() != key]
        headers.append((name, _header_values(value)))
        return replace(self, headers=tuple(headers))

    def with_added_header(self, name: str, value: HeaderValue):
        key = name.lower()
        headers = list(self.headers)
        for index, (header_name, values) in enumerate(headers):
            if header_name.lower() == key:
                headers[index] = (header_name, values + _header_values(value))
                return replace(self, headers=tuple(headers))
        headers.append((name, _header_values(value)))
        return replace(self, headers=tuple(headers))

    def without_header(self, name: str):
        key = name.lower()
        return replace(self, headers=tuple((n, v) for n, v in self.headers if n.lower() != key))


@dataclass(frozen=True)
class Request(HeadersMixin):
    """Represents an HTTP request."""
    method: str
    uri: URI
    headers: HeaderList = ()
    body: bytes = b''
    protocol_version: Optional[str] = '1.1'

    def __post_init__(self):
        method = self.method.upper()
        if method not in HTTP_METHODS:
            raise ValueError(f"Unsupported HTTP method: {self.method}")
        if self.protocol_version is not None and self.protocol_version not in PROTOCOL_VERSIONS:
            raise ValueError(f"Unknown HTTP protocol version: {self.protocol_version}")
        object.__setattr__(self, 'method', method)
        if isinstance(self.uri, str):
            object.__setattr__(self, 'uri', URI.parse(self.uri))
        object.__setattr__(self, 'headers', normalize_headers(self.headers))
        if isinstance(self.body, str):
            object.__setattr__(self, 'body', self.body.encode('utf-8'))

    def with_method(self, method: str) -> 'Request':
        return replace(self, method=method)

    def with_uri(self, uri: Union[URI, str]) -> 'Request':
        return replace(self, uri=uri)

    def with_body(self, body: Union[bytes, str]) -> 'Request':
        return replace(self, body=body)

    def with_protocol_version(self, version: Optional[str]) -> 'Request':
        return replace(self, protocol_version=version)


@dataclass(frozen=True)
class Response(HeadersMixin):
    """Represents an HTTP response."""
    status_code: int = 200
    reason_phrase: str = ''
    protocol_version: str = '1.1'
    headers: HeaderList = ()
    body: BinaryIO = field(default_factory=io.BytesIO, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, 'headers', normalize_headers(self.headers))
        if not self.reason_phrase:
            object.__setattr__(self, 'reason_phrase', responses.get(self.status_code, ''))

    def with_status(self, code: Union[int, str], reason: str = '') -> 'Response':
        code = int(code)
        if not 100 <= code < 600:
            raise ValueError(f"Invalid status code: {code}")
        return replace(self, status_code=code, reason_phrase=reason or responses.get(code, ''))

    def with_protocol_version(self, version: str) -> 'Response':
        return replace(self, protocol_version=version)

    def with_body(self, body: BinaryIO) -> 'Response':
        return replace(self, body=body)

    @property
    def is_redirect(self) -> bool:
        return 300 <= self.status_code < 400

    def read(self) -> bytes:
        """Return the whole body, regardless of the stream position."""
        self.body.seek(0)
        return self.body.read()

    @property
    def text(self) -> str:
        return self.read().decode('utf-8', errors='replace')


# Message factory
@runtime_checkable
class MessageFactory(Protocol):
    """Creates the message objects the pipeline fills in."""

    def create_response(self) -> Response:
        ...

    def create_uri(self, uri: str = '') -> URI:
        ...

    def create_stream_from_string(self, content: Union[bytes, str]) -> BinaryIO:
        ...


class DefaultMessageFactory:
    """MessageFactory backed by the models in this module."""

    def create_response(self) -> Response:
        return Response()

    def create_uri(self, uri: str = '') -> URI:
        return URI.parse(uri)

    def create_stream_from_string(self, content: Union[bytes, str]) -> BinaryIO:
        if isinstance(content, str):
            content = content.encode('utf-8')
        return io.BytesIO(content)
