import re, time, ssl, socket, http.client, zlib, base64
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Tuple
from urllib.parse import urljoin, urlsplit

from .config import ClientConfig
from .exceptions import TransportError, TransportTimeoutError, UnsupportedProtocolVersionError
from .models import Request
from .utils import format_protocol_version

# Configure logging
logger = logging.getLogger(__name__)

SUPPORTED_HTTP_VERSIONS = {'1.0': (10, 'HTTP/1.0'), '1.1': (11, 'HTTP/1.1')}

# obs-fold continuation inside a header value
_OBS_FOLD = re.compile(r'\r?\n[ \t]+')


@dataclass(frozen=True)
class TransportInfo:
    """Metadata returned next to the raw response bytes."""
    redirect_count: int
    header_size: int
    url: str = ''


class Transport(Protocol):
    """Performs the blocking network call for one request."""

    def invoke(self, request: Request, config: ClientConfig) -> Tuple[bytes, TransportInfo]:
        ...


@dataclass
class _Exchange:
    status: int
    reason: str
    version: str
    headers: List[Tuple[str, str]]
    body: bytes

    def head(self) -> bytes:
        lines = [f"HTTP/{self.version} {self.status} {self.reason}".rstrip()]
        lines.extend(f"{name}: {_OBS_FOLD.sub(' ', value)}" for name, value in self.headers)
        return ("\r\n".join(lines) + "\r\n\r\n").encode('iso-8859-1', errors='replace')

    def header(self, name: str) -> Optional[str]:
        for header_name, value in self.headers:
            if header_name.lower() == name:
                return value
        return None


class HTTPClientTransport:
    """Transport built on ``http.client``: one connection per exchange, no pooling.

    ``invoke`` is split in two steps so each can be replaced separately:
    ``build_options`` translates a Request and the client config into a flat
    option dict, ``perform`` runs the exchange described by those options.
    """

    def invoke(self, request: Request, config: ClientConfig) -> Tuple[bytes, TransportInfo]:
        options = self.build_options(request, config)
        return self.perform(options)

    def build_options(self, request: Request, config: ClientConfig) -> Dict[str, Any]:
        """Generate transport options for ``request``.

        Raises:
            UnsupportedProtocolVersionError: if the request asks for HTTP/2
        """
        options: Dict[str, Any] = {
            'http_version': self.get_protocol_version(request.protocol_version),
            'connection_timeout': config.connection_timeout,
            'timeout': config.timeout,
            'follow_location': config.follow_redirects,
            'max_redirects': config.max_redirects,
            'verify_peer': config.ssl_verify_peer,
        }

        if config.decode_content and request.has_header('accept-encoding'):
            options['accept_encoding'] = request.get_header_line('accept-encoding')

        # One wire line per value, never comma-joined
        options['headers'] = list(request.header_items())

        if request.body:
            options['body'] = request.body

        if request.uri.user_info:
            options['userpwd'] = request.uri.user_info

        options.update(config.transport_options)

        # Always derived from the request
        options['url'] = str(request.uri.with_user_info(''))
        options['method'] = request.method
        return options

    @staticmethod
    def get_protocol_version(version: Optional[str]) -> Optional[str]:
        if version is None or version in SUPPORTED_HTTP_VERSIONS:
            return version
        if version == '2.0':
            raise UnsupportedProtocolVersionError(
                "HTTP/2.0 is not supported by the http.client transport", version=version
            )
        return None

    def perform(self, options: Dict[str, Any]) -> Tuple[bytes, TransportInfo]:
        """Run the exchange, following redirects itself when ``follow_location`` is set.

        Raises:
            TransportError: on DNS, connection, TLS or protocol failure
            TransportTimeoutError: when a timeout is exceeded
        """
        url = options['url']
        method = options['method']
        body = options.get('body')
        headers = list(options.get('headers', []))
        overall = options.get('timeout') or None
        deadline = time.monotonic() + overall if overall else None

        heads: List[bytes] = []
        redirect_count = 0
        while True:
            exchange = self._exchange(url, method, headers, body, options, deadline)
            heads.append(exchange.head())

            location = exchange.header('location')
            if (options.get('follow_location') and 300 <= exchange.status < 400 and location
                    and redirect_count < options.get('max_redirects', 0)):
                url = urljoin(url, location)
                redirect_count += 1
                logger.debug(f"Transport redirect {redirect_count}: {exchange.status} -> {url}")
                continue
            break

        raw_headers = b''.join(heads)
        info = TransportInfo(redirect_count=redirect_count, header_size=len(raw_headers), url=url)
        return raw_headers + exchange.body, info

    def _create_connection(self, parsed_url, options: Dict[str, Any]) -> http.client.HTTPConnection:
        """Create a new connection for the given URL."""
        connect_timeout = options.get('connection_timeout') or None
        if parsed_url.scheme == 'https':
            context = ssl.create_default_context()
            if not options.get('verify_peer', True):
                context.check_hostname = False
                context.verify_mode = ssl.CERT_NONE
            conn = http.client.HTTPSConnection(
                parsed_url.hostname,
                parsed_url.port,
                timeout=connect_timeout,
                context=context
            )
        elif parsed_url.scheme == 'http':
            conn = http.client.HTTPConnection(
                parsed_url.hostname,
                parsed_url.port,
                timeout=connect_timeout
            )
        else:
            raise TransportError(f"Unsupported URL scheme: {parsed_url.scheme!r}", code='scheme',
                                 url=parsed_url.geturl())

        version = options.get('http_version')
        if version in SUPPORTED_HTTP_VERSIONS:
            # http.client reads the version from these attributes when writing the request line
            conn._http_vsn, conn._http_vsn_str = SUPPORTED_HTTP_VERSIONS[version]
        return conn

    def _exchange(self, url: str, method: str, headers: List[Tuple[str, str]],
                  body: Optional[bytes], options: Dict[str, Any],
                  deadline: Optional[float]) -> _Exchange:
        """Execute one request/response exchange."""
        parsed_url = urlsplit(url)
        path = parsed_url.path or '/'
        if parsed_url.query:
            path += '?' + parsed_url.query

        names = {name.lower() for name, _ in headers}
        conn = self._create_connection(parsed_url, options)
        try:
            conn.connect()
            conn.sock.settimeout(self._remaining(deadline, url))

            conn.putrequest(method, path, skip_host='host' in names,
                            skip_accept_encoding=True)
            for header_name, header_value in headers:
                conn.putheader(header_name, header_value)
            if options.get('userpwd') and 'authorization' not in names:
                credentials = base64.b64encode(options['userpwd'].encode('utf-8')).decode('ascii')
                conn.putheader('Authorization', f"Basic {credentials}")

            # End headers and send body if present
            if body:
                if 'content-length' not in names:
                    conn.putheader('Content-Length', str(len(body)))
                conn.endheaders()
                conn.send(body)
            else:
                conn.endheaders()

            response = conn.getresponse()
            data = response.read()
            self._remaining(deadline, url)

            exchange = _Exchange(
                status=response.status,
                reason=response.reason or '',
                version=format_protocol_version(response.version),
                headers=list(response.msg.items()),
                body=data,
            )
        except socket.timeout as e:
            raise TransportTimeoutError(f"Request to {url} timed out: {e}", code='timeout', url=url)
        except ssl.SSLError as e:
            raise TransportError(f"TLS failure for {url}: {e}", code=e.reason or e.errno, url=url)
        except socket.gaierror as e:
            raise TransportError(f"Could not resolve host for {url}: {e}", code=e.errno, url=url)
        except OSError as e:
            raise TransportError(f"Connection error for {url}: {e}", code=e.errno, url=url)
        except http.client.HTTPException as e:
            raise TransportError(f"Protocol error for {url}: {e!r}", code=type(e).__name__, url=url)
        finally:
            conn.close()

        if options.get('accept_encoding'):
            exchange.body = self._decode_body(exchange, url)
        logger.debug(f"{method} {url} -> {exchange.status} ({len(exchange.body)} bytes)")
        return exchange

    @staticmethod
    def _remaining(deadline: Optional[float], url: str) -> Optional[float]:
        """Seconds left of the overall budget; raises once it is spent."""
        if deadline is None:
            return None
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise TransportTimeoutError(f"Overall timeout exceeded for {url}", code='timeout', url=url)
        return remaining

    @staticmethod
    def _decode_body(exchange: _Exchange, url: str) -> bytes:
        encoding = (exchange.header('content-encoding') or '').strip().lower()
        if not exchange.body or encoding not in ('gzip', 'x-gzip', 'deflate'):
            return exchange.body
        try:
            if encoding == 'deflate':
                try:
                    return zlib.decompress(exchange.body)
                except zlib.error:
                    return zlib.decompress(exchange.body, -zlib.MAX_WBITS)
            return zlib.decompress(exchange.body, 16 + zlib.MAX_WBITS)
        except zlib.error as e:
            raise TransportError(f"Could not decode {encoding} body from {url}: {e}",
                                 code='decoding', url=url)
