import pytest

from HTTPConnect import HTTPClient, HTTPClientTransport, TransportInfo


def wire(head: str, body: bytes = b'', redirect_count: int = 0):
    """Raw transport output for ``head`` (status line and headers, CRLF separated)."""
    raw_head = (head + "\r\n\r\n").encode('iso-8859-1')
    return raw_head + body, TransportInfo(redirect_count=redirect_count, header_size=len(raw_head))


class ScriptedTransport(HTTPClientTransport):
    """Replays canned raw responses instead of touching the network.

    Options are still built by HTTPClientTransport.build_options and recorded.
    """

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def perform(self, options):
        self.calls.append(options)
        if not self.responses:
            raise AssertionError("unexpected transport call")
        return self.responses.pop(0)


@pytest.fixture
def scripted():
    def make(*responses, **options):
        transport = ScriptedTransport(responses)
        return HTTPClient(transport=transport, **options), transport
    return make
