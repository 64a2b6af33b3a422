import pytest

from HTTPConnect import MalformedResponseError, parse_response
from HTTPConnect.parser import last_header_block


class TestParseResponse:
    """Parsing raw transport output into a Response"""

    def test_status_and_body(self):
        response = parse_response(b"HTTP/1.1 404 Not Found\r\n\r\nFOO", 26)
        assert response.status_code == 404
        assert response.reason_phrase == "Not Found"
        assert response.protocol_version == "1.1"
        assert response.read() == b"FOO"

    def test_headers_are_case_insensitive_and_multi_valued(self):
        head = b"HTTP/1.1 200 OK\r\nSet-Cookie: a=1\r\nContent-Type: text/html\r\nset-cookie: b=2\r\n\r\n"
        response = parse_response(head + b"<html>", len(head))
        assert response.get_header("SET-COOKIE") == ["a=1", "b=2"]
        assert response.get_header("content-type") == ["text/html"]
        assert response.read() == b"<html>"

    def test_last_framing_wins(self):
        head = (
            b"HTTP/1.1 301 Moved Permanently\r\nLocation: /next\r\n\r\n"
            b"HTTP/1.1 200 OK\r\nContent-Type: text/plain\r\n\r\n"
        )
        response = parse_response(head + b"done", len(head))
        assert response.status_code == 200
        assert not response.has_header("Location")
        assert response.get_header("Content-Type") == ["text/plain"]
        assert response.read() == b"done"

    def test_interim_continue_is_skipped(self):
        head = b"HTTP/1.1 100 Continue\r\n\r\nHTTP/1.1 201 Created\r\nLocation: /items/1\r\n\r\n"
        response = parse_response(head, len(head))
        assert response.status_code == 201
        assert response.get_header("Location") == ["/items/1"]

    def test_trailing_empty_framings_are_discarded(self):
        head = b"HTTP/1.0 200 OK\r\nX-A: b\r\n\r\n\r\n\r\n"
        response = parse_response(head + b"x", len(head))
        assert response.protocol_version == "1.0"
        assert response.get_header("X-A") == ["b"]
        assert response.read() == b"x"

    def test_names_and_values_are_percent_decoded(self):
        head = b"HTTP/1.1 200 OK\r\nX%2DTest:  a%20b \r\n\r\n"
        response = parse_response(head, len(head))
        assert response.get_header("X-Test") == ["a b"]

    def test_value_keeps_colons(self):
        head = b"HTTP/1.1 302 Found\r\nLocation: http://example.org:8080/x\r\n\r\n"
        response = parse_response(head, len(head))
        assert response.get_header("location") == ["http://example.org:8080/x"]

    def test_status_line_without_reason(self):
        head = b"HTTP/1.1 204\r\n\r\n"
        response = parse_response(head, len(head))
        assert response.status_code == 204
        assert response.reason_phrase == "No Content"

    def test_custom_reason_is_kept(self):
        head = b"HTTP/1.1 200 Everything Fine\r\n\r\n"
        assert parse_response(head, len(head)).reason_phrase == "Everything Fine"

    def test_empty_body(self):
        head = b"HTTP/1.1 200 OK\r\nContent-Length: 0\r\n\r\n"
        assert parse_response(head, len(head)).read() == b""


class TestMalformedResponse:
    """Unreadable input fails loudly"""

    def test_header_without_colon(self):
        head = b"HTTP/1.1 200 OK\r\nNoColonHere\r\n\r\n"
        with pytest.raises(MalformedResponseError) as info:
            parse_response(head, len(head))
        assert info.value.line == "NoColonHere"

    def test_status_code_not_numeric(self):
        head = b"HTTP/1.1 abc Broken\r\n\r\n"
        with pytest.raises(MalformedResponseError):
            parse_response(head, len(head))

    @pytest.mark.parametrize("status_line", [
        b"HTTP/1.1 600 Weird",
        b"HTTP/1.1 099 Low",
        b"HTTP/1.1 999 High",
        b"HTTP/1.1 20\xb2 OK",
    ])
    def test_status_code_out_of_range_or_not_ascii(self, status_line):
        head = status_line + b"\r\n\r\n"
        with pytest.raises(MalformedResponseError) as info:
            parse_response(head, len(head))
        assert info.value.line == status_line.decode("iso-8859-1")

    def test_status_line_without_code(self):
        head = b"HTTP/1.1\r\n\r\n"
        with pytest.raises(MalformedResponseError):
            parse_response(head, len(head))

    def test_missing_status_line(self):
        head = b"Content-Type: text/plain\r\n\r\n"
        with pytest.raises(MalformedResponseError):
            parse_response(head, len(head))

    def test_header_size_out_of_range(self):
        with pytest.raises(MalformedResponseError):
            parse_response(b"HTTP/1.1 200 OK\r\n\r\n", 100)


class TestLastHeaderBlock:

    def test_single_block(self):
        assert last_header_block("HTTP/1.1 200 OK\r\nA: b\r\n\r\n") == "HTTP/1.1 200 OK\r\nA: b"

    def test_only_empty_blocks(self):
        assert last_header_block("\r\n\r\n\r\n\r\n") == ""
