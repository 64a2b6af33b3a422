import dataclasses

import pytest

from HTTPConnect import DefaultMessageFactory, MessageFactory, Request, Response, URI


class TestURI:

    def test_parse_components(self):
        uri = URI.parse("HTTPS://user:pw@Example.ORG:8443/a/b?x=1&y=2#frag")
        assert uri.scheme == "https"
        assert uri.user_info == "user:pw"
        assert uri.host == "example.org"
        assert uri.port == 8443
        assert uri.path == "/a/b"
        assert uri.query == "x=1&y=2"
        assert uri.fragment == "frag"

    def test_round_trip(self):
        assert str(URI.parse("http://example.org/a?x=1#f")) == "http://example.org/a?x=1#f"

    def test_default_port_omitted(self):
        assert str(URI.parse("https://example.org:443/")) == "https://example.org/"

    def test_with_methods_return_new_values(self):
        uri = URI.parse("http://example.org/")
        changed = uri.with_path("/x").with_query("q=1").with_port(8080)
        assert str(uri) == "http://example.org/"
        assert str(changed) == "http://example.org:8080/x?q=1"

    def test_with_user_info(self):
        uri = URI.parse("http://example.org/")
        assert uri.with_user_info("bob", "pw").user_info == "bob:pw"
        assert uri.with_user_info("bob").user_info == "bob"
        assert uri.with_user_info("").user_info == ""

    def test_invalid_port(self):
        with pytest.raises(ValueError):
            URI().with_port(70000)

    def test_path_gets_leading_slash_with_authority(self):
        assert str(URI(scheme="http", host="example.org", path="x")) == "http://example.org/x"

    def test_request_target(self):
        assert URI.parse("http://example.org").request_target == "/"
        assert URI.parse("http://example.org/a?b=c#d").request_target == "/a?b=c"

    def test_immutable(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            URI().host = "example.org"


class TestRequest:

    def test_method_normalized(self):
        assert Request("get", "http://example.org/").method == "GET"

    def test_unknown_method(self):
        with pytest.raises(ValueError):
            Request("BREW", "http://example.org/")

    def test_unknown_protocol_version(self):
        with pytest.raises(ValueError):
            Request("GET", "http://example.org/", protocol_version="3.0")

    def test_headers_case_insensitive(self):
        request = Request("GET", "http://example.org/", headers={"Accept": "text/html"})
        assert request.has_header("accept")
        assert request.get_header("ACCEPT") == ["text/html"]
        assert request.get_header_line("missing") == ""

    def test_with_header_replaces(self):
        request = Request("GET", "http://example.org/", headers={"Cookie": ["a=1", "b=2"]})
        replaced = request.with_header("cookie", "c=3")
        assert replaced.get_header("Cookie") == ["c=3"]
        assert request.get_header("Cookie") == ["a=1", "b=2"]

    def test_with_added_header_keeps_first_spelling(self):
        request = Request("GET", "http://example.org/", headers=[("X-Trace", "1")])
        added = request.with_added_header("x-trace", "2")
        assert added.get_headers() == {"X-Trace": ["1", "2"]}
        assert list(added.header_items()) == [("X-Trace", "1"), ("X-Trace", "2")]

    def test_without_header(self):
        request = Request("GET", "http://example.org/", headers={"A": "1", "B": "2"})
        assert request.without_header("a").get_headers() == {"B": ["2"]}

    def test_with_uri_accepts_string(self):
        request = Request("GET", "http://example.org/").with_uri("http://other.org/x")
        assert request.uri.host == "other.org"

    def test_body_text_encoded(self):
        assert Request("POST", "http://example.org/", body="é").body == "é".encode("utf-8")


class TestResponse:

    def test_defaults(self):
        response = Response()
        assert response.status_code == 200
        assert response.reason_phrase == "OK"
        assert response.read() == b""

    def test_with_status_derives_reason(self):
        response = Response().with_status(404)
        assert response.reason_phrase == "Not Found"
        assert Response().with_status("302", "Moved").reason_phrase == "Moved"

    def test_invalid_status(self):
        with pytest.raises(ValueError):
            Response().with_status(99)

    def test_read_rewinds(self):
        response = Response().with_body(DefaultMessageFactory().create_stream_from_string(b"abc"))
        assert response.read() == b"abc"
        assert response.read() == b"abc"

    def test_is_redirect(self):
        assert Response(status_code=307).is_redirect
        assert not Response(status_code=200).is_redirect


class TestMessageFactory:

    def test_default_factory_satisfies_protocol(self):
        factory = DefaultMessageFactory()
        assert isinstance(factory, MessageFactory)
        assert factory.create_response().status_code == 200
        assert str(factory.create_uri("http://example.org/x")) == "http://example.org/x"
        assert factory.create_stream_from_string("text").read() == b"text"
