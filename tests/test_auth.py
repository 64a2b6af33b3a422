from HTTPConnect import BasicAuthMiddleware, Request, basic_auth


class TestBasicAuth:

    def test_header_value(self):
        request = basic_auth(Request("GET", "http://example.org/"), "user", "pass")
        assert request.get_header("Authorization") == ["Basic dXNlcjpwYXNz"]

    def test_middleware_keeps_existing_credentials(self):
        middleware = BasicAuthMiddleware("user", "pass")
        request = Request("GET", "http://example.org/", headers={"Authorization": "Bearer t"})
        assert middleware.process_request(request).get_header("Authorization") == ["Bearer t"]

    def test_middleware_adds_credentials(self):
        middleware = BasicAuthMiddleware("user", "pass")
        request = middleware.process_request(Request("GET", "http://example.org/"))
        assert request.get_header_line("authorization") == "Basic dXNlcjpwYXNz"
