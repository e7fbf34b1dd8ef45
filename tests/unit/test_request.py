"""
Unit tests for HTTP request parsing.
"""

import socket

import pytest

from rawhttpd.http.request import (
    HTTPRequest,
    RequestParser,
    HTTPParseError,
    parse_request,
)


class FakeSource:
    """Stands in for a socket: records recv() calls."""

    def __init__(self, data=b"", error=None):
        self.data = data
        self.error = error
        self.calls = []

    def recv(self, bufsize):
        self.calls.append(bufsize)
        if self.error is not None:
            raise self.error
        return self.data[:bufsize]


class TestRequestParser:
    """Tests for RequestParser class."""

    def test_parse_simple_get(self, sample_get_request: bytes):
        """Test parsing a simple GET request."""
        parser = RequestParser()
        request = parser.parse(sample_get_request, ("127.0.0.1", 12345))

        assert request.method == "GET"
        assert request.path == "/echo/abc"
        assert request.version == "HTTP/1.1"
        assert request.client_address == ("127.0.0.1", 12345)
        assert request.raw == sample_get_request

    def test_parse_headers(self, sample_get_request: bytes):
        """Host is pulled out; the other headers stay in the mapping."""
        request = parse_request(sample_get_request)

        assert request.host == "localhost"
        assert "Host" not in request.headers
        assert request.user_agent == "pytest"
        assert request.accept_encoding == "gzip"
        assert dict(request.headers) == {
            "User-Agent": "pytest",
            "Accept-Encoding": "gzip",
        }

    def test_parse_query_params(self, sample_get_request: bytes):
        """Test query parameter parsing."""
        request = parse_request(sample_get_request)

        assert dict(request.query) == {"page": "1", "limit": "10"}

    def test_query_pairs_without_exactly_one_equals_are_dropped(self):
        raw = b"GET /x?flag&a=1&b=2=3&=v&k= HTTP/1.1\r\n\r\n"
        request = parse_request(raw)

        assert dict(request.query) == {"a": "1", "": "v", "k": ""}

    def test_query_is_not_percent_decoded(self):
        raw = b"GET /search?q=hello%20world HTTP/1.1\r\nHost: test\r\n\r\n"
        request = parse_request(raw)

        assert request.path == "/search"
        assert request.query["q"] == "hello%20world"

    def test_empty_query_string(self):
        request = parse_request(b"GET /x? HTTP/1.1\r\n\r\n")

        assert request.path == "/x"
        assert dict(request.query) == {}

    def test_parse_post_with_body(self, sample_post_request: bytes):
        """The body is the raw bytes after the blank line."""
        request = parse_request(sample_post_request)

        assert request.method == "POST"
        assert request.path == "/files/greeting.txt"
        assert request.body == b"hello world"

    def test_body_ignores_content_length(self):
        raw = (
            b"POST /files/x HTTP/1.1\r\n"
            b"Content-Length: 2\r\n"
            b"\r\n"
            b"abcdef"
        )

        assert parse_request(raw).body == b"abcdef"

    def test_body_stops_at_next_blank_line(self):
        raw = b"POST /files/x HTTP/1.1\r\n\r\npart1\r\n\r\npart2"

        assert parse_request(raw).body == b"part1"

    def test_blank_line_at_end_gives_empty_body(self):
        raw = b"GET / HTTP/1.1\r\nHost: test\r\n\r\n"

        assert parse_request(raw).body == b""

    def test_no_blank_line_means_empty_body(self):
        request = parse_request(b"GET / HTTP/1.1\r\nHost: test\r\n")

        assert request.body == b""
        assert request.host == "test"

    def test_parse_missing_headers(self):
        """Test parsing request with no headers."""
        request = parse_request(b"GET / HTTP/1.1\r\n\r\n")

        assert request.method == "GET"
        assert request.path == "/"
        assert request.host == ""
        assert len(request.headers) == 0

    @pytest.mark.parametrize("raw", [
        b"GET\r\nHost: test\r\n\r\n",
        b"GET /\r\n\r\n",
        b"GET / HTTP/1.1 extra\r\n\r\n",
        b"GET  / HTTP/1.1\r\n\r\n",
        b"GET ?x=1 HTTP/1.1\r\n\r\n",
        b"\r\n\r\n",
    ])
    def test_parse_invalid_request_line(self, raw: bytes):
        """Anything but three non-empty tokens is rejected."""
        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert str(exc_info.value) == "invalid request, missing method, path and version"
        assert exc_info.value.status_code == 400

    def test_method_is_not_validated(self):
        """Any token is accepted as a method; routing decides."""
        request = parse_request(b"BREW /pot HTTP/1.1\r\n\r\n")

        assert request.method == "BREW"

    def test_header_with_two_colons_is_skipped(self):
        raw = (
            b"GET / HTTP/1.1\r\n"
            b"Host: localhost:4221\r\n"
            b"X-Time: 10:30\r\n"
            b"X-Ok: yes\r\n"
            b"\r\n"
        )
        request = parse_request(raw)

        assert request.host == ""
        assert "X-Time" not in request.headers
        assert request.headers["X-Ok"] == "yes"

    def test_header_names_are_case_sensitive(self):
        raw = b"GET / HTTP/1.1\r\nhost: example\r\nuser-agent: curl\r\n\r\n"
        request = parse_request(raw)

        assert request.host == ""
        assert request.headers["host"] == "example"
        assert request.user_agent == ""
        assert request.get_header("user-agent") == "curl"

    def test_header_values_are_trimmed(self):
        request = parse_request(b"GET / HTTP/1.1\r\nX-Pad :   value  \r\n\r\n")

        assert request.headers["X-Pad"] == "value"

    def test_last_duplicate_header_wins(self):
        raw = b"GET / HTTP/1.1\r\nX-A: 1\r\nX-A: 2\r\n\r\n"

        assert parse_request(raw).headers["X-A"] == "2"

    def test_echo_bytes_survive_decoding(self):
        """Non-UTF-8 bytes in the path round-trip through str."""
        raw = b"GET /echo/caf\xe9 HTTP/1.1\r\n\r\n"
        request = parse_request(raw)

        assert request.path.encode("utf-8", errors="surrogateescape") == b"/echo/caf\xe9"


class TestRequestParserRead:
    """Tests for the single-recv read path."""

    def test_read_uses_one_recv_of_buffer_size(self, sample_get_request: bytes):
        source = FakeSource(sample_get_request)
        request = RequestParser().read(source, ("10.0.0.1", 5000))

        assert source.calls == [1024]
        assert request.path == "/echo/abc"
        assert request.client_address == ("10.0.0.1", 5000)

    def test_read_truncates_to_buffer(self):
        body = b"x" * 100
        raw = b"POST /files/big HTTP/1.1\r\n\r\n" + body
        parser = RequestParser(buffer_size=40)

        request = parser.read(FakeSource(raw))

        assert request.body == raw[:40].partition(b"\r\n\r\n")[2]
        assert len(request.raw) == 40

    def test_read_eof(self):
        with pytest.raises(HTTPParseError) as exc_info:
            RequestParser().read(FakeSource(b""))

        assert str(exc_info.value) == "EOF"

    def test_read_socket_error(self):
        source = FakeSource(error=ConnectionResetError(104, "Connection reset by peer"))

        with pytest.raises(HTTPParseError) as exc_info:
            RequestParser().read(source)

        assert "Connection reset by peer" in str(exc_info.value)

    def test_read_timeout(self):
        source = FakeSource(error=socket.timeout("timed out"))

        with pytest.raises(HTTPParseError) as exc_info:
            RequestParser().read(source)

        assert str(exc_info.value) == "timed out"


class TestHTTPRequest:
    """Tests for HTTPRequest dataclass."""

    def test_get_header_default(self):
        """Test get_header with default value."""
        request = HTTPRequest(method="GET", path="/")

        assert request.get_header("X-Missing") == ""
        assert request.get_header("X-Missing", "default") == "default"

    def test_request_is_immutable(self):
        request = HTTPRequest(method="GET", path="/", headers={"A": "1"})

        with pytest.raises(AttributeError):
            request.path = "/other"
        with pytest.raises(TypeError):
            request.headers["A"] = "2"

    def test_headers_are_copied(self):
        headers = {"A": "1"}
        request = HTTPRequest(method="GET", path="/", headers=headers)
        headers["A"] = "changed"

        assert request.headers["A"] == "1"
