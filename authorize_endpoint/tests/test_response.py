"""
Tests for CachedResponse, RedirectResponse, ResponseWriter and ResponseEncoder.
"""
import io

import pytest

from authorize_endpoint.errors import (
    RedirectURIMalformed,
    RedirectURIMissing,
    RedirectURINotAbsolute,
    ResponderError,
)
from authorize_endpoint.response import (
    CachedResponse,
    RedirectResponse,
    ResponseEncoder,
    ResponseWriter,
    encode_values,
)


# --- CachedResponse ---


@pytest.mark.parametrize("body", [io.StringIO("hello world"), io.BytesIO(b"hello world"), "hello world", b"hello world"])
def test_cached_response_writes_status_headers_body(body):
    rd = CachedResponse(status_code=500, headers={"X-Hello-World": ["silly hello"]}, body=body)
    w = ResponseWriter()
    rd.respond(w)

    assert w.status_code == 500
    assert w.sent_headers.get("X-Hello-World") == "silly hello"
    assert w.body == b"hello world"


def test_cached_response_without_body():
    w = ResponseWriter()
    CachedResponse(status_code=204).respond(w)
    assert w.status_code == 204
    assert w.body == b""


def test_cached_response_keeps_multi_value_headers_in_order():
    rd = CachedResponse(status_code=200, headers={"Set-Cookie": ["a=1", "b=2"], "X-One": "1"})
    w = ResponseWriter()
    w.headers.append("Set-Cookie", "z=0")
    rd.respond(w)
    assert w.sent_headers.getlist("set-cookie") == ["z=0", "a=1", "b=2"]
    assert w.sent_headers["x-one"] == "1"


# --- ResponseWriter ---


def test_headers_after_status_are_not_sent():
    w = ResponseWriter()
    w.write_header(200)
    w.headers["X-Late"] = "too late"
    assert "x-late" not in w.sent_headers
    assert "x-late" not in w.to_response().headers


def test_second_write_header_is_ignored():
    w = ResponseWriter()
    w.write_header(404)
    w.write_header(200)
    assert w.status_code == 404


def test_write_commits_200():
    w = ResponseWriter()
    w.write("hi")
    assert w.status_code == 200
    assert w.to_response().body == b"hi"


def test_to_response_carries_status_headers_and_body():
    w = ResponseWriter()
    CachedResponse(status_code=418, headers={"X-Tea": ["pot"]}, body="short and stout").respond(w)
    response = w.to_response()
    assert response.status_code == 418
    assert response.headers["x-tea"] == "pot"
    assert response.body == b"short and stout"


# --- RedirectResponse ---


def test_redirect_merges_query_sorted_by_key():
    rd = RedirectResponse(
        headers={"X-Hello-World": ["silly hello"]},
        redirect_uri="https://foobar.com/path/oauth2?hello=world&foo=bar",
        query={"x-something": ["good"], "y-something": ["bad"], "z-something": ["ugly"]},
    )
    w = ResponseWriter()
    rd.respond(w)

    assert w.status_code == 307
    assert w.sent_headers["Location"] == (
        "https://foobar.com/path/oauth2?foo=bar&hello=world&x-something=good&y-something=bad&z-something=ugly"
    )
    assert w.sent_headers["X-Hello-World"] == "silly hello"
    assert w.body == b""


@pytest.mark.parametrize(
    "base, query, expected",
    [
        ("https://client.example/cb?b=2", {"a": ["1"]}, "https://client.example/cb?a=1&b=2"),
        ("https://client.example/cb?a=1", {"b": ["2"]}, "https://client.example/cb?a=1&b=2"),
        ("https://client.example/cb?a=0", {"a": ["1", "2"]}, "https://client.example/cb?a=0&a=1&a=2"),
        ("https://client.example/cb?empty=&b=2", {}, "https://client.example/cb?b=2&empty="),
        ("https://client.example/cb", {}, "https://client.example/cb"),
        ("https://client.example/cb", {"error_description": "User denied"}, "https://client.example/cb?error_description=User+denied"),
    ],
)
def test_redirect_query_merge(base, query, expected):
    assert RedirectResponse(redirect_uri=base, query=query).location() == expected


def test_redirect_fragment_is_encoded():
    rd = RedirectResponse(
        redirect_uri="https://client.example/cb",
        fragment={"state": ["xyz"], "access_token": ["2YotnFZFEjr1zCsicMWpAA"], "token_type": ["example"]},
    )
    assert rd.location() == (
        "https://client.example/cb#access_token=2YotnFZFEjr1zCsicMWpAA&state=xyz&token_type=example"
    )


def test_redirect_empty_fragment_drops_existing_one():
    rd = RedirectResponse(redirect_uri="https://client.example/cb?x=1#old")
    assert rd.location() == "https://client.example/cb?x=1"


def test_redirect_relative_uri_fails_without_writing():
    rd = RedirectResponse(
        headers={"X-Hello-World": ["silly hello"]},
        redirect_uri="/path/oauth2?hello=world&foo=bar",
        query={"x-something": ["good"]},
    )
    w = ResponseWriter()
    with pytest.raises(RedirectURINotAbsolute) as exc_info:
        rd.respond(w)

    assert str(exc_info.value) == 'redirect_uri is misformed. expected a full URI but got "/path/oauth2?hello=world&foo=bar"'
    assert w.status_code is None
    assert "location" not in w.headers


def test_redirect_relative_path_message():
    with pytest.raises(RedirectURINotAbsolute) as exc_info:
        RedirectResponse(redirect_uri="/relative/path").location()
    assert exc_info.value.message == 'redirect_uri is misformed. expected a full URI but got "/relative/path"'
    assert exc_info.value.status_code == 400


@pytest.mark.parametrize("uri", ["client.example/cb", "https:///cb", "https:"])
def test_redirect_requires_scheme_and_host(uri):
    with pytest.raises(RedirectURINotAbsolute):
        RedirectResponse(redirect_uri=uri).location()


def test_redirect_missing_uri():
    w = ResponseWriter()
    with pytest.raises(RedirectURIMissing) as exc_info:
        RedirectResponse(query={"code": ["abc"]}).respond(w)
    assert str(exc_info.value) == "redirect_uri not set"
    assert w.status_code is None


def test_redirect_malformed_uri_wraps_parser_error():
    with pytest.raises(RedirectURIMalformed) as exc_info:
        RedirectResponse(redirect_uri="http://[::1/cb").location()
    assert str(exc_info.value).startswith("redirect_uri is misformed. ")
    assert isinstance(exc_info.value.__cause__, ValueError)
    assert isinstance(exc_info.value, ResponderError)


@pytest.mark.parametrize(
    "uri",
    [
        "https://client.example/a%zz",
        "https://client.example/a%2",
        "https://client.example/cb?x=%zz",
        "https://client.example/\x00cb",
        "https://client.example/\x7fcb",
        "https://client.example/cb\r\nX-Injected: 1",
        "https://client .example/cb",
    ],
)
def test_redirect_rejects_malformed_uri(uri):
    w = ResponseWriter()
    with pytest.raises(RedirectURIMalformed) as exc_info:
        RedirectResponse(redirect_uri=uri, query={"code": ["abc"]}).respond(w)
    assert isinstance(exc_info.value.__cause__, ValueError)
    assert w.status_code is None
    assert "location" not in w.headers


def test_redirect_bad_escape_message():
    with pytest.raises(RedirectURIMalformed) as exc_info:
        RedirectResponse(redirect_uri="https://client.example/a%zz").location()
    assert str(exc_info.value) == 'redirect_uri is misformed. invalid URL escape "%zz"'


@pytest.mark.parametrize(
    "base, expected",
    [
        ("https://client.example/回调", "https://client.example/%E5%9B%9E%E8%B0%83?code=abc"),
        ("https://client.example/café cb", "https://client.example/caf%C3%A9%20cb?code=abc"),
        ("https://client.example/a%2Fb", "https://client.example/a%2Fb?code=abc"),
        ("https://bücher.example/cb", "https://b%C3%BCcher.example/cb?code=abc"),
        ("http://127.0.0.1:8000/cb;v=1", "http://127.0.0.1:8000/cb;v=1?code=abc"),
    ],
)
def test_redirect_escapes_path_and_host(base, expected):
    assert RedirectResponse(redirect_uri=base, query={"code": ["abc"]}).location() == expected


def test_encode_values_sorts_keys_keeps_value_order():
    assert encode_values([("b", "2"), ("a", "z"), ("b", "1"), ("a", "y")]) == "a=z&a=y&b=2&b=1"


# --- ResponseEncoder ---


def test_encoder_renders_redirect():
    response = ResponseEncoder().encode(RedirectResponse(redirect_uri="https://client.example/cb", query={"code": ["abc"]}))
    assert response.status_code == 307
    assert response.headers["location"] == "https://client.example/cb?code=abc"


def test_encoder_renders_redirect_to_non_ascii_path():
    response = ResponseEncoder().encode(RedirectResponse(redirect_uri="https://client.example/回调", query={"code": ["abc"]}))
    assert response.status_code == 307
    assert response.headers["location"] == "https://client.example/%E5%9B%9E%E8%B0%83?code=abc"


def test_encoder_falls_back_on_malformed_uri():
    response = ResponseEncoder().encode(RedirectResponse(redirect_uri="https://client.example/a%zz"))
    assert response.status_code == 400
    assert response.body == b'redirect_uri is misformed. invalid URL escape "%zz"'
    assert "location" not in response.headers


def test_encoder_falls_back_on_responder_error():
    response = ResponseEncoder().encode(
        RedirectResponse(headers={"X-Partial": ["yes"]}, redirect_uri="/relative/path")
    )
    assert response.status_code == 400
    assert response.body == b'redirect_uri is misformed. expected a full URI but got "/relative/path"'
    assert "location" not in response.headers
    assert "x-partial" not in response.headers


def test_encoder_answers_500_for_no_responder():
    response = ResponseEncoder().encode(None)
    assert response.status_code == 500
    assert response.body == b"Internal Server Error"


def test_encoder_propagates_other_errors():
    class BrokenBody:
        def read(self, size=-1):
            raise OSError("disk gone")

    with pytest.raises(OSError):
        ResponseEncoder().encode(CachedResponse(status_code=200, body=BrokenBody()))
