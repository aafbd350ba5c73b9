"""
Responders: what a stage handler hands back instead of writing HTTP itself.

CachedResponse is a fully buffered status/headers/body (login prompt, consent page, error page).
RedirectResponse is the final Authorization, Token or Error Response (RFC 6749 §4.1.2, §4.2.2),
always a 307 to the client's redirect_uri.
"""
import logging
import re
import shutil
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import IO, Iterable, Mapping, Sequence
from urllib.parse import SplitResult, parse_qsl, quote, urlencode, urlsplit, urlunsplit

from fastapi import status
from starlette.datastructures import MutableHeaders
from starlette.responses import Response

from authorize_endpoint.errors import (
    RedirectURIMalformed,
    RedirectURIMissing,
    RedirectURINotAbsolute,
    ResponderError,
)

logger = logging.getLogger(__name__)

# Header and parameter multimaps: one key, many values, in order.
MultiMap = Mapping[str, Sequence[str] | str]

_CONTROL_CHAR = re.compile(r"[\x00-\x1f\x7f]")
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2}).{0,2}", re.DOTALL)

# RFC 3986 sub-delims and gen-delims allowed unescaped; "%" keeps existing escapes.
_PATH_SAFE = "/%:@!$&'()*+,;="
_NETLOC_SAFE = "%:@[]!$&'()*+,;="


def _pairs(values: MultiMap | None) -> Iterable[tuple[str, str]]:
    if not values:
        return
    for key, value in values.items():
        if isinstance(value, str):
            yield key, value
        else:
            for v in value:
                yield key, v


def _parse_uri(uri: str) -> SplitResult:
    """urlsplit, plus the rejections urlsplit skips: control characters, bad escapes, blanks in host."""
    if _CONTROL_CHAR.search(uri):
        raise ValueError("invalid control character in URL")
    bad = _BAD_ESCAPE.search(uri)
    if bad:
        raise ValueError(f'invalid URL escape "{bad.group(0)}"')
    parts = urlsplit(uri)
    blank = next((c for c in parts.netloc if c.isspace()), None)
    if blank is not None:
        raise ValueError(f'invalid character "{blank}" in host name')
    return parts


def encode_values(pairs: Iterable[tuple[str, str]]) -> str:
    """
    application/x-www-form-urlencoded, keys sorted; values keep their order within a key.
    """
    grouped: dict[str, list[str]] = {}
    for key, value in pairs:
        grouped.setdefault(key, []).append(value)
    return urlencode([(key, value) for key in sorted(grouped) for value in grouped[key]])


class ResponseWriter:
    """
    Buffered HTTP response. Headers are sent as they were when the status was written;
    later header changes are ignored.
    """

    def __init__(self) -> None:
        self.headers = MutableHeaders()
        self.status_code: int | None = None
        self._sent_headers: list[tuple[bytes, bytes]] = []
        self._body = bytearray()

    def write_header(self, status_code: int) -> None:
        if self.status_code is not None:
            logger.warning("Superfluous write_header(%s); status already %s", status_code, self.status_code)
            return
        self.status_code = status_code
        self._sent_headers = list(self.headers.raw)

    def write(self, data: bytes | str) -> int:
        if self.status_code is None:
            self.write_header(status.HTTP_200_OK)
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._body.extend(data)
        return len(data)

    @property
    def body(self) -> bytes:
        return bytes(self._body)

    @property
    def sent_headers(self) -> MutableHeaders:
        """Headers as committed with the status line."""
        return MutableHeaders(raw=list(self._sent_headers))

    def to_response(self) -> Response:
        if self.status_code is None:
            self.write_header(status.HTTP_200_OK)
        response = Response(content=self.body, status_code=self.status_code)
        for key, value in self._sent_headers:
            response.headers.append(key.decode("latin-1"), value.decode("latin-1"))
        return response


def _copy_headers(headers: MultiMap | None, writer: ResponseWriter) -> None:
    for key, value in _pairs(headers):
        writer.headers.append(key, value)


@dataclass
class CachedResponse:
    """Fixed status, headers and optional body, written as-is."""

    status_code: int = status.HTTP_200_OK
    headers: MultiMap = field(default_factory=dict)
    body: IO | bytes | str | None = None

    def respond(self, writer: ResponseWriter) -> None:
        _copy_headers(self.headers, writer)
        writer.write_header(self.status_code)
        if self.body is None:
            return
        if isinstance(self.body, (bytes, str)):
            writer.write(self.body)
        else:
            shutil.copyfileobj(self.body, writer)


@dataclass
class RedirectResponse:
    """
    Redirect to redirect_uri with query merged into its existing query and fragment as the
    URI fragment. redirect_uri must be absolute (scheme and host).
    """

    redirect_uri: str = ""
    query: MultiMap = field(default_factory=dict)
    fragment: MultiMap = field(default_factory=dict)
    headers: MultiMap = field(default_factory=dict)

    def location(self) -> str:
        """Build the final Location value. Raises ResponderError if redirect_uri is unusable."""
        if self.redirect_uri == "":
            raise RedirectURIMissing()
        try:
            parts = _parse_uri(self.redirect_uri)
        except ValueError as e:
            raise RedirectURIMalformed(str(e)) from e
        if not parts.scheme or not parts.netloc:
            raise RedirectURINotAbsolute(self.redirect_uri)

        query = parse_qsl(parts.query, keep_blank_values=True)
        query.extend(_pairs(self.query))
        return urlunsplit(
            (
                parts.scheme,
                quote(parts.netloc, safe=_NETLOC_SAFE),
                quote(parts.path, safe=_PATH_SAFE),
                encode_values(query),
                encode_values(_pairs(self.fragment)),
            )
        )

    def respond(self, writer: ResponseWriter) -> None:
        _copy_headers(self.headers, writer)
        location = self.location()
        writer.headers["Location"] = location
        writer.write_header(status.HTTP_307_TEMPORARY_REDIRECT)


Responder = CachedResponse | RedirectResponse


def status_text_response(status_code: int) -> CachedResponse:
    """Plain response whose body is the standard reason phrase for status_code."""
    return CachedResponse(
        status_code=status_code,
        headers={"Content-Type": ["text/plain; charset=utf-8"]},
        body=HTTPStatus(status_code).phrase,
    )


class ResponseEncoder:
    """
    Turns the Responder returned by a stage handler into the response sent to the client.
    A ResponderError is rendered as a plain error page with the error's status and message.
    """

    def encode(self, responder: Responder | None) -> Response:
        if responder is None:
            logger.warning("Handler produced no response; answering 500")
            responder = status_text_response(status.HTTP_500_INTERNAL_SERVER_ERROR)
        writer = ResponseWriter()
        try:
            responder.respond(writer)
        except ResponderError as e:
            logger.warning("Responder failed (%s): %s", type(e).__name__, e.message)
            writer = ResponseWriter()
            self.error_response(e).respond(writer)
        return writer.to_response()

    def error_response(self, error: ResponderError) -> CachedResponse:
        return CachedResponse(
            status_code=error.status_code,
            headers={"Content-Type": ["text/plain; charset=utf-8"]},
            body=error.message,
        )
