"""
Authorization Request decoder (RFC 6749 §4.1.1, §4.2.1).
Builds an AuthorizeRequest from the query string and validates response_type.
"""
import logging
from typing import Any, Mapping

from starlette.requests import Request

from authorize_endpoint.errors import DecodeError, MissingResponseType, ResponseTypeNotAllowed
from authorize_endpoint.models import AuthorizeRequest

logger = logging.getLogger(__name__)

_TRIM = "\r\n\t "


def _param(params: Mapping[str, Any], key: str) -> str:
    """First value of key, trimmed; "" if absent."""
    getlist = getattr(params, "getlist", None)
    if getlist is not None:
        values = getlist(key)
        value = values[0] if values else ""
    else:
        value = params.get(key) or ""
        if isinstance(value, (list, tuple)):
            value = value[0] if value else ""
    return value.strip(_TRIM)


class AuthorizeDecoder:
    """
    Decodes authorization requests, allowing only the given response types.
    An AuthorizeRequest is always returned, even together with an error.
    """

    def __init__(self, *allowed_response_types: str) -> None:
        self._allowed = frozenset(allowed_response_types)

    @property
    def allowed_response_types(self) -> frozenset[str]:
        return self._allowed

    def decode(self, request: Request) -> tuple[AuthorizeRequest, DecodeError | None]:
        ar, err = self.decode_params(request.query_params)
        ar.http_request = request
        return ar, err

    def decode_params(self, params: Mapping[str, Any]) -> tuple[AuthorizeRequest, DecodeError | None]:
        ar = AuthorizeRequest(
            response_type=_param(params, "response_type"),
            client_id=_param(params, "client_id"),
            redirect_uri=_param(params, "redirect_uri"),
            scope=_param(params, "scope"),
            state=_param(params, "state"),
        )
        err: DecodeError | None = None
        if ar.response_type == "":
            err = MissingResponseType()
        elif ar.response_type not in self._allowed:
            err = ResponseTypeNotAllowed(ar.response_type)
        if err is not None:
            logger.debug("Authorization request rejected (client_id=%s): %s", ar.client_id, err)
        return ar, err
