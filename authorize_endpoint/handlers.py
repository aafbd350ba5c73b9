"""
Response builders for stage handlers, plus the default INITIALIZE handler.

Redirect builders follow RFC 6749: Authorization Response (§4.1.2) in the query, Token Response
(§4.2.2) in the fragment, Error Response (§4.1.2.1 / §4.2.2.1) in whichever the grant uses.
Validating redirect_uri against the client's registration is the caller's job; redirect only
after that check.
"""
import html
from dataclasses import replace

from fastapi import status

from authorize_endpoint.config import LOGIN_ACTION
from authorize_endpoint.context import EndpointContext
from authorize_endpoint.errors import DecodeError
from authorize_endpoint.models import AuthorizeRequest, AuthorizeStage
from authorize_endpoint.response import CachedResponse, RedirectResponse

ERROR_UNSUPPORTED_RESPONSE_TYPE = "unsupported_response_type"
ERROR_ACCESS_DENIED = "access_denied"

_HTML_HEADERS = {"Content-Type": ["text/html; charset=utf-8"]}


def _e(s: str | None) -> str:
    return html.escape(s or "")


def _with_state(params: dict[str, list[str]], ar: AuthorizeRequest) -> dict[str, list[str]]:
    if ar.state:
        params["state"] = [ar.state]
    return params


def error_redirect(ar: AuthorizeRequest, error: str, description: str | None = None) -> RedirectResponse:
    """Error Response; in the fragment for the Implicit Grant, in the query otherwise."""
    params = {"error": [error]}
    if description:
        params["error_description"] = [description]
    _with_state(params, ar)
    if ar.response_type == "token":
        return RedirectResponse(redirect_uri=ar.redirect_uri, fragment=params)
    return RedirectResponse(redirect_uri=ar.redirect_uri, query=params)


def authorization_response(ar: AuthorizeRequest, code: str) -> RedirectResponse:
    """Authorization Code Grant: code and state in the query."""
    return RedirectResponse(
        redirect_uri=ar.redirect_uri,
        query=_with_state({"code": [code]}, ar),
    )


def token_response(
    ar: AuthorizeRequest,
    access_token: str,
    token_type: str = "bearer",
    expires_in: int | None = None,
    scope: str | None = None,
) -> RedirectResponse:
    """Implicit Grant: access token parameters in the fragment. No refresh token (§4.2.2)."""
    params = {"access_token": [access_token], "token_type": [token_type]}
    if expires_in is not None:
        params["expires_in"] = [str(expires_in)]
    if scope:
        params["scope"] = [scope]
    return RedirectResponse(
        redirect_uri=ar.redirect_uri,
        fragment=_with_state(params, ar),
    )


def error_page(status_code: int, message: str) -> CachedResponse:
    body = f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Invalid request</title></head>
<body>
  <h1>Invalid request</h1>
  <p>{_e(message)}</p>
</body>
</html>"""
    return CachedResponse(status_code=status_code, headers=dict(_HTML_HEADERS), body=body)


def login_page(ar: AuthorizeRequest, action: str = LOGIN_ACTION) -> CachedResponse:
    """
    Login prompt. The request travels in hidden fields, already moved to TO_AUTHENTICATE,
    so the receiving endpoint can rebuild it with AuthorizeRequest.from_dict().
    """
    fields = replace(ar, stage=AuthorizeStage.TO_AUTHENTICATE).to_dict()
    hidden = "\n".join(
        f'    <input type="hidden" name="{_e(key)}" value="{_e(str(value))}"/>' for key, value in fields.items()
    )
    body = f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Log in</title></head>
<body>
  <h1>Log in</h1>
  <p><strong>{_e(ar.client_id)}</strong> requests access: {_e(ar.scope or "(none)")}</p>
  <form method="post" action="{_e(action)}">
{hidden}
    <label>Username: <input type="text" name="username" required/></label><br/>
    <label>Password: <input type="password" name="password" required/></label><br/>
    <button type="submit">Log in</button>
  </form>
</body>
</html>"""
    return CachedResponse(status_code=status.HTTP_200_OK, headers=dict(_HTML_HEADERS), body=body)


def handle_initialize(
    context: EndpointContext,
    ar: AuthorizeRequest,
    decode_error: DecodeError | None,
) -> CachedResponse:
    """
    Default INITIALIZE handler: error page for an invalid request, login prompt otherwise.
    Never redirects on error since redirect_uri has not been checked against a client yet.
    """
    if decode_error is not None:
        return error_page(status.HTTP_400_BAD_REQUEST, str(decode_error))
    if not ar.client_id:
        return error_page(status.HTTP_400_BAD_REQUEST, "client_id is required but not set")
    return login_page(ar)
