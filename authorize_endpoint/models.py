"""
Authorization Request model (RFC 6749 §4.1.1 and §4.2.1) and the library's flow stages.
"""
import json
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Mapping

from starlette.requests import Request

# Stages 0-99 are reserved for built-in stages; integrators number theirs from here.
CUSTOM_STAGE_MIN = 100


class AuthorizeStage(IntEnum):
    """
    Where a multi-step authorization flow currently stands.
    Values are dispatch keys only; the flow order is up to the handlers.
    """

    # Request just arrived; user is about to enter login information.
    INITIALIZE = 0
    # Request comes with login information (e.g. submitted login form).
    TO_AUTHENTICATE = 1
    # User logged in but has not yet authorized the requested scope (MFA, extra prompts).
    INTERMEDIATE = 2
    # Request comes with the authorization confirmation of the scope.
    TO_AUTHORIZE = 3
    # Boundary marker for arbitrary custom stages.
    CUSTOM = 4


def _coerce_stage(value: Any) -> int:
    stage = int(value)
    try:
        return AuthorizeStage(stage)
    except ValueError:
        return stage


@dataclass
class AuthorizeRequest:
    """
    One authorization attempt (Authorization Code Grant or Implicit Grant).
    Fields hold the trimmed query values; stage and user_id are library specific.
    """

    response_type: str = ""
    client_id: str = ""
    redirect_uri: str = ""
    scope: str = ""
    state: str = ""
    stage: int = AuthorizeStage.INITIALIZE
    user_id: str = ""
    # Raw request this one was decoded from, if any. Never serialized.
    http_request: Request | None = field(default=None, repr=False, compare=False)

    def to_dict(self) -> dict[str, Any]:
        """response_type and client_id are always present; other empty fields are omitted."""
        data: dict[str, Any] = {
            "response_type": self.response_type,
            "client_id": self.client_id,
        }
        for key in ("redirect_uri", "scope", "state"):
            value = getattr(self, key)
            if value:
                data[key] = value
        if self.stage != AuthorizeStage.INITIALIZE:
            data["stage"] = int(self.stage)
        if self.user_id:
            data["user_id"] = self.user_id
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AuthorizeRequest":
        return cls(
            response_type=data.get("response_type") or "",
            client_id=data.get("client_id") or "",
            redirect_uri=data.get("redirect_uri") or "",
            scope=data.get("scope") or "",
            state=data.get("state") or "",
            stage=_coerce_stage(data.get("stage") or AuthorizeStage.INITIALIZE),
            user_id=data.get("user_id") or "",
        )
