"""
Collaborators handed to every stage handler.
Token issuance and storage are supplied by the integrator; this package never calls them.
"""
from dataclasses import dataclass, field
from typing import Any, Protocol


class TokenFactory(Protocol):
    """Produces authorization codes, access tokens and refresh tokens."""


class TokenStorage(Protocol):
    """Stores and retrieves authorization codes, access tokens and refresh tokens."""


@dataclass
class EndpointContext:
    """Explicit argument bundle passed as the first argument to each handler."""

    token_factory: TokenFactory | None = None
    token_storage: TokenStorage | None = None
    # Any other integrator capability (user store, templates, ...), keyed by name.
    extras: dict[str, Any] = field(default_factory=dict)
