"""
Authorization endpoint configuration. Values come from the environment; no secrets here.
"""
import os

# Response types accepted by the decoder (comma-separated). "code" = Authorization Code Grant,
# "token" = Implicit Grant. An empty value rejects every request.
ALLOWED_RESPONSE_TYPES = tuple(
    t.strip() for t in os.environ.get("OAUTH_ALLOWED_RESPONSE_TYPES", "code").split(",") if t.strip()
)

# Where the login prompt posts credentials (the integrator's authentication endpoint)
LOGIN_ACTION = os.environ.get("OAUTH_LOGIN_ACTION", "/login")

HOST = os.environ.get("AUTHORIZE_HOST", "127.0.0.1")
PORT = int(os.environ.get("AUTHORIZE_PORT", "9000"))
