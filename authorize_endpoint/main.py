"""
Authorization Endpoint application.
GET /authorize decodes the request, dispatches it by stage and writes the handler's response.
"""
import logging

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import Response

from authorize_endpoint.config import ALLOWED_RESPONSE_TYPES, HOST, PORT
from authorize_endpoint.context import EndpointContext
from authorize_endpoint.decoder import AuthorizeDecoder
from authorize_endpoint.endpoint import AuthorizeEndpoint
from authorize_endpoint.handlers import handle_initialize
from authorize_endpoint.models import AuthorizeStage
from authorize_endpoint.mux import AuthorizeHandlerMux

logger = logging.getLogger(__name__)


def default_endpoint() -> AuthorizeEndpoint:
    """Decoder from config, INITIALIZE handled by the login prompt; other stages are the integrator's."""
    mux = AuthorizeHandlerMux()
    mux.add(AuthorizeStage.INITIALIZE, handle_initialize)
    return AuthorizeEndpoint(
        context=EndpointContext(),
        decoder=AuthorizeDecoder(*ALLOWED_RESPONSE_TYPES),
        handler=mux,
    )


def create_app(endpoint: AuthorizeEndpoint | None = None) -> FastAPI:
    endpoint = endpoint or default_endpoint()
    router = APIRouter()

    @router.get("/authorize")
    def authorize(request: Request) -> Response:
        """OAuth2 authorization endpoint (RFC 6749 §3.1)."""
        return endpoint.handle(request)

    app = FastAPI(title="Authorize Endpoint", version="0.1.0")
    app.include_router(router, tags=["authorize"])

    @app.get("/health")
    def health():
        """Health check endpoint."""
        return {"status": "ok", "service": "authorize_endpoint"}

    allowed = ", ".join(sorted(endpoint.decoder.allowed_response_types))
    logger.info("Authorize endpoint ready (response types: %s)", allowed or "none")
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "authorize_endpoint.main:app",
        host=HOST,
        port=PORT,
        reload=True,
    )
