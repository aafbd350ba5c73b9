"""
Authorization endpoint: decoder -> stage handler -> response encoder.
"""
from starlette.requests import Request
from starlette.responses import Response

from authorize_endpoint.context import EndpointContext
from authorize_endpoint.decoder import AuthorizeDecoder
from authorize_endpoint.mux import AuthorizeHandler, AuthorizeHandlerMux
from authorize_endpoint.response import ResponseEncoder


class AuthorizeEndpoint:
    """
    Handles one request synchronously. Decode errors are passed on to the handler,
    never short-circuited here.
    """

    def __init__(
        self,
        context: EndpointContext,
        decoder: AuthorizeDecoder,
        handler: AuthorizeHandler,
        encoder: ResponseEncoder | None = None,
    ) -> None:
        self.context = context
        self.decoder = decoder
        self.handler = handler
        self.encoder = encoder or ResponseEncoder()
        if isinstance(handler, AuthorizeHandlerMux):
            handler.freeze()

    def handle(self, request: Request) -> Response:
        ar, decode_error = self.decoder.decode(request)
        responder = self.handler(self.context, ar, decode_error)
        return self.encoder.encode(responder)

    __call__ = handle
