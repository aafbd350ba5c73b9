"""
Stage dispatcher: routes an AuthorizeRequest to the handler registered for its stage.

Register every handler before serving, then freeze(). AuthorizeEndpoint freezes the mux it is given.
"""
import logging
from types import MappingProxyType
from typing import Callable, Mapping

from fastapi import status

from authorize_endpoint.context import EndpointContext
from authorize_endpoint.errors import DecodeError
from authorize_endpoint.models import AuthorizeRequest
from authorize_endpoint.response import Responder, status_text_response

logger = logging.getLogger(__name__)

# A handler may return None when it produces no response (e.g. inspection paths in tests).
AuthorizeHandler = Callable[[EndpointContext, AuthorizeRequest, DecodeError | None], Responder | None]


class AuthorizeHandlerMux:
    """
    Maps stage -> handler. The mux is a handler itself, so muxes nest.
    A stage with no handler gets a generic 500 response, never an exception.
    """

    def __init__(self) -> None:
        self._handlers: dict[int, AuthorizeHandler] | Mapping[int, AuthorizeHandler] = {}
        self._frozen = False

    def add(self, stage: int, handler: AuthorizeHandler) -> "AuthorizeHandlerMux":
        """Register handler for stage. A later add for the same stage replaces the earlier one."""
        if self._frozen:
            raise RuntimeError("AuthorizeHandlerMux is frozen; register handlers before serving")
        if stage in self._handlers:
            logger.debug("Replacing handler for stage %s", stage)
        self._handlers[stage] = handler
        return self

    def handler(self, stage: int) -> Callable[[AuthorizeHandler], AuthorizeHandler]:
        """Decorator form of add()."""

        def decorator(func: AuthorizeHandler) -> AuthorizeHandler:
            self.add(stage, func)
            return func

        return decorator

    def freeze(self) -> None:
        if not self._frozen:
            self._handlers = MappingProxyType(dict(self._handlers))
            self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def stages(self) -> list[int]:
        return sorted(self._handlers)

    def __contains__(self, stage: int) -> bool:
        return stage in self._handlers

    def dispatch(
        self,
        context: EndpointContext,
        request: AuthorizeRequest,
        decode_error: DecodeError | None,
    ) -> Responder | None:
        handler = self._handlers.get(request.stage)
        if handler is None:
            logger.warning("No handler registered for stage %s; answering 500", request.stage)
            return status_text_response(status.HTTP_500_INTERNAL_SERVER_ERROR)
        return handler(context, request, decode_error)

    __call__ = dispatch
