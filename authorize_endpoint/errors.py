"""
Errors for the authorization endpoint.
Decode errors are handed to stage handlers as data; responder errors are raised by respond().
"""
from fastapi import status


class AuthorizeEndpointError(Exception):
    """Base class for every error raised or returned by this package."""


class DecodeError(AuthorizeEndpointError):
    """The authorization request did not pass validation. Never aborts the pipeline."""


class MissingResponseType(DecodeError):
    def __init__(self) -> None:
        super().__init__("response_type is required but not set")


class ResponseTypeNotAllowed(DecodeError):
    def __init__(self, response_type: str) -> None:
        self.response_type = response_type
        super().__init__(f'response_type "{response_type}" is not allowed')


class ResponderError(AuthorizeEndpointError):
    """
    Raised by a Responder before anything is written.
    Carries the HTTP status and a user readable message for the fallback page.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    @property
    def message(self) -> str:
        return str(self)


class RedirectURIMissing(ResponderError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self) -> None:
        super().__init__("redirect_uri not set")


class RedirectURIMalformed(ResponderError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, reason: str) -> None:
        super().__init__(f"redirect_uri is misformed. {reason}")


class RedirectURINotAbsolute(ResponderError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, redirect_uri: str) -> None:
        self.redirect_uri = redirect_uri
        super().__init__(f'redirect_uri is misformed. expected a full URI but got "{redirect_uri}"')
