"""Coordinators - the action protocol and the router that serves it."""

from wordbox.coordinators.messages import (
    DATABASE_NOT_INITIALIZED,
    AddWordRequest,
    DeleteWordRequest,
    ErrorResponse,
    GetAllWordsRequest,
    Request,
    Response,
    SuccessResponse,
    UpdateWordRequest,
    parse_request,
)
from wordbox.coordinators.request_router import (
    RequestRouter,
    build_router,
    get_router,
    shutdown_router,
)

__all__ = [
    "AddWordRequest",
    "GetAllWordsRequest",
    "UpdateWordRequest",
    "DeleteWordRequest",
    "Request",
    "SuccessResponse",
    "ErrorResponse",
    "Response",
    "parse_request",
    "DATABASE_NOT_INITIALIZED",
    "RequestRouter",
    "build_router",
    "get_router",
    "shutdown_router",
]
