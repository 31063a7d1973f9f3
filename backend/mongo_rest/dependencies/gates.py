"""
Pre-route gates.

Gates run in the order they are listed; the first one that rejects a request
raises its own error and the route action is never invoked.
"""
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Sequence

import structlog
from fastapi import Request

from mongo_rest.config import Settings
from mongo_rest.core.access_control import AccessControl
from mongo_rest.core.errors import AccessDeniedError, AuthError
from mongo_rest.services.auth_service import AuthService


@dataclass(frozen=True)
class RouteContext:
    """Target of a request as resolved by the dispatcher."""
    request: Request
    action: str
    database: Optional[str] = None
    collection: Optional[str] = None
    document_id: Optional[str] = None

    @classmethod
    def from_request(cls, request: Request, action: str, settings: Settings) -> "RouteContext":
        params = request.path_params
        if settings.is_database_endpoint:
            database = settings.db.database
        else:
            database = params.get("db")
        return cls(
            request=request,
            action=action,
            database=database,
            collection=params.get("collection"),
            document_id=params.get("id"),
        )


GateCheck = Callable[[RouteContext], Awaitable[None]]


@dataclass(frozen=True)
class Gate:
    name: str
    check: GateCheck


class GatePipeline:
    """Ordered list of named gates."""

    def __init__(self, gates: Sequence[Gate] = ()):
        self.gates = tuple(gates)

    @property
    def names(self) -> list[str]:
        return [gate.name for gate in self.gates]

    async def run(self, context: RouteContext) -> None:
        for gate in self.gates:
            await gate.check(context)


def extract_token(request: Request) -> Optional[str]:
    """Token from the ``token`` query parameter or an ``Authorization: Bearer`` header."""
    token = request.query_params.get("token")
    if token:
        return token

    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


def authentication_gate(auth_service: AuthService, logger: structlog.BoundLogger) -> Gate:
    async def check(context: RouteContext) -> None:
        token = extract_token(context.request)
        if not token:
            logger.info("auth_rejected", reason="missing_token", path=context.request.url.path)
            raise AuthError("Authentication required")
        try:
            await auth_service.authenticate(token)
        except AuthError:
            logger.info("auth_rejected", reason="invalid_token", path=context.request.url.path)
            raise

    return Gate("authentication", check)


def access_control_gate(access_control: AccessControl, logger: structlog.BoundLogger) -> Gate:
    async def check(context: RouteContext) -> None:
        if not access_control.is_allowed(context.database, context.collection):
            logger.warning(
                "access_denied",
                database=context.database,
                collection=context.collection,
            )
            raise AccessDeniedError()

    return Gate("access-control", check)


def build_gate_pipeline(
    settings: Settings,
    auth_service: Optional[AuthService],
    logger: structlog.BoundLogger,
) -> GatePipeline:
    """Authentication first (when configured), then access control."""
    gates = []
    if auth_service is not None:
        gates.append(authentication_gate(auth_service, logger))
    gates.append(access_control_gate(settings.db_access_control, logger))
    return GatePipeline(gates)
