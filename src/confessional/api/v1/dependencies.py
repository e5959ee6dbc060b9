"""Shared API dependencies for the confession services."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from confessional.services.confessions import ConfessionService
from confessional.services.responder import SupportResponder


def _app_state(request: Request, name: str) -> object:
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Service not initialized",
        )
    return value


def get_confession_service(request: Request) -> ConfessionService:
    """Return the confession service created at application startup."""
    return _app_state(request, "confession_service")  # type: ignore[return-value]


def get_support_responder(request: Request) -> SupportResponder:
    """Return the AI responder created at application startup."""
    return _app_state(request, "support_responder")  # type: ignore[return-value]


# Type aliases for dependency injection
ConfessionServiceDep = Annotated[ConfessionService, Depends(get_confession_service)]
SupportResponderDep = Annotated[SupportResponder, Depends(get_support_responder)]
