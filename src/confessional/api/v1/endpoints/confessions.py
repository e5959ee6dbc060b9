# src/confessional/api/v1/endpoints/confessions.py
"""Confession endpoints: submit, fetch and delete encrypted blobs."""

import logging

from fastapi import APIRouter, HTTPException, Request, status

from confessional.core.rate_limit import api_limit
from confessional.schemas.confession import (
    ConfessionCreate,
    ConfessionCreated,
    ConfessionDeleted,
    ConfessionResponse,
)
from confessional.services.errors import InvalidInputError, StorageFailureError

from ..dependencies import ConfessionServiceDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/confess", tags=["confessions"])

NOT_FOUND_DETAIL = "Confession not found or already deleted"


def _storage_failure() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error",
    )


@router.post("", response_model=ConfessionCreated)
@api_limit
async def submit_confession(
    request: Request,
    payload: ConfessionCreate,
    service: ConfessionServiceDep,
) -> ConfessionCreated:
    """Store an already-encrypted confession and return its id."""
    try:
        confession_id = service.create(
            session_id=payload.session_id,
            ciphertext=payload.ciphertext,
            nonce=payload.nonce,
            timestamp=payload.timestamp,
        )
    except InvalidInputError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except StorageFailureError as exc:
        raise _storage_failure() from exc

    return ConfessionCreated(id=confession_id)


@router.get("/{confession_id}", response_model=ConfessionResponse)
@api_limit
async def read_confession(
    request: Request,
    confession_id: str,
    service: ConfessionServiceDep,
) -> ConfessionResponse:
    """Return the encrypted confession; the client decrypts it."""
    try:
        confession = service.fetch(confession_id)
    except StorageFailureError as exc:
        logger.error("Failed to load confession", exc_info=True)
        raise _storage_failure() from exc

    if confession is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=NOT_FOUND_DETAIL,
        )

    return ConfessionResponse(
        ciphertext=confession.ciphertext,
        nonce=confession.nonce,
        timestamp=confession.timestamp,
    )


@router.delete("/{confession_id}", response_model=ConfessionDeleted)
@api_limit
async def delete_confession(
    request: Request,
    confession_id: str,
    service: ConfessionServiceDep,
) -> ConfessionDeleted:
    """Permanently delete a confession before it expires."""
    try:
        deleted = service.delete(confession_id)
    except StorageFailureError as exc:
        logger.error("Failed to delete confession", exc_info=True)
        raise _storage_failure() from exc

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Confession not found",
        )

    return ConfessionDeleted()
