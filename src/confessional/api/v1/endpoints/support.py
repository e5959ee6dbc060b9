# src/confessional/api/v1/endpoints/support.py
"""Supportive AI response endpoint."""

from fastapi import APIRouter, Request

from confessional.core.rate_limit import api_limit
from confessional.schemas.support import SupportRequest, SupportResponse

from ..dependencies import SupportResponderDep

router = APIRouter(tags=["support"])


@router.post("/ai-respond", response_model=SupportResponse)
@api_limit
async def ai_respond(
    request: Request,
    payload: SupportRequest,
    responder: SupportResponderDep,
) -> SupportResponse:
    """Return a brief, non-judgmental acknowledgement.

    The confession itself is never decrypted or forwarded; the reply is
    generated without its content.
    """
    return SupportResponse(response=await responder.respond())
