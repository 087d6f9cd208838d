"""
Inscription endpoints: read and cancel a single inscription, list my own.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.core.security import AuthUser, get_current_user
from app.schemas.common import MessageResponse
from app.schemas.event import EventResponse
from app.schemas.inscription import InscriptionEnvelope, InscriptionListEnvelope, InscriptionResponse
from app.services.inscription_service import cancel_inscription, get_inscription, get_user_inscriptions

router = APIRouter(prefix="/inscripciones", tags=["Inscripciones"])


@router.get("/mis-inscripciones", response_model=InscriptionListEnvelope)
async def list_my_inscriptions(
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Inscriptions of the authenticated user, each with its event."""
    inscriptions = await get_user_inscriptions(db, user)
    return InscriptionListEnvelope(
        data=[
            InscriptionResponse.model_validate(i).model_copy(
                update={"evento": EventResponse.model_validate(i.event) if i.event else None}
            )
            for i in inscriptions
        ]
    )


@router.get("/{inscription_id}", response_model=InscriptionEnvelope)
async def get_inscription_endpoint(
    inscription_id: str,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    inscription = await get_inscription(db, inscription_id, user)
    return InscriptionEnvelope(data=InscriptionResponse.model_validate(inscription))


@router.delete("/{inscription_id}", response_model=MessageResponse)
async def cancel_inscription_endpoint(
    inscription_id: str,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Cancel an inscription owned by the caller.

    Deletes the registration, releases the seat on the event and invalidates
    the cached listings that show that event.
    """
    await cancel_inscription(db, inscription_id, user)
    return MessageResponse(message="Inscripción cancelada exitosamente")
