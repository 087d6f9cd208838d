"""
Event endpoints with Redis caching on list operations.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.core.config import get_settings
from app.core.errors import BusinessRuleFailure
from app.core.security import AuthUser, get_current_user, requires
from app.core.logging import get_logger
from app.models.event import EventStatus, EventType
from app.schemas.common import MessageResponse
from app.schemas.event import EventCreate, EventUpdate, EventResponse, EventListResponse, EventEnvelope
from app.schemas.inscription import InscriptionEnvelope, InscriptionResponse
from app.services.event_service import create_event, delete_event, get_event, list_events, update_event
from app.services.inscription_service import inscribe
from app.services.cache_service import (
    EventListFilters,
    get_cached_event_list,
    set_cached_event_list,
    invalidate_all_event_lists,
    invalidate_event,
)

logger = get_logger(__name__)
router = APIRouter(prefix="/eventos", tags=["Eventos"])

LISTABLE_STATUSES = {s.value for s in EventStatus} | {"all"}
LISTABLE_TYPES = {t.value for t in EventType} | {"all"}


@router.post("", response_model=EventEnvelope, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    event_data: EventCreate,
    user: AuthUser = Depends(requires("events.create")),
    db: AsyncSession = Depends(get_db),
):
    """Create a new event. Requires authentication."""
    event = await create_event(db, event_data, user.id)
    # A new event changes which events every listing shows
    await invalidate_all_event_lists()
    return EventEnvelope(data=EventResponse.model_validate(event), message="Evento creado exitosamente")


@router.get("", response_model=EventListResponse)
async def list_events_endpoint(
    status_filter: str = Query("published", alias="status"),
    type_filter: Optional[str] = Query(None, alias="type"),
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """
    List events with filters and pagination.
    Pages are cached in Redis and invalidated per event when a
    participant count changes.
    """
    if status_filter not in LISTABLE_STATUSES:
        raise BusinessRuleFailure(f"Estado inválido: {status_filter}")
    if type_filter is not None and type_filter not in LISTABLE_TYPES:
        raise BusinessRuleFailure(f"Tipo inválido: {type_filter}")

    filters = EventListFilters(
        status=status_filter,
        type=type_filter,
        search=search,
        page=page,
        limit=limit or get_settings().EVENT_LIST_DEFAULT_LIMIT,
    )

    cached = await get_cached_event_list(filters)
    if cached:
        logger.info("events_list_cache_hit", page=page)
        cached["cached"] = True
        return EventListResponse.model_validate(cached)

    events, pagination = await list_events(db, filters)
    response = EventListResponse(
        data=[EventResponse.model_validate(e) for e in events],
        pagination=pagination,
        cached=False,
    )

    await set_cached_event_list(
        filters,
        response.model_dump(mode="json", by_alias=True),
        event_ids=[e.id for e in events],
    )
    return response


@router.get("/{event_id}", response_model=EventEnvelope)
async def get_event_endpoint(
    event_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Get a single event by ID. Not cached (needs the live participant count)."""
    event = await get_event(db, event_id)
    return EventEnvelope(data=EventResponse.model_validate(event))


@router.post(
    "/{event_id}/inscribirse",
    response_model=InscriptionEnvelope,
    status_code=status.HTTP_201_CREATED,
)
async def inscribe_endpoint(
    event_id: int,
    user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Register the authenticated user for an event."""
    inscription = await inscribe(db, event_id, user)
    return InscriptionEnvelope(
        data=InscriptionResponse.model_validate(inscription),
        message="Te has inscrito exitosamente al evento",
    )


@router.put("/{event_id}", response_model=EventEnvelope)
async def update_event_endpoint(
    event_id: int,
    event_data: EventUpdate,
    user: AuthUser = Depends(requires("events.manage")),
    db: AsyncSession = Depends(get_db),
):
    """Update an event. Staff only."""
    event, listing_changed = await update_event(db, event_id, event_data)
    if listing_changed:
        await invalidate_all_event_lists()
    else:
        await invalidate_event(event_id)
    return EventEnvelope(data=EventResponse.model_validate(event), message="Evento actualizado exitosamente")


@router.delete("/{event_id}", response_model=MessageResponse)
async def delete_event_endpoint(
    event_id: int,
    user: AuthUser = Depends(requires("events.manage")),
    db: AsyncSession = Depends(get_db),
):
    """Delete an event and its inscriptions. Staff only."""
    await delete_event(db, event_id)
    # Later pages shift when an event disappears
    await invalidate_all_event_lists()
    return MessageResponse(message="Evento eliminado exitosamente")
