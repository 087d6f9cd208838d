"""
Event service handling create, read, update, delete and filtered listing.
"""

import math
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, select, func, or_, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AuthenticationRequired, BusinessRuleFailure, InternalFailure, NotFound
from app.core.logging import get_logger
from app.db.session import storage_errors
from app.models.event import Event
from app.models.inscription import Inscription
from app.schemas.event import EventCreate, EventUpdate, Pagination
from app.services.cache_service import EventListFilters

logger = get_logger(__name__)

EVENT_NOT_FOUND = "Evento no encontrado"
# Columns that may be set back to NULL by an update
NULLABLE_FIELDS = {"description", "location", "max_participants"}
# Changing any of these can move the event in or out of a cached listing
LISTING_FIELDS = {"title", "description", "location", "type", "status"}


def _future_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    if value <= datetime.now(timezone.utc):
        raise BusinessRuleFailure("La fecha del evento debe ser futura")
    return value


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


async def create_event(db: AsyncSession, event_data: EventCreate, organizer_id: int) -> Event:
    """Create a new event with no participants."""
    event = Event(
        title=event_data.title,
        description=event_data.description,
        date=_future_utc(event_data.date),
        location=event_data.location,
        type=event_data.type.value,
        status=event_data.status.value,
        registration_open=event_data.registration_open,
        max_participants=event_data.max_participants,
        current_participants=0,
        organizer_id=organizer_id,
    )
    try:
        db.add(event)
        await db.flush()
        await db.commit()
    except IntegrityError as e:
        # organizer_id must reference a users row
        await db.rollback()
        logger.warning("event_unknown_organizer", organizer_id=organizer_id, error=str(e.orig))
        raise AuthenticationRequired("Usuario no registrado")
    except SQLAlchemyError:
        await db.rollback()
        logger.error("event_create_failed", organizer_id=organizer_id, exc_info=True)
        raise InternalFailure("Error creando evento")

    logger.info("event_created", event_id=event.id, title=event.title, status=event.status)
    return event


async def get_event(db: AsyncSession, event_id: int) -> Event:
    """Get a single event by ID."""
    async with storage_errors(db, "Error obteniendo evento", "event_lookup_failed", event_id=event_id):
        result = await db.execute(select(Event).where(Event.id == event_id))
        event = result.scalar_one_or_none()

    if not event:
        raise NotFound(EVENT_NOT_FOUND)
    return event


async def update_event(db: AsyncSession, event_id: int, event_data: EventUpdate) -> tuple[Event, bool]:
    """
    Apply the fields present in the request.

    Returns the refreshed event and whether a listing-relevant field changed.
    max_participants is applied with the same conditional UPDATE as the
    participant counter, so it can never drop below the current tally.
    """
    values = {
        name: value
        for name, value in event_data.model_dump(exclude_unset=True).items()
        if value is not None or name in NULLABLE_FIELDS
    }
    if not values:
        raise BusinessRuleFailure("No hay campos para actualizar")
    if "date" in values:
        values["date"] = _future_utc(values["date"])
    for name in ("type", "status"):
        if name in values:
            values[name] = getattr(values[name], "value", values[name])

    event = await get_event(db, event_id)

    new_max: Optional[int] = values.get("max_participants")
    async with storage_errors(db, "Error actualizando evento", "event_update_failed", event_id=event_id):
        stmt = update(Event).where(Event.id == event_id)
        if new_max is not None:
            stmt = stmt.where(Event.current_participants <= new_max)
        result = await db.execute(stmt.values(**values).execution_options(synchronize_session=False))
        if result.rowcount == 0:
            await db.rollback()
            raise BusinessRuleFailure("El cupo máximo no puede ser menor que los inscritos actuales")
        await db.commit()
        await db.refresh(event)

    logger.info("event_updated", event_id=event_id, fields=sorted(values))
    return event, bool(LISTING_FIELDS & values.keys())


async def delete_event(db: AsyncSession, event_id: int) -> None:
    """Delete an event together with its inscriptions."""
    await get_event(db, event_id)

    async with storage_errors(db, "Error eliminando evento", "event_delete_failed", event_id=event_id):
        removed = await db.execute(
            delete(Inscription)
            .where(Inscription.event_id == event_id)
            .execution_options(synchronize_session=False)
        )
        await db.execute(
            delete(Event).where(Event.id == event_id).execution_options(synchronize_session=False)
        )
        await db.commit()

    logger.info("event_deleted", event_id=event_id, inscriptions_removed=removed.rowcount)


async def list_events(db: AsyncSession, filters: EventListFilters) -> tuple[list[Event], Pagination]:
    """
    List events matching the filters, newest first.
    status "all" disables the status filter; search matches title,
    description and location case-insensitively, with % and _ taken literally.
    """
    query = select(Event)

    if filters.status and filters.status != "all":
        query = query.where(Event.status == filters.status)
    if filters.type and filters.type != "all":
        query = query.where(Event.type == filters.type)

    search = filters.normalized_search
    if search:
        pattern = _like_pattern(search)
        query = query.where(
            or_(
                func.lower(Event.title).like(pattern, escape="\\"),
                func.lower(func.coalesce(Event.description, "")).like(pattern, escape="\\"),
                func.lower(func.coalesce(Event.location, "")).like(pattern, escape="\\"),
            )
        )

    async with storage_errors(db, "Error obteniendo eventos", "event_list_failed", filters=str(filters)):
        count_query = select(func.count()).select_from(query.subquery())
        total = (await db.execute(count_query)).scalar() or 0

        events_query = (
            query
            .order_by(Event.created_at.desc(), Event.id.desc())
            .offset((filters.page - 1) * filters.limit)
            .limit(filters.limit)
        )
        result = await db.execute(events_query)
        events = list(result.scalars().all())

    total_pages = math.ceil(total / filters.limit) if filters.limit else 0
    pagination = Pagination(
        page=filters.page,
        limit=filters.limit,
        total=total,
        total_pages=total_pages,
        has_next=filters.page < total_pages,
        has_prev=filters.page > 1,
    )
    return events, pagination
