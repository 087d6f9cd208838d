"""
Inscription lifecycle: register, read, cancel.

CONSISTENCY STRATEGY
====================

The participant counter:
  eventos.current_participants is the only shared mutable value here. It is
  never read, adjusted in Python and written back. Both directions are
  single conditional UPDATE statements:

    register: SET n = n + 1 WHERE id = :id AND (max IS NULL OR n < max)
    cancel:   SET n = n - 1 WHERE id = :id AND n > 0

  Zero matched rows means "event full" on register and "already at the
  floor" on cancel. Concurrent requests therefore cannot lose updates, exceed
  capacity or drive the counter negative.

Write grouping:
  Registering inserts the row and claims the seat in one transaction.
  Cancelling delegates to the configured CancellationStrategy
  (see services/strategy_factory.py).

Cache:
  Listing cache entries are invalidated after the database commit, never
  before, and only for the affected event (tagged invalidation). Cache
  failures never fail the operation.
"""

from typing import Optional

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import (
    AppError, AuthenticationRequired, BusinessRuleFailure, InternalFailure, NotFound, Unauthorized,
)
from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.metrics import inscription_latency, record_inscription_operation
from app.core.security import AuthUser, require_permission
from app.db.session import is_unique_violation, storage_errors
from app.models.event import Event, EventStatus
from app.models.inscription import Inscription, InscriptionStatus
from app.services.cache_service import invalidate_event
from app.services.interfaces.cancellation import CancellationStrategy
from app.services.strategy_factory import get_cancellation

logger = get_logger(__name__)

INSCRIPTION_NOT_FOUND = "Inscripción no encontrada"
ALREADY_INSCRIBED = "Ya estás inscrito en este evento"


async def _load_inscription(db: AsyncSession, inscription_id: str) -> Inscription:
    async with storage_errors(
        db, "Error obteniendo inscripción", "inscription_lookup_failed", inscription_id=inscription_id
    ):
        result = await db.execute(select(Inscription).where(Inscription.id == inscription_id))
        inscription = result.scalar_one_or_none()
    if not inscription:
        raise NotFound(INSCRIPTION_NOT_FOUND)
    return inscription


def _can_act_on(user: AuthUser, inscription: Inscription, action: str) -> bool:
    """`action` is "read" or "cancel"; owners need the .own permission, others .any plus the override."""
    if user.id == inscription.user_id:
        return user.has_permission(f"inscriptions.{action}.own")
    return get_settings().ADMIN_CANCEL_OVERRIDE and user.has_permission(f"inscriptions.{action}.any")


async def get_inscription(db: AsyncSession, inscription_id: str, user: AuthUser) -> Inscription:
    """Get a single inscription owned by the caller."""
    inscription = await _load_inscription(db, inscription_id)
    if not _can_act_on(user, inscription, "read"):
        raise Unauthorized("No autorizado")
    return inscription


async def get_user_inscriptions(db: AsyncSession, user: AuthUser) -> list[Inscription]:
    """All inscriptions of a user, newest first, with their event loaded."""
    require_permission(user, "inscriptions.read.own")
    async with storage_errors(db, "Error obteniendo inscripciones", "inscription_list_failed", user_id=user.id):
        result = await db.execute(
            select(Inscription)
            .options(selectinload(Inscription.event))
            .where(Inscription.user_id == user.id)
            .order_by(Inscription.created_at.desc())
        )
        return list(result.scalars().all())


async def inscribe(db: AsyncSession, event_id: int, user: AuthUser) -> Inscription:
    """
    Register the caller for an event and claim one seat.
    Raises NotFound for a missing event and BusinessRuleFailure when the
    event is closed, full, or the caller is already registered.
    """
    with inscription_latency.labels(operation="inscribe").time():
        try:
            require_permission(user, "inscriptions.create")
            inscription = await _inscribe(db, event_id, user)
        except AppError as e:
            record_inscription_operation("inscribe", e.code)
            raise

    record_inscription_operation("inscribe", "success")
    await invalidate_event(event_id)
    return inscription


async def _inscribe(db: AsyncSession, event_id: int, user: AuthUser) -> Inscription:
    async with storage_errors(
        db, "Error al inscribirse en el evento", "inscription_lookup_failed", event_id=event_id, user_id=user.id
    ):
        event = (await db.execute(select(Event).where(Event.id == event_id))).scalar_one_or_none()
        if not event:
            raise NotFound("Evento no encontrado")

        if event.status != EventStatus.PUBLISHED.value or not event.registration_open:
            raise BusinessRuleFailure("Las inscripciones para este evento están cerradas")

        existing = await db.execute(
            select(Inscription.id).where(
                Inscription.user_id == user.id,
                Inscription.event_id == event_id,
                Inscription.status != InscriptionStatus.CANCELLED.value,
            )
        )
        if existing.scalar_one_or_none():
            raise BusinessRuleFailure(ALREADY_INSCRIBED)

    event_full = BusinessRuleFailure("El evento ha alcanzado el límite máximo de participantes")
    if event.is_full:
        raise event_full

    try:
        claimed = await db.execute(
            update(Event)
            .where(
                Event.id == event_id,
                or_(
                    Event.max_participants.is_(None),
                    Event.current_participants < Event.max_participants,
                ),
            )
            .values(current_participants=Event.current_participants + 1)
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount == 0:
            await db.rollback()
            logger.warning("inscription_rejected_full", event_id=event_id, user_id=user.id)
            raise event_full

        inscription = Inscription(
            user_id=user.id,
            event_id=event_id,
            status=InscriptionStatus.CONFIRMED.value,
        )
        db.add(inscription)
        await db.flush()
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        if is_unique_violation(e):
            # Lost a race against a concurrent registration of the same user
            raise BusinessRuleFailure(ALREADY_INSCRIBED)
        # The token names a user the store does not know
        logger.warning("inscription_unknown_user", event_id=event_id, user_id=user.id, error=str(e.orig))
        raise AuthenticationRequired("Usuario no registrado")
    except SQLAlchemyError:
        await db.rollback()
        logger.error("inscription_create_failed", event_id=event_id, user_id=user.id, exc_info=True)
        raise InternalFailure("Error al inscribirse en el evento")

    logger.info(
        "inscription_created",
        inscription_id=inscription.id,
        event_id=event_id,
        user_id=user.id,
    )
    return inscription


async def cancel_inscription(
    db: AsyncSession,
    inscription_id: str,
    user: AuthUser,
    strategy: Optional[CancellationStrategy] = None,
) -> None:
    """
    Cancel an inscription: delete it, release its seat, drop stale listings.

    Failure kinds:
      NotFound         - unknown id, including a second cancel of the same id
      Unauthorized     - caller does not own the inscription
      InternalFailure  - storage error, nothing applied
      PartiallyApplied - row deleted, counter not decremented
    """
    strategy = strategy or get_cancellation()

    with inscription_latency.labels(operation="cancel").time():
        try:
            inscription = await _load_inscription(db, inscription_id)
            if not _can_act_on(user, inscription, "cancel"):
                logger.warning(
                    "inscription_cancel_forbidden",
                    inscription_id=inscription_id,
                    owner_id=inscription.user_id,
                    user_id=user.id,
                )
                raise Unauthorized("No autorizado para cancelar esta inscripción")

            event_id = inscription.event_id
            released = await strategy.remove(db, inscription)
        except AppError as e:
            record_inscription_operation("cancel", e.code)
            raise

    record_inscription_operation("cancel", "success")
    logger.info(
        "inscription_cancelled",
        inscription_id=inscription_id,
        event_id=event_id,
        user_id=user.id,
        seat_released=released,
        strategy=strategy.name,
    )

    await invalidate_event(event_id)
