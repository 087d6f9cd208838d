"""
Sequential cancellation - for stores that cannot group statements.
"""

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import InternalFailure, NotFound, PartiallyApplied
from app.core.logging import get_logger
from app.core.metrics import participant_counter_drift
from app.models.inscription import Inscription
from app.services.interfaces.cancellation import (
    CancellationStrategy,
    delete_inscription_row,
    release_seat,
)

logger = get_logger(__name__)


class SequentialCancellation(CancellationStrategy):
    """
    Commit the delete, then run and commit the decrement.

    The decrement only ever runs after the delete committed. If it fails,
    the failure is reported as PartiallyApplied instead of a generic error
    so the drifted counter can be found and repaired.

    Use when:
    - Each statement is its own round trip without a shared transaction
      (HTTP-fronted SQLite such as D1)
    """

    name = "sequential"

    async def remove(self, db: AsyncSession, inscription: Inscription) -> bool:
        inscription_id = inscription.id
        event_id = inscription.event_id
        holds_seat = inscription.counts_toward_capacity

        try:
            deleted = await delete_inscription_row(db, inscription_id)
            await db.commit()
        except SQLAlchemyError:
            await db.rollback()
            logger.error(
                "inscription_cancel_failed",
                inscription_id=inscription_id,
                event_id=event_id,
                strategy=self.name,
                step="delete",
                exc_info=True,
            )
            raise InternalFailure("Error cancelando inscripción")

        if not deleted:
            raise NotFound("Inscripción no encontrada")
        if not holds_seat:
            return False

        try:
            released = await release_seat(db, event_id)
            await db.commit()
        except SQLAlchemyError:
            await db.rollback()
            participant_counter_drift.inc()
            logger.error(
                "participant_counter_drift",
                inscription_id=inscription_id,
                event_id=event_id,
                strategy=self.name,
                step="decrement",
                exc_info=True,
            )
            raise PartiallyApplied(
                "La inscripción fue cancelada, pero el contador de participantes no se actualizó"
            )
        return released
