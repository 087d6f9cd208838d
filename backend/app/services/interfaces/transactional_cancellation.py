"""
Transactional cancellation - delete and decrement commit together.
"""

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import InternalFailure, NotFound
from app.core.logging import get_logger
from app.models.inscription import Inscription
from app.services.interfaces.cancellation import (
    CancellationStrategy,
    delete_inscription_row,
    release_seat,
)

logger = get_logger(__name__)


class TransactionalCancellation(CancellationStrategy):
    """
    Both statements run in the session's transaction and commit once.
    Any storage error rolls both back, so the counter never drifts.

    Use when:
    - The store supports multi-statement transactions (SQLite, PostgreSQL)
    """

    name = "transactional"

    async def remove(self, db: AsyncSession, inscription: Inscription) -> bool:
        inscription_id = inscription.id
        event_id = inscription.event_id
        holds_seat = inscription.counts_toward_capacity
        try:
            if not await delete_inscription_row(db, inscription_id):
                await db.rollback()
                raise NotFound("Inscripción no encontrada")
            released = await release_seat(db, event_id) if holds_seat else False
            await db.commit()
        except SQLAlchemyError:
            await db.rollback()
            logger.error(
                "inscription_cancel_failed",
                inscription_id=inscription_id,
                event_id=event_id,
                strategy=self.name,
                exc_info=True,
            )
            raise InternalFailure("Error cancelando inscripción")
        return released
