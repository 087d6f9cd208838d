"""
Cancellation strategy factory.
Configures how inscription cancellation groups its writes.
"""

from typing import Optional

from app.core.config import get_settings
from app.services.interfaces.cancellation import CancellationStrategy
from app.services.interfaces.sequential_cancellation import SequentialCancellation
from app.services.interfaces.transactional_cancellation import TransactionalCancellation


def get_cancellation_strategy() -> CancellationStrategy:
    """
    Build the configured strategy.

    - transactional (default): the store runs both statements in one transaction
    - sequential: statements commit one by one

    Selected via the CANCELLATION_STRATEGY env var.
    """
    strategy = get_settings().CANCELLATION_STRATEGY.lower()

    if strategy == "sequential":
        return SequentialCancellation()
    return TransactionalCancellation()


# Singleton instance
_strategy: Optional[CancellationStrategy] = None


def get_cancellation() -> CancellationStrategy:
    """Get cancellation strategy singleton."""
    global _strategy
    if _strategy is None:
        _strategy = get_cancellation_strategy()
    return _strategy
