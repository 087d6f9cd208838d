"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .cancellation import CancellationStrategy
from .transactional_cancellation import TransactionalCancellation
from .sequential_cancellation import SequentialCancellation

__all__ = ['CancellationStrategy', 'TransactionalCancellation', 'SequentialCancellation']
