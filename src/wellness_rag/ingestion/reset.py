"""Destructive reset of the target collection at the start of a run."""

from __future__ import annotations

import logging

from wellness_rag.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)

RESET_BATCH_INDEX = 0


class ResetGuard:
    """Clear the collection exactly once, when batch 0 is entered.

    One guard is created per run.  Resuming a run from a later batch never
    satisfies :meth:`applies_to`, and once the reset has happened it cannot
    happen again within the same run.
    """

    def __init__(self, store: VectorStoreBase) -> None:
        self._store = store
        self.fired = False

    def applies_to(self, batch_index: int) -> bool:
        return batch_index == RESET_BATCH_INDEX and not self.fired

    def reset(self) -> int:
        """Delete every stored record; return the number deleted.

        Count or delete failures propagate as ``StoreUnavailableError``.
        """
        self.fired = True
        existing = self._store.count()
        if existing == 0:
            logger.info("No existing records in %r", self._store.collection_name)
            return 0

        logger.info("Found %d existing records in %r, deleting", existing, self._store.collection_name)
        deleted = self._store.delete_all()
        logger.info("Deleted %d existing records", deleted)
        return deleted
