"""In-memory estate repository with optimistic concurrency."""

from __future__ import annotations

import logging
from collections.abc import Callable
from copy import deepcopy
from datetime import datetime
from typing import Any

from .errors import ConcurrencyConflictError, NotFoundError
from .estate import Estate
from .utils import utcnow

logger = logging.getLogger(__name__)

__all__ = ["InMemoryEstateRepository"]


class InMemoryEstateRepository:
    """
    Snapshot store keyed by estate id.

    ``save`` is a compare-and-swap on ``version``: the stored version must
    equal the version the estate was loaded with (``None`` for an estate that
    has never been stored), otherwise ``ConcurrencyConflictError`` is raised
    and nothing is written.
    """

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self._records: dict[str, dict[str, Any]] = {}
        self._clock = clock

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, estate_id: str) -> bool:
        return self.exists(estate_id)

    def get(self, estate_id: str) -> Estate:
        try:
            record = self._records[estate_id]
        except KeyError:
            raise NotFoundError("Estate", estate_id) from None
        estate = Estate.from_snapshot(deepcopy(record), clock=self._clock)
        estate.loaded_version = record["version"]
        return estate

    def save(self, estate: Estate) -> None:
        stored = self._records.get(estate.id)
        stored_version = None if stored is None else stored["version"]
        if stored_version != estate.loaded_version:
            logger.warning(
                "Rejected save of estate %s: loaded v%s, stored v%s",
                estate.id,
                estate.loaded_version,
                stored_version,
            )
            raise ConcurrencyConflictError(estate.id, estate.loaded_version, stored_version)
        self._records[estate.id] = deepcopy(estate.to_snapshot())
        estate.loaded_version = estate.version
        logger.debug("Saved estate %s at v%d", estate.id, estate.version)

    def delete(self, estate_id: str) -> None:
        if self._records.pop(estate_id, None) is None:
            raise NotFoundError("Estate", estate_id)

    def exists(self, estate_id: str) -> bool:
        return estate_id in self._records

    def ids(self) -> list[str]:
        return sorted(self._records)
