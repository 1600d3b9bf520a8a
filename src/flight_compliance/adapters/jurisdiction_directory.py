"""Jurisdiction directory adapter for flight-compliance.

Maps free-text country names, codes and aliases to canonical jurisdiction
codes. The full jurisdiction set is fetched once per directory instance and
kept until ``invalidate()`` is called. One directory is built per process
in the application lifespan and injected wherever lookups are needed.
"""

import asyncio

from flight_compliance.core.context import JurisdictionEntry
from flight_compliance.core.interfaces import (
    IJurisdictionDirectory,
    IJurisdictionRepository,
)
from flight_compliance.observability import get_logger

logger = get_logger(__name__)


def normalize_text(text: str | None) -> str | None:
    """Trim text, returning None when nothing is left."""
    if not text:
        return None
    trimmed = text.strip()
    return trimmed or None


class JurisdictionDirectory(IJurisdictionDirectory):
    """Lazily loaded, process-lifetime jurisdiction lookup table.

    A failed load is logged and cached as an empty directory, so every
    later lookup returns None instead of raising.

    Args:
        repository: Source of jurisdiction reference data.
    """

    def __init__(self, repository: IJurisdictionRepository) -> None:
        self._repository = repository
        self._entries: tuple[JurisdictionEntry, ...] | None = None
        self._lock = asyncio.Lock()

    @property
    def is_loaded(self) -> bool:
        """Whether the jurisdiction set has been fetched."""
        return self._entries is not None

    async def _load(self) -> tuple[JurisdictionEntry, ...]:
        if self._entries is not None:
            return self._entries
        async with self._lock:
            # Another task may have loaded while this one waited
            if self._entries is not None:
                return self._entries
            try:
                entries = tuple(await self._repository.list_all())
            except Exception as exc:  # noqa: BLE001
                logger.error(
                    "Jurisdiction directory load failed; lookups will resolve to None",
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                entries = ()
            else:
                logger.info("Jurisdiction directory loaded", count=len(entries))
            self._entries = entries
            return entries

    async def resolve(self, raw_text: str | None) -> str | None:
        """Resolve free text to a canonical jurisdiction code.

        Matching is case-insensitive against the canonical name, the code
        and every alias.

        Args:
            raw_text: Country name, code or alias; surrounding whitespace is ignored.

        Returns:
            The jurisdiction code, or None for empty or unknown text.
        """
        normalized = normalize_text(raw_text)
        if normalized is None:
            return None

        target = normalized.lower()
        for entry in await self._load():
            if entry.matches(target):
                return entry.code
        return None

    def invalidate(self) -> None:
        """Drop the cached set; the next lookup fetches it again."""
        self._entries = None
        logger.debug("Jurisdiction directory invalidated")


__all__ = ["JurisdictionDirectory", "normalize_text"]
