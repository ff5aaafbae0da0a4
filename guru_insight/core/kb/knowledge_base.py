"""Alert knowledge base: ordered table lookup with hint expansion.

The table is read once and never mutated, so any number of threads may call
:meth:`KnowledgeBase.lookup` at the same time; hint expansion uses a
per-thread scratch buffer.
"""
from __future__ import annotations

import logging
import random
from functools import lru_cache
from typing import Iterator, Optional

from guru_insight.core.codes import check_code, format_code
from guru_insight.core.config import InsightConfig
from guru_insight.core.errors import AllocationFailure, TableValidationError
from guru_insight.core.expand.expand_hint import DEFAULT_CAPACITY, expand_hint
from guru_insight.core.expand.token_table import load_and_merge
from guru_insight.core.io.load_table import load_table
from guru_insight.core.model import AlertEntry, AlertTable, LookupResult, TokenTable
from guru_insight.core.validate.validate_table import validate_table

logger = logging.getLogger(__name__)


class KnowledgeBase:
    def __init__(
        self,
        table: AlertTable,
        tokens: TokenTable,
        *,
        buffer_capacity: int = DEFAULT_CAPACITY,
    ) -> None:
        self.table = table
        self.tokens = tokens
        self.buffer_capacity = buffer_capacity

    def __len__(self) -> int:
        return len(self.table.entries)

    def __iter__(self) -> Iterator[AlertEntry]:
        return iter(self.table.entries)

    @property
    def entry_count(self) -> int:
        """Number of catalogued rows; the sentinel is not counted."""
        return len(self.table.entries)

    def find_entry(self, code: int) -> Optional[AlertEntry]:
        """First row in declaration order whose code equals *code*."""
        check_code(code)
        for entry in self.table.entries:
            if entry.code == code:
                return entry
        return None

    def lookup(self, code: int) -> Optional[LookupResult]:
        """Return an expanded, caller-owned result, or None for an uncatalogued code.

        Raises AllocationFailure when the result cannot be built; nothing from
        the failed call is kept.
        """
        entry = self.find_entry(code)
        if entry is None:
            logger.debug("no entry for alert %s", format_code(code))
            return None

        try:
            hint = expand_hint(entry.hint, self.tokens, capacity=self.buffer_capacity)
            return LookupResult(entry=entry, hint=hint)
        except MemoryError as e:
            logger.error("out of memory expanding alert %s", format_code(code))
            raise AllocationFailure(
                code="E_ALLOCATION",
                message="could not allocate the lookup result",
                file=self.table.source,
                path=format_code(code),
            ) from e

    def release(self, result: Optional[LookupResult]) -> None:
        if result is None:
            return
        result.release()

    def random_code(self, rng: Optional[random.Random] = None) -> int:
        """Pick a catalogued code uniformly by row (self-test mode)."""
        if not self.table.entries:
            raise LookupError("alert table has no entries")
        chooser = rng if rng is not None else random
        return chooser.choice(self.table.entries).code


def load_knowledge_base(config: Optional[InsightConfig] = None) -> KnowledgeBase:
    """Load, validate and assemble a knowledge base from configured files.

    Raises TableLoadError for an unreadable table, TableValidationError (the
    first finding; use validate_table directly to get all of them) for a
    malformed table, FileNotFoundError for a missing token override file and
    TokenConfigError for an unreadable or malformed one.
    """
    cfg = config if config is not None else InsightConfig()
    raw = load_table(cfg.table_file)
    table, errors = validate_table(raw)
    if errors or table is None:
        for err in errors:
            logger.debug("%s", err)
        raise errors[0] if errors else TableValidationError(
            code="E_INVALID_TABLE", message="table failed validation", file=raw.get("__file__")
        )

    tokens = load_and_merge(cfg.token_file)
    logger.info(
        "loaded %d alert entries from %s (token table %s)",
        len(table.entries),
        table.source,
        tokens.version,
    )
    return KnowledgeBase(table, tokens, buffer_capacity=cfg.buffer_capacity)


@lru_cache(maxsize=1)
def default_knowledge_base() -> KnowledgeBase:
    """The bundled table with built-in tokens, built on first use."""
    return load_knowledge_base()


def lookup(code: int) -> Optional[LookupResult]:
    return default_knowledge_base().lookup(code)


def release(result: Optional[LookupResult]) -> None:
    default_knowledge_base().release(result)


def entry_count() -> int:
    return default_knowledge_base().entry_count
