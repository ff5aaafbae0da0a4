from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional

from guru_insight.core.codes import is_fatal, subsystem_name


@dataclass(frozen=True)
class AlertEntry:
    code: int
    description: str
    hint: str  # may carry TOK_<name> references


@dataclass(frozen=True)
class TokenTable:
    version: str
    tokens: Mapping[str, str]

    def get(self, name: str) -> Optional[str]:
        return self.tokens.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self.tokens

    def __len__(self) -> int:
        return len(self.tokens)


@dataclass(frozen=True)
class AlertTable:
    schema_version: str
    token_table_version: Optional[str]
    entries: tuple[AlertEntry, ...]  # declaration order, sentinel excluded
    sentinel: AlertEntry
    source: Optional[str] = None


@dataclass
class LookupResult:
    """Caller-owned outcome of a successful lookup.

    ``entry`` is borrowed from the knowledge base table and lives as long as
    the table does. ``hint`` is the expanded text built for this result only;
    :meth:`release` drops it. Releasing never touches the table.
    """

    entry: AlertEntry
    hint: Optional[str]
    _released: bool = field(default=False, repr=False, compare=False)

    @property
    def code(self) -> int:
        return self.entry.code

    @property
    def description(self) -> str:
        return self.entry.description

    @property
    def is_fatal(self) -> bool:
        return is_fatal(self.entry.code)

    @property
    def subsystem(self) -> Optional[str]:
        return subsystem_name(self.entry.code)

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        self.hint = None
        self._released = True

    def __enter__(self) -> "LookupResult":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()
