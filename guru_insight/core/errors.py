from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional


Severity = Literal["error", "warning"]


@dataclass(frozen=True)
class InsightError(Exception):
    """Base error envelope. Prefer returning/printing these rather than raising raw exceptions."""

    code: str
    message: str
    file: Optional[str] = None
    path: Optional[str] = None
    severity: Severity = "error"

    def __str__(self) -> str:
        parts: list[str] = []
        if self.file:
            parts.append(self.file)
        if self.path:
            parts.append(self.path)
        loc = ":".join(parts) if parts else "<table>"
        return f"{loc}: {self.code}: {self.message}"


class TableLoadError(InsightError):
    pass


class TableValidationError(InsightError):
    pass


class AllocationFailure(InsightError):
    """A lookup matched but its result could not be materialized."""


class CodeFormatError(InsightError):
    pass


class ConfigError(InsightError):
    pass
