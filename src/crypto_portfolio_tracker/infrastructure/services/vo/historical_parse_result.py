from dataclasses import dataclass, field
from typing import Generic, TypeVar

E = TypeVar("E")


@dataclass(frozen=True, kw_only=True)
class HistoricalParseWarning:
    line_number: int
    line: str
    reason: str


@dataclass(frozen=True, kw_only=True)
class HistoricalParseResult(Generic[E]):
    entries: list[E] = field(default_factory=list)
    warnings: list[HistoricalParseWarning] = field(default_factory=list)
