"""Text rendering hook for operation outputs.

Output dataclasses implement `format_text()` themselves, so this lives in
`lib` and the CLI package stays a consumer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class FormatContext:
    width: int = 80


@runtime_checkable
class TextFormattable(Protocol):
    def format_text(self, ctx: FormatContext | None = None) -> str: ...
