"""Render operation outputs for the terminal."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Final, Literal, cast

from pgmisc.lib.formatting import FormatContext, TextFormattable
from pgmisc.lib.serialization import to_jsonable

OutputFormat = Literal["text", "json", "porcelain"]
OUTPUT_FORMATS: Final[tuple[OutputFormat, ...]] = ("text", "json", "porcelain")


@dataclass(frozen=True, slots=True)
class OutputConfig:
    format: OutputFormat


def normalize_output_format(
    *,
    requested: str | None,
    json_mode: bool,
    porcelain_mode: bool,
) -> OutputFormat:
    """`--json` beats `--porcelain` beats `--format`; text by default."""

    if json_mode:
        return "json"
    if porcelain_mode:
        return "porcelain"
    normalized = (requested or "text").strip().lower()
    if normalized not in OUTPUT_FORMATS:
        raise SystemExit(f"--format must be one of: {', '.join(OUTPUT_FORMATS)}")
    return cast("OutputFormat", normalized)


def _porcelain_field(key: str, value: object) -> str:
    if value is None:
        rendered = ""
    elif isinstance(value, bool):
        rendered = str(value).lower()
    elif isinstance(value, (dict, list)):
        rendered = json.dumps(value, sort_keys=True)
    else:
        rendered = str(value)
    return f"{key}={rendered}"


def _porcelain_lines(payload: object) -> list[str]:
    if isinstance(payload, list):
        return [line for item in cast("list[object]", payload) for line in _porcelain_lines(item)]
    if isinstance(payload, dict):
        record = cast("dict[str, object]", payload)
        return ["\t".join(_porcelain_field(key, record[key]) for key in sorted(record))]
    return [str(payload)]


def render(value: Any, output_format: OutputFormat) -> str:
    """Render one payload; text mode falls back to indented JSON."""

    if output_format == "text" and isinstance(value, TextFormattable):
        return value.format_text(FormatContext())
    payload = to_jsonable(value)
    if output_format == "porcelain":
        return "\n".join(_porcelain_lines(payload))
    if output_format == "json":
        return json.dumps(payload, sort_keys=True)
    return json.dumps(payload, sort_keys=True, indent=2)


def emit(value: Any, config: OutputConfig) -> None:
    print(render(value, config.format))
