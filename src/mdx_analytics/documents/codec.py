"""
Month document codec.

A document is a YAML header between two ``---`` lines followed by a
rendered markdown body::

    ---
    type: "page-views"
    year: 2026
    month: 1
    totalCount: 30
    ...
    ---

    # Page Views - January 2026

Keys are written bare (PyYAML quotes the ones that would not load back as
strings, such as ``'2026-01-05'``). Every string value is double-quoted so
that values such as ``"2026-01-05"`` or ``"true"`` read back as strings;
numbers and booleans are written bare. Nested fields (``topPaths``,
``eventTypes``, ``dailyTotals``...) are real YAML structures and survive a
round trip.
"""
import re
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

import yaml

from mdx_analytics.aggregation import MonthlyAggregate
from mdx_analytics.utils import get_logger
from .renderer import render_body

logger = get_logger()

DELIMITER = "---"
_HEADER_PATTERN = re.compile(r"\A---\n(.*?)\n---[ \t]*(?:\n|\Z)", re.DOTALL)


class _QuotedString(str):
    """A string value that must be emitted double-quoted."""


class _HeaderDumper(yaml.SafeDumper):
    pass


def _represent_quoted(dumper: yaml.SafeDumper, value: _QuotedString):
    return dumper.represent_scalar("tag:yaml.org,2002:str", str(value), style='"')


_HeaderDumper.add_representer(_QuotedString, _represent_quoted)


def _prepare(value: Any) -> Any:
    """Convert a header value into YAML-ready form with quoted strings."""
    if isinstance(value, dict):
        return {_prepare_key(k): _prepare(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_prepare(v) for v in value]
    if isinstance(value, (datetime, date)):
        return _QuotedString(value.isoformat())
    if isinstance(value, Enum):
        return _QuotedString(value.value)
    if isinstance(value, str):
        return _QuotedString(value)
    return value


def _prepare_key(key: Any) -> Any:
    # PyYAML quotes plain keys that would otherwise load as dates, bools or numbers
    if isinstance(key, int) and not isinstance(key, bool):
        return key
    if isinstance(key, Enum):
        return str(key.value)
    return str(key)


def encode_header(header: Dict[str, Any]) -> str:
    """Serialize a header mapping, preserving key order."""
    prepared = {str(key): _prepare(value) for key, value in header.items()}
    return yaml.dump(
        prepared,
        Dumper=_HeaderDumper,
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
        width=4096
    )


def encode(aggregate: MonthlyAggregate, body: Optional[str] = None) -> str:
    """
    Encode an aggregate into a full document.

    Args:
        aggregate: Aggregate to persist
        body: Pre-rendered body; rendered from the aggregate when omitted

    Returns:
        Document text
    """
    header_text = encode_header(aggregate.to_header())
    if body is None:
        body = render_body(aggregate)
    return f"{DELIMITER}\n{header_text}{DELIMITER}\n\n{body}"


def split_document(text: str) -> Optional[Tuple[Dict[str, Any], str]]:
    """
    Split a document into its decoded header and the body after it.

    Returns:
        (header, body), or None when the header block is missing, is not
        valid YAML, or is not a mapping
    """
    text = text.replace("\r\n", "\n")
    match = _HEADER_PATTERN.match(text)
    if not match:
        return None

    try:
        header = yaml.safe_load(match.group(1))
    except yaml.YAMLError as e:
        logger.warning(f"Unreadable document header: {e}")
        return None

    if not isinstance(header, dict):
        return None

    return {str(key): value for key, value in header.items()}, text[match.end():]


def decode(text: str) -> Optional[Dict[str, Any]]:
    """Decode only the header of a document; None when it cannot be read."""
    parts = split_document(text)
    if parts is None:
        return None
    return parts[0]
