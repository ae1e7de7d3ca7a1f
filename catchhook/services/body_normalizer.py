"""
Body normalizer - turns an arbitrary request body into something storable.

Three shapes, nothing else:
- EmptyBody    -> stored as JSON null
- JsonBody     -> the parsed JSON value, verbatim
- RawTextBody  -> {"_raw": "<original text>"}

A body is never rejected for its shape.
"""
import json
import math
from dataclasses import dataclass
from typing import Any, Union

RAW_TEXT_FIELD = "_raw"

# Longest integer literal kept as a number; int <-> str conversion refuses more
MAX_INTEGER_DIGITS = 4300


@dataclass(frozen=True)
class EmptyBody:
    kind = "empty"

    def to_storage(self) -> None:
        return None


@dataclass(frozen=True)
class JsonBody:
    value: Any
    kind = "json"

    def to_storage(self) -> Any:
        return self.value


@dataclass(frozen=True)
class RawTextBody:
    text: str
    kind = "raw"

    def to_storage(self) -> dict:
        return {RAW_TEXT_FIELD: self.text}


StoredBody = Union[EmptyBody, JsonBody, RawTextBody]


def _reject_constant(name: str) -> Any:
    # NaN / Infinity / -Infinity are not JSON
    raise ValueError(f"Non-standard JSON constant: {name}")


def _finite_float(literal: str) -> float:
    value = float(literal)
    if not math.isfinite(value):
        # 1e400 overflows to inf, which JSON storage cannot hold
        raise ValueError(f"Number out of range: {literal}")
    return value


def _bounded_int(literal: str) -> int:
    if len(literal.lstrip("-")) > MAX_INTEGER_DIGITS:
        raise ValueError("Integer literal too long")
    return int(literal)


def decode_body(raw: bytes) -> str:
    """Decode request bytes as UTF-8, replacing invalid sequences."""
    if raw.startswith(b"\xef\xbb\xbf"):
        raw = raw[3:]
    return raw.decode("utf-8", errors="replace")


def normalize(raw_text: str) -> StoredBody:
    """Classify a body as empty, strict JSON, or raw text."""
    if not raw_text:
        return EmptyBody()
    try:
        value = json.loads(
            raw_text,
            parse_constant=_reject_constant,
            parse_float=_finite_float,
            parse_int=_bounded_int,
        )
    except (ValueError, RecursionError):
        # Malformed input, or nesting past the parser's recursion limit
        return RawTextBody(raw_text)
    return JsonBody(value)


def from_storage(stored: Any) -> StoredBody:
    """Rebuild the variant from a stored column value."""
    if stored is None:
        return EmptyBody()
    if isinstance(stored, dict) and set(stored) == {RAW_TEXT_FIELD} and isinstance(stored[RAW_TEXT_FIELD], str):
        return RawTextBody(stored[RAW_TEXT_FIELD])
    return JsonBody(stored)
