# jsonsigner/core/canon.py
"""
Deterministic JSON encoding for sign bytes.

Output matches what the legacy amino verifiers compute on their side:
object keys sorted, no insignificant whitespace, UTF-8, HTML-sensitive
characters escaped, and every number rendered as an IEEE-754 double.
"""

import json
import math
from decimal import Decimal
from typing import Any

_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _encode_string(s: str) -> str:
    out = json.dumps(s, ensure_ascii=False)
    if any(ch in out for ch in _ESCAPES):
        out = "".join(_ESCAPES.get(ch, ch) for ch in out)
    return out


def _encode_number(n: Any) -> str:
    f = float(n)
    if math.isnan(f) or math.isinf(f):
        raise ValueError(f"unsupported value in canonical JSON: {n!r}")
    if f == 0:
        return "0"
    # repr gives the shortest digit string that round-trips
    d = Decimal(repr(f))
    a = abs(f)
    if a < 1e-6 or a >= 1e21:
        sign, digits, exponent = d.as_tuple()
        ds = "".join(str(x) for x in digits).rstrip("0") or "0"
        exp = exponent + len("".join(str(x) for x in digits)) - 1
        mantissa = ds[0] + ("." + ds[1:] if len(ds) > 1 else "")
        return f"{'-' if sign else ''}{mantissa}e{'-' if exp < 0 else '+'}{abs(exp)}"
    text = format(d, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _encode(obj: Any, parts: list) -> None:
    if obj is None:
        parts.append("null")
    elif obj is True:
        parts.append("true")
    elif obj is False:
        parts.append("false")
    elif isinstance(obj, str):
        parts.append(_encode_string(obj))
    elif isinstance(obj, (int, float, Decimal)):
        parts.append(_encode_number(obj))
    elif isinstance(obj, dict):
        parts.append("{")
        for i, key in enumerate(sorted(obj)):
            if not isinstance(key, str):
                raise TypeError(f"object keys must be strings, got {type(key).__name__}")
            if i:
                parts.append(",")
            parts.append(_encode_string(key))
            parts.append(":")
            _encode(obj[key], parts)
        parts.append("}")
    elif isinstance(obj, (list, tuple)):
        parts.append("[")
        for i, item in enumerate(obj):
            if i:
                parts.append(",")
            _encode(item, parts)
        parts.append("]")
    else:
        raise TypeError(f"cannot encode {type(obj).__name__} as canonical JSON")


def canonical_json(obj: Any) -> bytes:
    """
    Produce deterministic UTF-8 bytes for a decoded JSON value.
    Returns bytes ready for hashing or signing.
    """
    parts: list = []
    _encode(obj, parts)
    return "".join(parts).encode("utf-8")


def canonical_json_str(obj: Any) -> str:
    """Same as above, but returns string (mostly for debugging)."""
    return canonical_json(obj).decode("utf-8")


def canonicalize(data: bytes) -> bytes:
    """Parse JSON bytes and re-emit them in canonical form."""
    return canonical_json(json.loads(data))
