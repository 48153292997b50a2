"""Locate an image URL inside a provider response of unknown shape.

Providers nest the generated asset differently (``{"images": [{"url": ...}]}``,
``{"output": ["..."]}``, ``{"image": {"url": ...}}``), so the search walks the
decoded JSON in a fixed order and returns the first string that looks like the
answer: direct fields first, then the known collection fields, then
``image``, and finally objects nested under any other key except the ones
that echo the submitted request (``input``, ``request``, ...). Bare strings are
only taken from direct fields and known collections. Only tree-shaped JSON is
expected; the walk stops at ``MAX_DEPTH``.
"""

from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any

DIRECT_FIELDS = ("image_url", "imageUrl", "url")
COLLECTION_FIELDS = ("images", "output", "data", "results", "assets")
MAX_DEPTH = 32

_KNOWN_FIELDS = frozenset(DIRECT_FIELDS + COLLECTION_FIELDS + ("image",))
# providers echo the submitted request under these keys
ECHO_FIELDS = frozenset({"input", "request", "params", "parameters"})


class Kind(Enum):
    STRING = "string"
    SEQUENCE = "sequence"
    MAPPING = "mapping"
    OTHER = "other"


def classify(value: Any) -> Kind:
    if isinstance(value, str):
        return Kind.STRING
    if isinstance(value, Mapping):
        return Kind.MAPPING
    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        return Kind.SEQUENCE
    return Kind.OTHER


def _search(candidate: Mapping[str, Any], depth: int) -> str | None:
    if depth > MAX_DEPTH:
        return None

    for field in DIRECT_FIELDS:
        value = candidate.get(field)
        if classify(value) is Kind.STRING and value:
            return value

    for field in COLLECTION_FIELDS:
        value = candidate.get(field)
        kind = classify(value)
        if kind is Kind.SEQUENCE:
            for entry in value:
                entry_kind = classify(entry)
                if entry_kind is Kind.STRING and entry:
                    return entry
                if entry_kind is Kind.MAPPING:
                    nested = _search(entry, depth + 1)
                    if nested:
                        return nested
        elif kind is Kind.MAPPING:
            nested = _search(value, depth + 1)
            if nested:
                return nested

    image = candidate.get("image")
    if classify(image) is Kind.MAPPING:
        nested = _search(image, depth + 1)
        if nested:
            return nested

    # last resort: objects under any other key, e.g. {"output": [{"result": {"url": ...}}]}
    for field, value in candidate.items():
        if field in _KNOWN_FIELDS or field in ECHO_FIELDS:
            continue
        kind = classify(value)
        if kind is Kind.MAPPING:
            nested = _search(value, depth + 1)
            if nested:
                return nested
        elif kind is Kind.SEQUENCE:
            for entry in value:
                if classify(entry) is Kind.MAPPING:
                    nested = _search(entry, depth + 1)
                    if nested:
                        return nested

    return None


def extract_image_url(payload: Any) -> str | None:
    if classify(payload) is not Kind.MAPPING:
        return None
    return _search(payload, 0)
