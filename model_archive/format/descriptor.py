"""Descriptor codec.

The descriptor is the one container entry that names the loader. Two
encodings exist:

- canonical: UTF-8 JSON object, `{"modelLoaderClassName": "<id>", ...extras}`
- legacy: UTF-8 bare text holding only the identifier, as written by the
  first archive writer (`modelReader.txt`)

Decoding tries canonical first and falls back to legacy.
"""

from __future__ import annotations

import json
import re
from typing import Any, Mapping

from model_archive.core.errors import MissingOrMalformedDescriptorError
from model_archive.core.types import LOADER_KEY, Descriptor

DESCRIPTOR_MARKER = "modelReader"
DESCRIPTOR_ENTRY_NAME = f"{DESCRIPTOR_MARKER}.json"
LEGACY_DESCRIPTOR_ENTRY_NAME = f"{DESCRIPTOR_MARKER}.txt"

_SEGMENT = r"[A-Za-z_$][\w$]*"
_IDENTIFIER_RE = re.compile(rf"^{_SEGMENT}(?:\.{_SEGMENT})*(?::{_SEGMENT}(?:\.{_SEGMENT})*)?$")


def is_descriptor_name(entry_name: str) -> bool:
    return DESCRIPTOR_MARKER in entry_name


def encode(loader_identifier: str, extras: Mapping[str, str] | None = None) -> bytes:
    if not isinstance(loader_identifier, str) or not loader_identifier.strip():
        raise ValueError("Loader identifier cannot be empty")

    payload: dict[str, str] = {LOADER_KEY: loader_identifier.strip()}
    for key, value in (extras or {}).items():
        if key == LOADER_KEY:
            raise ValueError(f"Extras cannot override '{LOADER_KEY}'")
        if not isinstance(key, str) or not isinstance(value, str):
            raise ValueError(f"Descriptor extra '{key}' must map a string to a string")
        payload[key] = value

    return json.dumps(payload, ensure_ascii=False, sort_keys=True).encode("utf-8")


def encode_legacy(loader_identifier: str) -> bytes:
    """Encode the bare-text form understood by old readers."""

    if not isinstance(loader_identifier, str) or not loader_identifier.strip():
        raise ValueError("Loader identifier cannot be empty")
    return loader_identifier.strip().encode("utf-8")


def _decode_canonical(raw: Mapping[str, Any]) -> Descriptor:
    identifier = raw.get(LOADER_KEY)
    if not isinstance(identifier, str) or not identifier.strip():
        raise MissingOrMalformedDescriptorError(
            f"Descriptor is missing required key '{LOADER_KEY}'"
        )

    extras: dict[str, str] = {}
    for key, value in raw.items():
        if key == LOADER_KEY:
            continue
        if not isinstance(value, str):
            raise MissingOrMalformedDescriptorError(
                f"Descriptor extra '{key}' must be a string"
            )
        extras[key] = value
    return Descriptor(loader_identifier=identifier.strip(), extras=extras)


def decode(payload: bytes) -> Descriptor:
    try:
        text = payload.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MissingOrMalformedDescriptorError("Descriptor is not valid UTF-8") from e

    try:
        raw = json.loads(text)
    except ValueError:
        raw = None

    if isinstance(raw, Mapping):
        return _decode_canonical(raw)

    # Legacy writers emitted the identifier alone, sometimes with a newline.
    legacy = text.replace("\r", "").replace("\n", "").strip()
    if legacy and _IDENTIFIER_RE.match(legacy):
        return Descriptor(loader_identifier=legacy)

    raise MissingOrMalformedDescriptorError(
        "Descriptor is neither a JSON object nor a bare loader identifier"
    )
