from __future__ import annotations

import base64
import hashlib

import base58


def sha256(*parts: bytes) -> bytes:
    h = hashlib.sha256()
    for part in parts:
        h.update(part)
    return h.digest()


def b58encode(data: bytes) -> str:
    return base58.b58encode(data).decode("ascii")


def b58decode(value: str) -> bytes:
    return base58.b58decode(value)


def b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def b64decode(value: str) -> bytes:
    return base64.b64decode(value)


def camelize(word: str) -> str:
    """Turn ``snake_case`` / ``kebab-case`` option names into ``lowerCamelCase``."""
    parts = [p for p in word.replace("-", "_").split("_") if p]
    if not parts:
        return word
    head, *rest = parts
    return head[:1].lower() + head[1:] + "".join(p[:1].upper() + p[1:] for p in rest)
