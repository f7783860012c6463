"""
Option validation for instruction producers.

Each producer declares a frozen params dataclass; its fields are the
recognized option keys. ``validate_options`` rejects unknown or missing
keys before the dataclass runs its own ``__post_init__`` checks, so bad
input never reaches the compiler.
"""

from __future__ import annotations

import dataclasses
from typing import Any, Mapping, Type, TypeVar, Union

from ..errors import ValidationError
from ..sigil.keys import pubkey

P = TypeVar("P")

# Option keys that are Python keywords are declared with a trailing underscore
_ALIASES = {"from": "from_"}


def validate_options(params_cls: Type[P], opts: Mapping[str, Any]) -> P:
    fields = {f.name: f for f in dataclasses.fields(params_cls)}
    kwargs: dict[str, Any] = {}
    for key, value in opts.items():
        name = _ALIASES.get(key, key)
        if name not in fields:
            raise ValidationError(f"Unknown option {key!r} for {params_cls.__name__}")
        kwargs[name] = value

    missing = [
        name.rstrip("_")
        for name, f in fields.items()
        if name not in kwargs
        and f.default is dataclasses.MISSING
        and f.default_factory is dataclasses.MISSING
    ]
    if missing:
        raise ValidationError(f"Missing required option(s): {', '.join(sorted(missing))}")

    return params_cls(**kwargs)


def key_option(name: str, value: Any) -> bytes:
    """Coerce an address option (base58 str or 32 bytes)."""
    try:
        return pubkey(value)
    except ValidationError as exc:
        raise ValidationError(f"Option {name!r}: {exc}") from exc


def int_option(name: str, value: Any, *, minimum: int = 0, bits: int = 64) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"Option {name!r} must be an integer")
    if value < minimum or value >= 1 << bits:
        raise ValidationError(f"Option {name!r} out of range: {value}")
    return value


def set_field(params: Any, name: str, value: Union[bytes, int, str]) -> None:
    """Store a normalized value on a frozen params instance."""
    object.__setattr__(params, name, value)
