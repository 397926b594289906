"""
Generic JSON tree with typed, failure-returning accessors.

Model output rarely matches a schema exactly, so the parser walks responses
through this tree instead of casting raw ``json.loads`` results. Every
accessor returns ``None`` when the value has a different shape; nothing here
raises on unexpected input.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Union

Number = Union[int, float]


class JsonValue:
    """Base of the JSON variant. Accessors default to "not this shape"."""

    def as_string(self) -> str | None:
        return None

    def as_bool(self) -> bool | None:
        return None

    def as_number(self) -> Number | None:
        return None

    def as_array(self) -> tuple[JsonValue, ...] | None:
        return None

    def as_object(self) -> dict[str, JsonValue] | None:
        return None

    def get(self, key: str) -> JsonValue | None:
        """Member of an object, or None for missing keys and non-objects."""
        return None

    def at(self, index: int) -> JsonValue | None:
        """Element of an array, or None when out of range or not an array."""
        return None

    @property
    def is_null(self) -> bool:
        return False


@dataclass(frozen=True)
class JsonNull(JsonValue):
    @property
    def is_null(self) -> bool:
        return True


@dataclass(frozen=True)
class JsonBool(JsonValue):
    value: bool

    def as_bool(self) -> bool | None:
        return self.value


@dataclass(frozen=True)
class JsonNumber(JsonValue):
    value: Number

    def as_number(self) -> Number | None:
        return self.value


@dataclass(frozen=True)
class JsonString(JsonValue):
    value: str

    def as_string(self) -> str | None:
        return self.value


@dataclass(frozen=True)
class JsonArray(JsonValue):
    items: tuple[JsonValue, ...] = ()

    def as_array(self) -> tuple[JsonValue, ...] | None:
        return self.items

    def at(self, index: int) -> JsonValue | None:
        if 0 <= index < len(self.items):
            return self.items[index]
        return None


@dataclass(frozen=True)
class JsonObject(JsonValue):
    members: dict[str, JsonValue] = field(default_factory=dict)

    def as_object(self) -> dict[str, JsonValue] | None:
        return self.members

    def get(self, key: str) -> JsonValue | None:
        return self.members.get(key)


def from_python(obj: Any) -> JsonValue:
    """
    Convert the output of ``json.loads`` into a JsonValue tree.

    Raises:
        TypeError: For objects json.loads never produces
    """
    # bool is a subclass of int, so it must be checked first
    if obj is None:
        return JsonNull()
    if isinstance(obj, bool):
        return JsonBool(obj)
    if isinstance(obj, (int, float)):
        return JsonNumber(obj)
    if isinstance(obj, str):
        return JsonString(obj)
    if isinstance(obj, list):
        return JsonArray(tuple(from_python(item) for item in obj))
    if isinstance(obj, dict):
        return JsonObject({str(key): from_python(value) for key, value in obj.items()})
    raise TypeError(f"Unsupported JSON value: {type(obj).__name__}")


def parse_json_value(text: str | bytes) -> JsonValue | None:
    """
    Parse JSON text into a tree.

    Returns:
        The tree, or None when ``text`` is not a single valid JSON document
    """
    if not text:
        return None
    try:
        return from_python(json.loads(text))
    except (ValueError, RecursionError):
        return None
