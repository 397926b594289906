"""
Tests for the JSON variant tree and its failure-returning accessors.
"""

import pytest

from chat_core.json_value import (
    JsonArray,
    JsonBool,
    JsonNull,
    JsonNumber,
    JsonObject,
    JsonString,
    from_python,
    parse_json_value,
)


class TestParseJsonValue:
    def test_parses_nested_document(self):
        tree = parse_json_value('{"choices": [{"message": {"content": "hi"}}], "n": 2}')

        assert isinstance(tree, JsonObject)
        assert tree.get("choices").at(0).get("message").get("content").as_string() == "hi"
        assert tree.get("n").as_number() == 2

    @pytest.mark.parametrize("text", ["", "{", "not json", '{"a": 1} trailing', b""])
    def test_malformed_returns_none(self, text):
        assert parse_json_value(text) is None

    def test_accepts_bytes(self):
        assert parse_json_value(b'"caf\xc3\xa9"').as_string() == "café"

    def test_scalars(self):
        assert parse_json_value("null").is_null
        assert parse_json_value("true").as_bool() is True
        assert parse_json_value("3.5").as_number() == 3.5


class TestAccessors:
    def test_wrong_shape_returns_none(self):
        value = JsonString("50")

        assert value.as_number() is None
        assert value.as_bool() is None
        assert value.as_array() is None
        assert value.as_object() is None
        assert value.get("spoken") is None
        assert value.at(0) is None
        assert not value.is_null

    def test_missing_key_and_index(self):
        assert JsonObject({"a": JsonNull()}).get("b") is None
        assert JsonArray((JsonNumber(1),)).at(1) is None
        assert JsonArray((JsonNumber(1),)).at(-1) is None

    def test_bool_is_not_a_number(self):
        assert JsonBool(True).as_number() is None
        assert from_python(True) == JsonBool(True)
        assert from_python(1) == JsonNumber(1)

    def test_from_python_rejects_unknown_types(self):
        with pytest.raises(TypeError):
            from_python(object())
