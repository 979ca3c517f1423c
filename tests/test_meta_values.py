import json

import pytest

from core_logic.data_models import MetaSchemaItem
from core_logic.meta_values import (
    MetaValueError,
    build_meta_schema,
    decode_meta_values,
    default_meta_schema,
    parse_meta_schema,
)

DEFAULT_KEYS = ["menu_order", "parent_id", "show_in_menu", "menu_options", "icon", "post_thumbnail"]


def test_default_schema_keys():
    assert [item.key for item in default_meta_schema()] == DEFAULT_KEYS


def test_default_schema_is_a_fresh_copy():
    first = default_meta_schema()
    first[3].default.append("mutated")
    assert default_meta_schema()[3].default == []


def test_extension_overrides_in_place_and_appends():
    schema = build_meta_schema([
        {"key": "icon", "type": "string", "default": "line-md:home"},
        {"key": "subtitle", "type": "string"},
    ])
    assert [item.key for item in schema] == DEFAULT_KEYS + ["subtitle"]
    assert schema[DEFAULT_KEYS.index("icon")].default == "line-md:home"


def test_extension_accepts_schema_items():
    schema = build_meta_schema([MetaSchemaItem(key="rating", type="number", default=5)])
    assert schema[-1].key == "rating"


@pytest.mark.parametrize("raw", [None, "", "not json", "{}", "[]", json.dumps([{"type": "string"}])])
def test_unreadable_schema_means_defaults(raw):
    assert [item.key for item in parse_meta_schema(raw)] == DEFAULT_KEYS


def test_parse_stored_schema():
    raw = json.dumps([{"key": "hero", "type": "boolean", "default": True}])
    schema = parse_meta_schema(raw)
    assert schema[-1].key == "hero"
    assert decode_meta_values(None, schema)["hero"] is True


def test_decode_fills_declared_defaults_only():
    values = decode_meta_values(None)
    assert values == {
        "menu_order": 0,
        "show_in_menu": False,
        "menu_options": [],
        "icon": "line-md:document",
        "post_thumbnail": False,
    }


def test_decode_stored_values_win():
    values = decode_meta_values(json.dumps({"menu_order": 3, "parent_id": 7}))
    assert values["menu_order"] == 3
    assert values["parent_id"] == 7
    assert values["icon"] == "line-md:document"


@pytest.mark.parametrize("raw", ["not json", "[1, 2]", "42"])
def test_decode_non_object_is_empty(raw):
    assert decode_meta_values(raw)["menu_order"] == 0


def test_decode_keeps_unknown_keys():
    assert decode_meta_values(json.dumps({"legacy_flag": "x"}))["legacy_flag"] == "x"


def test_warn_mode_logs_mismatch(caplog):
    values = decode_meta_values(json.dumps({"menu_order": "first"}), mode="warn")
    assert values["menu_order"] == "first"
    assert "menu_order" in caplog.text


def test_strict_mode_raises():
    with pytest.raises(MetaValueError):
        decode_meta_values(json.dumps({"icon": 12}), mode="strict")


def test_off_mode_is_silent(caplog):
    values = decode_meta_values(json.dumps({"menu_order": "first"}), mode="off")
    assert values["menu_order"] == "first"
    assert caplog.text == ""


@pytest.mark.parametrize("stored", [{"show_in_menu": 1}, {"show_in_menu": True}, {"parent_id": None}, {"menu_options": ["a"]}])
def test_compatible_values_pass_strict(stored):
    decode_meta_values(json.dumps(stored), mode="strict")


def test_unknown_mode_is_rejected():
    with pytest.raises(ValueError):
        decode_meta_values(None, mode="loud")
