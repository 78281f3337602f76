from __future__ import annotations

import json
from pathlib import Path

import pytest

from civicrm_directory.field_config import (
    ConfigurationError,
    FieldConfigStore,
    FieldConfiguration,
)


def test_from_dict_reads_listed_categories():
    configuration = FieldConfiguration.from_dict(
        "Individual",
        {
            "core": ["first_name", " last_name "],
            "custom": ["3", 4],
            "other": ["email", "address"],
            "email": {"enabled": ["1", 2]},
            "address": {"enabled": [1], "1": ["street_address", "city"]},
            "website": {"enabled": [1]},
        },
    )

    assert configuration.core == ("first_name", "last_name")
    assert configuration.custom == (3, 4)
    assert configuration.other == ("email", "address")
    assert configuration.email == (1, 2)
    assert configuration.website == ()
    assert dict(configuration.address) == {1: ("street_address", "city")}


def test_from_dict_defaults_missing_lists():
    configuration = FieldConfiguration.from_dict("Household", {})

    assert configuration.core == ()
    assert configuration.custom == ()
    assert configuration.other == ()


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {"core": "first_name"},
        {"core": [""]},
        {"custom": ["abc"]},
        {"other": "email"},
        {"other": ["fax"]},
        {"other": ["email"]},
        {"other": ["email"], "email": {}},
        {"other": ["phone"], "phone": {"enabled": [1]}},
        {"other": ["address"], "address": {"enabled": [1], "1": "city"}},
        {"other": ["phone"], "phone": {"enabled": [1], "1": ["mobile"]}},
    ],
)
def test_from_dict_rejects_malformed_payloads(payload):
    with pytest.raises(ConfigurationError):
        FieldConfiguration.from_dict("Individual", payload)


def test_to_dict_matches_stored_shape():
    payload = {
        "core": ["first_name"],
        "custom": [1],
        "other": ["phone", "email"],
        "phone": {"enabled": [1], "1": [2]},
        "email": {"enabled": [1]},
    }

    configuration = FieldConfiguration.from_dict("Individual", payload)

    assert configuration.to_dict() == payload


def test_store_reads_directory(config_store):
    assert config_store.directory_ids() == ["1", "2"]
    assert config_store.title(1) == "Members"
    assert config_store.group_id("1") == 4

    configuration = config_store.field_configuration(1, "Organization")
    assert configuration.core == ("organization_name", "legal_name")
    assert configuration.other == ("email", "address")


def test_store_missing_directory_and_contact_type(config_store):
    with pytest.raises(ConfigurationError):
        config_store.group_id(99)
    with pytest.raises(ConfigurationError):
        config_store.field_configuration(2, "Organization")


def test_store_missing_group(tmp_path: Path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"directories": {"7": {"contactFields": {}}}}), encoding="utf-8")

    with pytest.raises(ConfigurationError):
        FieldConfigStore(path).group_id(7)


def test_store_missing_or_invalid_file(tmp_path: Path):
    with pytest.raises(ConfigurationError):
        FieldConfigStore(tmp_path / "missing.json").directory_ids()

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        FieldConfigStore(broken).directory_ids()

    wrong = tmp_path / "wrong.json"
    wrong.write_text(json.dumps([1, 2]), encoding="utf-8")
    with pytest.raises(ConfigurationError):
        FieldConfigStore(wrong).directory_ids()


def test_save_directory_keeps_other_directories(tmp_path: Path):
    path = tmp_path / "nested" / "config.json"
    store = FieldConfigStore(path)
    individual = FieldConfiguration.from_dict(
        "Individual", {"core": ["first_name"], "other": ["email"], "email": {"enabled": [1]}}
    )

    store.save_directory(3, group_id=8, contact_fields={"Individual": individual}, title="Board")
    store.save_directory(4, group_id=9, contact_fields={})

    reloaded = FieldConfigStore(path)
    assert reloaded.directory_ids() == ["3", "4"]
    assert reloaded.title(3) == "Board"
    assert reloaded.title(4) is None
    assert reloaded.group_id(3) == 8
    assert reloaded.field_configuration(3, "Individual") == individual


def test_reload_reflects_external_changes(tmp_path: Path):
    path = tmp_path / "config.json"
    FieldConfigStore(path).save_directory(1, group_id=2, contact_fields={})
    store = FieldConfigStore(path)
    assert store.group_id(1) == 2

    FieldConfigStore(path).save_directory(1, group_id=5, contact_fields={})
    assert store.group_id(1) == 2

    store.reload()
    assert store.group_id(1) == 5
