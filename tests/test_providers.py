from __future__ import annotations

import json
from pathlib import Path
from unittest import mock

import pytest
import requests

from civicrm_directory.config import AppConfig, load_config
from civicrm_directory.field_config import FieldConfiguration
from civicrm_directory.plan import compile_plan
from civicrm_directory.providers import (
    CiviCRMDataProvider,
    FixtureDataProvider,
    NotFoundError,
    TransportError,
    create_provider,
)

CIVICRM_ENV = ["CIVICRM_REST_URL", "CIVICRM_API_KEY", "CIVICRM_SITE_KEY"]


def _response(payload, status_code=200):
    response = mock.Mock()
    response.status_code = status_code
    response.text = json.dumps(payload)
    response.json.return_value = payload
    return response


@pytest.fixture()
def provider() -> CiviCRMDataProvider:
    return CiviCRMDataProvider(
        rest_url="https://crm.example.org/civicrm/ajax/rest",
        api_key="user-key",
        site_key="site-key",
        timeout=5,
    )


def test_create_provider_missing_env(monkeypatch):
    monkeypatch.setenv("DATA_SOURCE", "civicrm")
    for key in CIVICRM_ENV:
        monkeypatch.delenv(key, raising=False)
    config = load_config(Path.cwd())
    with pytest.raises(TransportError) as excinfo:
        create_provider(config)
    assert "CIVICRM_API_KEY" in str(excinfo.value)


def test_create_provider_civicrm(monkeypatch):
    monkeypatch.setenv("DATA_SOURCE", "CiviCRM")
    monkeypatch.setenv("CIVICRM_REST_URL", "https://crm.example.org/civicrm/ajax/rest")
    monkeypatch.setenv("CIVICRM_API_KEY", "user-key")
    monkeypatch.setenv("CIVICRM_SITE_KEY", "site-key")
    monkeypatch.setenv("CIVICRM_TIMEOUT", "3")
    provider = create_provider(load_config(Path.cwd()))
    assert isinstance(provider, CiviCRMDataProvider)
    assert provider.timeout == 3
    assert provider.site_key == "site-key"


def test_create_provider_fixture_default(monkeypatch):
    monkeypatch.delenv("DATA_SOURCE", raising=False)
    config = AppConfig()
    provider = create_provider(config)
    assert isinstance(provider, FixtureDataProvider)


def test_call_posts_keys_and_json(provider):
    with mock.patch(
        "civicrm_directory.providers.civicrm.requests.post",
        return_value=_response({"is_error": 0, "values": [{"key": "1", "value": "Home"}]}),
    ) as post:
        options = provider.type_table("email")

    assert [(option.key, option.value) for option in options] == [(1, "Home")]
    args, kwargs = post.call_args
    assert args == ("https://crm.example.org/civicrm/ajax/rest",)
    assert kwargs["timeout"] == 5
    assert kwargs["headers"] == {"X-Requested-With": "XMLHttpRequest"}
    data = kwargs["data"]
    assert data["entity"] == "Email"
    assert data["action"] == "getoptions"
    assert data["api_key"] == "user-key"
    assert data["key"] == "site-key"
    assert json.loads(data["json"]) == {"field": "location_type_id", "sequential": 1}


@pytest.mark.parametrize(
    "response",
    [
        _response({"is_error": 1, "error_message": "Permission denied"}),
        _response({"error": "boom"}, status_code=500),
        _response(["not", "a", "dict"]),
    ],
)
def test_call_failures_raise_transport_error(provider, response):
    with mock.patch("civicrm_directory.providers.civicrm.requests.post", return_value=response):
        with pytest.raises(TransportError):
            provider.option_values(91)


def test_call_network_error(provider):
    with mock.patch(
        "civicrm_directory.providers.civicrm.requests.post",
        side_effect=requests.ConnectionError("offline"),
    ):
        with pytest.raises(TransportError):
            provider.address_field_definitions()


def test_call_invalid_json(provider):
    response = _response({})
    response.json.side_effect = ValueError("no json")
    with mock.patch("civicrm_directory.providers.civicrm.requests.post", return_value=response):
        with pytest.raises(TransportError):
            provider.type_table("phone")


def test_type_table_unknown_category(provider):
    with pytest.raises(ValueError):
        provider.type_table("fax")


def test_field_definitions_skip_custom_and_private(provider):
    responses = [
        _response(
            {
                "values": {
                    "display_name": {"name": "display_name", "title": "Display Name"},
                    "api_key": {"name": "api_key", "title": "API Key"},
                    "custom_1": {"name": "custom_1", "title": "Colour"},
                }
            }
        ),
        _response({"values": {"first_name": {"name": "first_name", "title": "First Name"}}}),
    ]
    with mock.patch(
        "civicrm_directory.providers.civicrm.requests.post", side_effect=responses
    ) as post:
        definitions = provider.field_definitions(["Contact", "Individual"])

    assert [item.name for item in definitions] == ["display_name", "first_name"]
    first, second = (json.loads(call.kwargs["data"]["json"]) for call in post.call_args_list)
    assert "contact_type" not in first
    assert second["contact_type"] == "Individual"


def test_option_values_map_value_to_label(provider):
    payload = {"values": [{"value": 1, "label": "Blue"}, {"value": "2", "label": "Green"}]}
    with mock.patch(
        "civicrm_directory.providers.civicrm.requests.post", return_value=_response(payload)
    ):
        assert provider.option_values(91) == {"1": "Blue", "2": "Green"}


def test_custom_field_definitions_filter_by_extends(provider):
    payload = {
        "values": [
            {
                "id": "4",
                "label": "Interests",
                "html_type": "CheckBox",
                "data_type": "String",
                "option_group_id": "93",
            }
        ]
    }
    with mock.patch(
        "civicrm_directory.providers.civicrm.requests.post", return_value=_response(payload)
    ) as post:
        definitions = provider.custom_field_definitions(["Contact", "Individual"])

    assert definitions[0].id == 4
    assert definitions[0].option_group_id == 93
    params = json.loads(post.call_args.kwargs["data"]["json"])
    assert params["custom_group_id.extends"] == {"IN": ["Contact", "Individual"]}


def test_get_contact_sends_planned_request(provider):
    plan = compile_plan(
        FieldConfiguration.from_dict(
            "Individual",
            {"core": ["first_name"], "other": ["email"], "email": {"enabled": [1]}},
        )
    )
    payload = {
        "values": [
            {
                "contact_id": "101",
                "contact_type": "Individual",
                "display_name": "Ada Lovelace",
                "first_name": "Ada",
                "api.Email.get": {"values": [{"location_type_id": "1", "email": "ada@example.org"}]},
            }
        ]
    }
    with mock.patch(
        "civicrm_directory.providers.civicrm.requests.post", return_value=_response(payload)
    ) as post:
        record = provider.get_contact(101, group_id=4, plan=plan)

    assert record.get("first_name") == "Ada"
    assert record.emails[0].email == "ada@example.org"
    params = json.loads(post.call_args.kwargs["data"]["json"])
    assert params["id"] == 101
    assert params["group"] == 4
    assert params["api.Email.get"] == {"sequential": 1, "location_type_id": {"IN": [1]}}


def test_get_contact_without_plan_and_not_found(provider):
    with mock.patch(
        "civicrm_directory.providers.civicrm.requests.post",
        return_value=_response({"count": 0, "values": []}),
    ) as post:
        with pytest.raises(NotFoundError):
            provider.get_contact(5, group_id=None)

    params = json.loads(post.call_args.kwargs["data"]["json"])
    assert params == {"sequential": 1, "return": ["contact_type", "display_name"], "id": 5}


def test_get_contact_invalid_payload(provider):
    with mock.patch(
        "civicrm_directory.providers.civicrm.requests.post",
        return_value=_response({"values": [{"contact_id": "5"}]}),
    ):
        with pytest.raises(TransportError):
            provider.get_contact(5, group_id=1)
