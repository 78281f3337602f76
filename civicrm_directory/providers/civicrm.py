"""Retrieve directory data from the CiviCRM APIv3 REST endpoint."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Sequence

import requests

from ..models import CustomFieldDefinition, FieldDefinition, RawContactRecord, TypeOption
from ..plan import BASE_RETURN_FIELDS, RequestPlan
from .base import BaseDataProvider, NotFoundError, TransportError

logger = logging.getLogger(__name__)

# Entity and option field behind each type table.
_TYPE_OPTION_SOURCES: Dict[str, tuple[str, str]] = {
    "email": ("Email", "location_type_id"),
    "website": ("Website", "website_type_id"),
    "phone": ("Phone", "phone_type_id"),
    "address": ("Address", "location_type_id"),
}

# Contact fields never shown on a public directory page.
_PRIVATE_FIELDS = frozenset(
    {
        "api_key",
        "hash",
        "is_deleted",
        "created_date",
        "modified_date",
        "user_unique_id",
    }
)


class CiviCRMDataProvider(BaseDataProvider):
    """Talk to CiviCRM through ``civicrm/ajax/rest`` with site and API keys."""

    def __init__(
        self,
        *,
        rest_url: str,
        api_key: str,
        site_key: str,
        timeout: int = 10,
    ) -> None:
        self.rest_url = rest_url
        self.api_key = api_key
        self.site_key = site_key
        self.timeout = timeout

    def _call(self, entity: str, action: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        data = {
            "entity": entity,
            "action": action,
            "api_key": self.api_key,
            "key": self.site_key,
            "json": json.dumps(params or {}),
        }
        headers = {"X-Requested-With": "XMLHttpRequest"}
        logger.debug("CiviCRM %s.%s %s", entity, action, data["json"])
        try:
            response = requests.post(self.rest_url, data=data, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            raise TransportError(f"CiviCRM request {entity}.{action} failed: {exc}") from exc
        if response.status_code != 200:
            raise TransportError(
                f"CiviCRM request {entity}.{action} failed: {response.status_code} {response.text}"
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise TransportError(f"CiviCRM returned invalid JSON for {entity}.{action}") from exc
        if not isinstance(payload, dict):
            raise TransportError(f"CiviCRM returned an unexpected payload for {entity}.{action}")
        if payload.get("is_error"):
            raise TransportError(
                f"CiviCRM {entity}.{action} error: {payload.get('error_message', 'unknown error')}"
            )
        return payload

    @staticmethod
    def _values(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
        values = payload.get("values", [])
        if isinstance(values, dict):
            values = list(values.values())
        return [item for item in values if isinstance(item, dict)]

    def field_definitions(
        self, entity_types: Sequence[str], visibility: str = "public"
    ) -> List[FieldDefinition]:
        definitions: List[FieldDefinition] = []
        for entity_type in entity_types:
            params: Dict[str, Any] = {"api_action": "get"}
            if entity_type != "Contact":
                params["contact_type"] = entity_type
            for item in self._values(self._call("Contact", "getfields", params)):
                name = item.get("name")
                if not isinstance(name, str) or name.startswith("custom_"):
                    continue
                if visibility == "public" and name in _PRIVATE_FIELDS:
                    continue
                definitions.append(FieldDefinition.from_dict(item))
        return definitions

    def custom_field_definitions(self, entity_types: Sequence[str]) -> List[CustomFieldDefinition]:
        payload = self._call(
            "CustomField",
            "get",
            {
                "sequential": 1,
                "is_active": 1,
                "custom_group_id.extends": {"IN": list(entity_types)},
                "options": {"limit": 0},
            },
        )
        return [CustomFieldDefinition.from_dict(item) for item in self._values(payload)]

    def option_values(self, option_group_id: int) -> Dict[str, str]:
        payload = self._call(
            "OptionValue",
            "get",
            {
                "sequential": 1,
                "option_group_id": option_group_id,
                "is_active": 1,
                "return": ["value", "label"],
                "options": {"limit": 0},
            },
        )
        return {str(item.get("value")): str(item.get("label", "")) for item in self._values(payload)}

    def type_table(self, category: str) -> List[TypeOption]:
        try:
            entity, option_field = _TYPE_OPTION_SOURCES[category]
        except KeyError:
            raise ValueError(f"Unknown type category: {category!r}") from None
        payload = self._call(entity, "getoptions", {"field": option_field, "sequential": 1})
        return [TypeOption.from_dict(item) for item in self._values(payload)]

    def address_field_definitions(self) -> List[FieldDefinition]:
        payload = self._call("Address", "getfields", {"api_action": "get"})
        return [FieldDefinition.from_dict(item) for item in self._values(payload) if item.get("name")]

    def get_contact(
        self,
        contact_id: int,
        *,
        group_id: Optional[int],
        plan: Optional[RequestPlan] = None,
    ) -> RawContactRecord:
        if plan is not None:
            params = plan.api_params(group_id)
        else:
            params = {"sequential": 1, "return": list(BASE_RETURN_FIELDS)}
            if group_id is not None:
                params["group"] = group_id
        params["id"] = contact_id

        values = self._values(self._call("Contact", "get", params))
        if not values:
            raise NotFoundError(f"Contact {contact_id} was not found in group {group_id}.")
        try:
            return RawContactRecord.from_payload(values[0])
        except ValueError as exc:
            raise TransportError(f"CiviCRM returned an invalid contact: {exc}") from exc
