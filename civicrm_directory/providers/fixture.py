"""Serve schema metadata and contacts from a local JSON fixture."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..models import (
    CustomFieldDefinition,
    FieldDefinition,
    RawContactRecord,
    TypeOption,
    coerce_id,
)
from ..plan import BASE_RETURN_FIELDS, RequestPlan, chain_key
from .base import TYPE_CATEGORIES, BaseDataProvider, NotFoundError, TransportError

logger = logging.getLogger(__name__)

_RECORD_LISTS = {
    "email": "emails",
    "phone": "phones",
    "website": "websites",
    "address": "addresses",
}


def _matches(value: Any, condition: Mapping[str, Any]) -> bool:
    if "IN" in condition:
        allowed = {coerce_id(item) for item in condition["IN"]}
        return coerce_id(value) in allowed
    return True


def _apply_chain(records: Any, chain: Mapping[str, Any]) -> List[Dict[str, Any]]:
    """Filter fixture sub-records the way the API applies a chained query."""

    if not isinstance(records, list):
        return []
    conditions = {key: value for key, value in chain.items() if isinstance(value, Mapping)}
    returns = chain.get("return")
    results: List[Dict[str, Any]] = []
    for record in records:
        if not isinstance(record, dict):
            continue
        if not all(_matches(record.get(key), condition) for key, condition in conditions.items()):
            continue
        if returns:
            record = {key: value for key, value in record.items() if key in returns}
        results.append(record)
    return results


class FixtureDataProvider(BaseDataProvider):
    """Load CRM schema metadata and contacts from a JSON fixture."""

    def __init__(self, fixture_path: Path):
        self.fixture_path = fixture_path
        self._data = self._load_fixture()

    def _load_fixture(self) -> Dict[str, Any]:
        if not self.fixture_path.exists():
            raise TransportError(f"Fixture file not found: {self.fixture_path}")
        try:
            raw_data = json.loads(self.fixture_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise TransportError(f"Fixture file could not be read: {exc}") from exc
        if not isinstance(raw_data, dict):
            raise TransportError("Fixture has an unexpected format.")
        logger.debug(
            "Loaded fixture %s with %d contacts",
            self.fixture_path,
            len(raw_data.get("contacts", []) or []),
        )
        return raw_data

    def _list(self, key: str) -> List[Dict[str, Any]]:
        items = self._data.get(key, [])
        if not isinstance(items, list):
            raise TransportError(f"Fixture section '{key}' must be a list.")
        return [item for item in items if isinstance(item, dict)]

    def field_definitions(
        self, entity_types: Sequence[str], visibility: str = "public"
    ) -> List[FieldDefinition]:
        definitions: List[FieldDefinition] = []
        for item in self._list("fields"):
            if item.get("entity", "Contact") not in entity_types:
                continue
            if visibility == "public" and not item.get("public", True):
                continue
            definitions.append(FieldDefinition.from_dict(item))
        return definitions

    def custom_field_definitions(self, entity_types: Sequence[str]) -> List[CustomFieldDefinition]:
        return [
            CustomFieldDefinition.from_dict(item)
            for item in self._list("customFields")
            if item.get("extends", "Contact") in entity_types and item.get("is_active", True)
        ]

    def option_values(self, option_group_id: int) -> Dict[str, str]:
        groups = self._data.get("optionGroups", {})
        options = groups.get(str(option_group_id)) if isinstance(groups, dict) else None
        if not isinstance(options, dict):
            raise TransportError(f"Option group {option_group_id} not found in fixture.")
        return {str(key): str(value) for key, value in options.items()}

    def type_table(self, category: str) -> List[TypeOption]:
        if category not in TYPE_CATEGORIES:
            raise ValueError(f"Unknown type category: {category!r}")
        types = self._data.get("types", {})
        rows = types.get(category, []) if isinstance(types, dict) else []
        return [TypeOption.from_dict(row) for row in rows if isinstance(row, dict)]

    def address_field_definitions(self) -> List[FieldDefinition]:
        return [FieldDefinition.from_dict(item) for item in self._list("addressFields")]

    def _find_contact(self, contact_id: int, group_id: Optional[int]) -> Dict[str, Any]:
        for item in self._list("contacts"):
            if coerce_id(item.get("contact_id")) != contact_id:
                continue
            if group_id is not None:
                groups = {coerce_id(group) for group in item.get("groups", []) or []}
                if group_id not in groups:
                    continue
            return item
        raise NotFoundError(f"Contact {contact_id} was not found in group {group_id}.")

    def get_contact(
        self,
        contact_id: int,
        *,
        group_id: Optional[int],
        plan: Optional[RequestPlan] = None,
    ) -> RawContactRecord:
        item = self._find_contact(contact_id, group_id)
        payload: Dict[str, Any] = {"contact_id": item.get("contact_id")}
        returns = BASE_RETURN_FIELDS + (plan.return_fields if plan else ())
        for key in returns:
            if key in item:
                payload[key] = item[key]

        if plan is not None:
            for category in plan.categories:
                chain = plan.chain_params(category)
                if chain is None:
                    continue
                payload[chain_key(category)] = {
                    "values": _apply_chain(item.get(_RECORD_LISTS[category]), chain)
                }

        try:
            return RawContactRecord.from_payload(payload)
        except ValueError as exc:
            raise TransportError(f"Fixture contact {contact_id} is invalid: {exc}") from exc
