"""Compile a field configuration into a request plan."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .field_config import OTHER_CATEGORIES, ConfigurationError, FieldConfiguration

logger = logging.getLogger(__name__)

CUSTOM_PREFIX = "custom_"

# Keys always requested so the contact can be identified and titled.
BASE_RETURN_FIELDS: Tuple[str, ...] = ("contact_type", "display_name")

# id-valued address keys and the keys carrying their human-readable names.
DENORMALIZED_ADDRESS_KEYS: Dict[str, str] = {
    "state_province_id": "state_province_id.name",
    "country_id": "country_id.name",
}

CHAIN_ENTITIES: Dict[str, str] = {
    "email": "Email",
    "phone": "Phone",
    "website": "Website",
    "address": "Address",
}


def custom_key(field_id: int) -> str:
    return f"{CUSTOM_PREFIX}{field_id}"


def chain_key(category: str) -> str:
    return f"api.{CHAIN_ENTITIES[category]}.get"


def _unique(values) -> List[Any]:
    seen: List[Any] = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen


@dataclass(frozen=True)
class SubRequests:
    email: Tuple[int, ...] = ()
    website: Tuple[int, ...] = ()
    phone: Mapping[int, Tuple[int, ...]] = field(default_factory=dict)
    address: Mapping[int, Tuple[str, ...]] = field(default_factory=dict)


@dataclass(frozen=True)
class RequestPlan:
    contact_type: str
    fields_core: Tuple[str, ...] = ()
    fields_custom: Tuple[int, ...] = ()
    categories: Tuple[str, ...] = ()
    sub_requests: SubRequests = field(default_factory=SubRequests)

    @property
    def custom_keys(self) -> Tuple[str, ...]:
        return tuple(custom_key(field_id) for field_id in self.fields_custom)

    @property
    def return_fields(self) -> Tuple[str, ...]:
        return self.fields_core + self.custom_keys

    def requests(self, category: str) -> bool:
        return category in self.categories

    def chain_params(self, category: str) -> Optional[Dict[str, Any]]:
        """Return the chained sub-query for ``category``, or None if nothing is enabled."""

        sub = self.sub_requests
        if category == "email":
            if not sub.email:
                return None
            return {"sequential": 1, "location_type_id": {"IN": list(sub.email)}}
        if category == "website":
            if not sub.website:
                return None
            return {"sequential": 1, "website_type_id": {"IN": list(sub.website)}}
        if category == "phone":
            if not sub.phone:
                return None
            params: Dict[str, Any] = {
                "sequential": 1,
                "location_type_id": {"IN": list(sub.phone)},
            }
            # Narrowing only; the assembler applies each location's own types.
            # An empty selection allows any type at that location.
            if all(sub.phone.values()):
                phone_types = _unique(
                    phone_type for selection in sub.phone.values() for phone_type in selection
                )
                params["phone_type_id"] = {"IN": phone_types}
            return params
        if category == "address":
            if not sub.address:
                return None
            returns = _unique(
                name for selection in sub.address.values() for name in selection
            )
            for id_key, name_key in DENORMALIZED_ADDRESS_KEYS.items():
                if id_key in returns:
                    returns.append(name_key)
            return {
                "sequential": 1,
                "location_type_id": {"IN": list(sub.address)},
                "return": ["location_type_id", *returns],
            }
        raise ValueError(f"Unknown sub-record category: {category!r}")

    def api_params(self, group_id: Optional[int] = None) -> Dict[str, Any]:
        """Shape the single ``Contact.get`` call, chained sub-queries included."""

        params: Dict[str, Any] = {
            "sequential": 1,
            "return": _unique(BASE_RETURN_FIELDS + self.return_fields),
        }
        if group_id is not None:
            params["group"] = group_id
        for category in self.categories:
            chain = self.chain_params(category)
            if chain is not None:
                params[chain_key(category)] = chain
        return params


def compile_plan(configuration: FieldConfiguration) -> RequestPlan:
    """Turn ``configuration`` into the fields and sub-queries to request.

    Categories missing from ``configuration.other`` are never queried.
    """

    categories: List[str] = []
    email: Tuple[int, ...] = ()
    website: Tuple[int, ...] = ()
    phone: Dict[int, Tuple[int, ...]] = {}
    address: Dict[int, Tuple[str, ...]] = {}

    for category in configuration.other:
        if category not in OTHER_CATEGORIES:
            raise ConfigurationError(f"Unknown sub-record category: {category!r}")
        if category in categories:
            continue
        categories.append(category)
        if category == "email":
            email = tuple(configuration.email)
        elif category == "website":
            website = tuple(configuration.website)
        elif category == "phone":
            phone = {loc: tuple(types) for loc, types in configuration.phone.items()}
        else:
            address = {loc: tuple(names) for loc, names in configuration.address.items()}

    plan = RequestPlan(
        contact_type=configuration.contact_type,
        fields_core=tuple(configuration.core),
        fields_custom=tuple(configuration.custom),
        categories=tuple(categories),
        sub_requests=SubRequests(email=email, website=website, phone=phone, address=address),
    )
    logger.debug(
        "Compiled plan for %s: %d core, %d custom, categories=%s",
        plan.contact_type,
        len(plan.fields_core),
        len(plan.fields_custom),
        ",".join(plan.categories) or "-",
    )
    return plan
