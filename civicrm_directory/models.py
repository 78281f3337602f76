"""Data models for CiviCRM Directory entries."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple


def is_empty(value: Any) -> bool:
    """Return True for values the directory never displays.

    Matches the CRM's notion of an empty value: ``None``, ``""``, ``"0"``,
    zero, ``False`` and empty containers.
    """

    if value is None:
        return True
    if isinstance(value, bool):
        return not value
    if isinstance(value, (int, float)):
        return value == 0
    if isinstance(value, str):
        return value in ("", "0")
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def coerce_id(value: Any) -> Optional[int]:
    """Convert an API identifier to ``int``; unusable values become ``None``."""

    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _chain_values(payload: Mapping[str, Any], key: str) -> List[Mapping[str, Any]]:
    chained = payload.get(key)
    if chained is None:
        return []
    if isinstance(chained, Mapping):
        chained = chained.get("values", [])
    if isinstance(chained, Mapping):
        chained = list(chained.values())
    if not isinstance(chained, list):
        raise ValueError(f"Chained result '{key}' has an unexpected format")
    return [item for item in chained if isinstance(item, Mapping)]


@dataclass(frozen=True, slots=True)
class FieldDefinition:
    name: str
    title: str

    @staticmethod
    def from_dict(payload: Mapping[str, Any]) -> "FieldDefinition":
        name = payload.get("name")
        if not isinstance(name, str) or not name:
            raise ValueError("Field definition requires a name")
        title = payload.get("title") or payload.get("label") or name
        return FieldDefinition(name=name, title=str(title))


@dataclass(frozen=True, slots=True)
class CustomFieldDefinition:
    id: int
    label: str
    html_type: str = ""
    data_type: Optional[str] = None
    option_group_id: Optional[int] = None

    @staticmethod
    def from_dict(payload: Mapping[str, Any]) -> "CustomFieldDefinition":
        field_id = coerce_id(payload.get("id"))
        if field_id is None:
            raise ValueError("Custom field definition requires a numeric id")
        return CustomFieldDefinition(
            id=field_id,
            label=str(payload.get("label") or ""),
            html_type=str(payload.get("html_type") or ""),
            data_type=payload.get("data_type"),
            option_group_id=coerce_id(payload.get("option_group_id")),
        )


@dataclass(frozen=True, slots=True)
class TypeOption:
    """One row of a type table, e.g. location type ``1`` -> ``"Home"``."""

    key: int
    value: str

    @staticmethod
    def from_dict(payload: Mapping[str, Any]) -> "TypeOption":
        key = coerce_id(payload.get("key"))
        if key is None:
            raise ValueError("Type option requires a numeric key")
        return TypeOption(key=key, value=str(payload.get("value") or ""))


@dataclass(frozen=True, slots=True)
class EmailRecord:
    location_type_id: Optional[int] = None
    email: Optional[str] = None

    @staticmethod
    def from_dict(payload: Mapping[str, Any]) -> "EmailRecord":
        return EmailRecord(
            location_type_id=coerce_id(payload.get("location_type_id")),
            email=payload.get("email"),
        )


@dataclass(frozen=True, slots=True)
class WebsiteRecord:
    website_type_id: Optional[int] = None
    url: Optional[str] = None

    @staticmethod
    def from_dict(payload: Mapping[str, Any]) -> "WebsiteRecord":
        return WebsiteRecord(
            website_type_id=coerce_id(payload.get("website_type_id")),
            url=payload.get("url"),
        )


@dataclass(frozen=True, slots=True)
class PhoneRecord:
    location_type_id: Optional[int] = None
    phone_type_id: Optional[int] = None
    phone: Optional[str] = None

    @staticmethod
    def from_dict(payload: Mapping[str, Any]) -> "PhoneRecord":
        return PhoneRecord(
            location_type_id=coerce_id(payload.get("location_type_id")),
            phone_type_id=coerce_id(payload.get("phone_type_id")),
            phone=payload.get("phone"),
        )


@dataclass(frozen=True, slots=True)
class AddressRecord:
    """An address sub-record; ``values`` keeps the response's key order."""

    location_type_id: Optional[int] = None
    values: Mapping[str, Any] = field(default_factory=dict)

    @staticmethod
    def from_dict(payload: Mapping[str, Any]) -> "AddressRecord":
        return AddressRecord(
            location_type_id=coerce_id(payload.get("location_type_id")),
            values={str(key): value for key, value in payload.items()},
        )

    def items(self) -> Iterator[Tuple[str, Any]]:
        return iter(self.values.items())


@dataclass(slots=True)
class RawContactRecord:
    contact_id: int
    contact_type: str
    display_name: str = ""
    values: Dict[str, Any] = field(default_factory=dict)
    emails: List[EmailRecord] = field(default_factory=list)
    phones: List[PhoneRecord] = field(default_factory=list)
    websites: List[WebsiteRecord] = field(default_factory=list)
    addresses: List[AddressRecord] = field(default_factory=list)

    @staticmethod
    def from_payload(payload: Mapping[str, Any]) -> "RawContactRecord":
        """Validate one ``Contact.get`` result, including its chained results."""

        if not isinstance(payload, Mapping):
            raise ValueError("Contact payload must be a mapping")
        contact_id = coerce_id(payload.get("contact_id", payload.get("id")))
        if contact_id is None:
            raise ValueError("Contact payload has no contact id")
        contact_type = payload.get("contact_type")
        if not isinstance(contact_type, str) or not contact_type:
            raise ValueError(f"Contact {contact_id} has no contact type")

        values = {
            str(key): value
            for key, value in payload.items()
            if not str(key).startswith("api.")
        }
        return RawContactRecord(
            contact_id=contact_id,
            contact_type=contact_type,
            display_name=str(payload.get("display_name") or ""),
            values=values,
            emails=[EmailRecord.from_dict(item) for item in _chain_values(payload, "api.Email.get")],
            phones=[PhoneRecord.from_dict(item) for item in _chain_values(payload, "api.Phone.get")],
            websites=[
                WebsiteRecord.from_dict(item) for item in _chain_values(payload, "api.Website.get")
            ],
            addresses=[
                AddressRecord.from_dict(item) for item in _chain_values(payload, "api.Address.get")
            ],
        )

    def get(self, key: str) -> Any:
        return self.values.get(key)


@dataclass(frozen=True, slots=True)
class LabeledValue:
    label: str
    value: Any

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "value": self.value}


@dataclass(slots=True)
class AddressGroup:
    location_type_id: int
    label: str
    fields: List[LabeledValue] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "address": [item.to_dict() for item in self.fields]}


@dataclass(slots=True)
class ViewModel:
    """Grouped, labeled and empty-filtered contact data for presentation."""

    core: List[LabeledValue] = field(default_factory=list)
    custom: List[LabeledValue] = field(default_factory=list)
    email: List[LabeledValue] = field(default_factory=list)
    phone: List[LabeledValue] = field(default_factory=list)
    website: List[LabeledValue] = field(default_factory=list)
    address: List[AddressGroup] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not any((self.core, self.custom, self.email, self.phone, self.website, self.address))

    def to_dict(self) -> Dict[str, Any]:
        """Return a plain mapping; groups without entries are left out."""

        payload: Dict[str, Any] = {}
        for name in ("core", "custom", "email", "phone", "website"):
            entries: List[LabeledValue] = getattr(self, name)
            if entries:
                payload[name] = [entry.to_dict() for entry in entries]
        if self.address:
            payload["address"] = [group.to_dict() for group in self.address]
        return payload
