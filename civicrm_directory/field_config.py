"""Per-directory field configuration and its JSON store."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .models import coerce_id

logger = logging.getLogger(__name__)

OTHER_CATEGORIES: Tuple[str, ...] = ("email", "phone", "website", "address")


class ConfigurationError(ValueError):
    """Raised when a directory's field configuration is missing or malformed."""


def _id_list(values: Any, where: str) -> Tuple[int, ...]:
    if not isinstance(values, list):
        raise ConfigurationError(f"{where} must be a list")
    ids: List[int] = []
    for value in values:
        coerced = coerce_id(value)
        if coerced is None:
            raise ConfigurationError(f"{where} contains a non-numeric id: {value!r}")
        ids.append(coerced)
    return tuple(ids)


def _name_list(values: Any, where: str) -> Tuple[str, ...]:
    if not isinstance(values, list):
        raise ConfigurationError(f"{where} must be a list")
    names: List[str] = []
    for value in values:
        if not isinstance(value, str) or not value.strip():
            raise ConfigurationError(f"{where} contains an invalid field name: {value!r}")
        names.append(value.strip())
    return tuple(names)


def _category_block(payload: Mapping[str, Any], category: str, where: str) -> Mapping[str, Any]:
    block = payload.get(category)
    if not isinstance(block, Mapping):
        raise ConfigurationError(f"{where}: '{category}' is listed under 'other' but not configured")
    if "enabled" not in block:
        raise ConfigurationError(f"{where}: '{category}' has no 'enabled' list")
    return block


def _scoped_block(
    block: Mapping[str, Any], category: str, where: str, *, numeric: bool
) -> Dict[int, Tuple[Any, ...]]:
    scopes: Dict[int, Tuple[Any, ...]] = {}
    for location_id in _id_list(block["enabled"], f"{where}: {category}.enabled"):
        selection = block.get(str(location_id), block.get(location_id))  # type: ignore[call-overload]
        if selection is None:
            raise ConfigurationError(
                f"{where}: {category} location {location_id} is enabled but has no field list"
            )
        label = f"{where}: {category}.{location_id}"
        scopes[location_id] = _id_list(selection, label) if numeric else _name_list(selection, label)
    return scopes


@dataclass(frozen=True)
class FieldConfiguration:
    """Which fields a directory shows for one contact type."""

    contact_type: str
    core: Tuple[str, ...] = ()
    custom: Tuple[int, ...] = ()
    other: Tuple[str, ...] = ()
    email: Tuple[int, ...] = ()
    website: Tuple[int, ...] = ()
    phone: Mapping[int, Tuple[int, ...]] = field(default_factory=dict)
    address: Mapping[int, Tuple[str, ...]] = field(default_factory=dict)

    @staticmethod
    def from_dict(contact_type: str, payload: Any) -> "FieldConfiguration":
        """Parse the stored configuration for ``contact_type``.

        Only the categories named under ``other`` are read; blocks for other
        categories may be present and are ignored.
        """

        where = f"Contact type '{contact_type}'"
        if not isinstance(payload, Mapping):
            raise ConfigurationError(f"{where}: configuration must be an object")

        core = _name_list(payload.get("core", []), f"{where}: core")
        custom = _id_list(payload.get("custom", []), f"{where}: custom")

        other_raw = payload.get("other", [])
        if not isinstance(other_raw, list):
            raise ConfigurationError(f"{where}: other must be a list")
        other: List[str] = []
        for category in other_raw:
            if category not in OTHER_CATEGORIES:
                raise ConfigurationError(f"{where}: unknown category {category!r} in 'other'")
            if category not in other:
                other.append(category)

        email: Tuple[int, ...] = ()
        website: Tuple[int, ...] = ()
        phone: Dict[int, Tuple[int, ...]] = {}
        address: Dict[int, Tuple[str, ...]] = {}
        for category in other:
            block = _category_block(payload, category, where)
            if category == "email":
                email = _id_list(block["enabled"], f"{where}: email.enabled")
            elif category == "website":
                website = _id_list(block["enabled"], f"{where}: website.enabled")
            elif category == "phone":
                phone = _scoped_block(block, category, where, numeric=True)
            else:
                address = _scoped_block(block, category, where, numeric=False)

        return FieldConfiguration(
            contact_type=contact_type,
            core=core,
            custom=custom,
            other=tuple(other),
            email=email,
            website=website,
            phone=phone,
            address=address,
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "core": list(self.core),
            "custom": list(self.custom),
            "other": list(self.other),
        }
        if "email" in self.other:
            payload["email"] = {"enabled": list(self.email)}
        if "website" in self.other:
            payload["website"] = {"enabled": list(self.website)}
        for category, scopes in (("phone", self.phone), ("address", self.address)):
            if category not in self.other:
                continue
            block: Dict[str, Any] = {"enabled": list(scopes)}
            for location_id, selection in scopes.items():
                block[str(location_id)] = list(selection)
            payload[category] = block
        return payload


class FieldConfigStore:
    """Read and persist directory settings from a JSON file.

    Layout::

        {"directories": {"<id>": {"title": ..., "groupId": 4,
                                  "contactFields": {"Individual": {...}}}}}
    """

    def __init__(self, path: Path):
        self.path = path
        self._directories: Dict[str, Dict[str, Any]] = {}
        self._loaded = False

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        if not self.path.exists():
            raise ConfigurationError(f"Directory configuration not found: {self.path}")
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Directory configuration could not be read: {exc}") from exc
        directories = raw.get("directories") if isinstance(raw, dict) else None
        if not isinstance(directories, dict):
            raise ConfigurationError("Directory configuration has no 'directories' object")
        self._directories = {
            str(key): value for key, value in directories.items() if isinstance(value, dict)
        }
        self._loaded = True
        logger.debug("Loaded %d directories from %s", len(self._directories), self.path)

    def reload(self) -> None:
        self._loaded = False
        self._ensure_loaded()

    def directory_ids(self) -> List[str]:
        self._ensure_loaded()
        return sorted(self._directories)

    def _directory(self, directory_id: int | str) -> Dict[str, Any]:
        self._ensure_loaded()
        directory = self._directories.get(str(directory_id))
        if directory is None:
            raise ConfigurationError(f"Directory {directory_id} is not configured")
        return directory

    def title(self, directory_id: int | str) -> Optional[str]:
        title = self._directory(directory_id).get("title")
        return str(title) if title else None

    def group_id(self, directory_id: int | str) -> int:
        """Return the CRM group that scopes the directory's contacts."""

        group_id = coerce_id(self._directory(directory_id).get("groupId"))
        if not group_id:
            raise ConfigurationError(f"Directory {directory_id} has no group")
        return group_id

    def field_configuration(self, directory_id: int | str, contact_type: str) -> FieldConfiguration:
        contact_fields = self._directory(directory_id).get("contactFields")
        if not isinstance(contact_fields, dict) or contact_type not in contact_fields:
            raise ConfigurationError(
                f"Directory {directory_id} has no field configuration for '{contact_type}'"
            )
        return FieldConfiguration.from_dict(contact_type, contact_fields[contact_type])

    def save_directory(
        self,
        directory_id: int | str,
        *,
        group_id: int,
        contact_fields: Mapping[str, FieldConfiguration],
        title: Optional[str] = None,
    ) -> None:
        """Write one directory's settings, keeping the others in the file."""

        if self.path.exists():
            self._ensure_loaded()
        entry: Dict[str, Any] = {
            "groupId": group_id,
            "contactFields": {
                contact_type: configuration.to_dict()
                for contact_type, configuration in contact_fields.items()
            },
        }
        if title:
            entry["title"] = title
        self._directories[str(directory_id)] = entry
        if not self.path.parent.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"directories": self._directories}
        self.path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        self._loaded = True
