"""Build the label and option lookup tables for one contact type."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Hashable, Iterable, Mapping, Optional, Union

from .models import TypeOption, is_empty
from .providers.base import BaseDataProvider

logger = logging.getLogger(__name__)

# Custom field HTML types whose stored value is an option value.
OPTION_HTML_TYPES = frozenset({"Select", "Radio", "CheckBox", "Multi-Select", "AdvMulti-Select"})

# Separator the CRM uses for multi-valued custom field values.
VALUE_SEPARATOR = "\x01"


class ContractViolation(AssertionError):
    """Raised when the catalog lacks a label the request plan depends on."""


def require(table: Mapping[Any, Any], key: Hashable, what: str) -> Any:
    try:
        return table[key]
    except KeyError:
        raise ContractViolation(f"No {what} for {key!r}") from None


@dataclass(frozen=True)
class PassThroughDecoder:
    """Display the raw value as stored; ``data_type`` records the declared type."""

    data_type: Optional[str] = None

    def decode(self, raw: Any) -> Any:
        return raw


@dataclass(frozen=True)
class OptionDecoder:
    """Resolve stored option values to their labels."""

    options: Mapping[str, str]

    def decode(self, raw: Any) -> Any:
        if isinstance(raw, str) and VALUE_SEPARATOR in raw:
            raw = [part for part in raw.split(VALUE_SEPARATOR) if part]
        if isinstance(raw, (list, tuple)):
            return ", ".join(self._label(item) for item in raw if not is_empty(item))
        return self._label(raw)

    def _label(self, raw: Any) -> str:
        return require(self.options, str(raw), "option label")


CustomValueDecoder = Union[PassThroughDecoder, OptionDecoder]


def _frozen(table: Dict[Any, Any]) -> Mapping[Any, Any]:
    return MappingProxyType(dict(table))


@dataclass(frozen=True)
class OtherRefs:
    email: Mapping[int, str] = field(default_factory=dict)
    website: Mapping[int, str] = field(default_factory=dict)
    phone: Mapping[int, str] = field(default_factory=dict)
    address_locations: Mapping[int, str] = field(default_factory=dict)
    address_fields: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ReferenceCatalog:
    core_refs: Mapping[str, str] = field(default_factory=dict)
    custom_refs: Mapping[int, str] = field(default_factory=dict)
    custom_value_decoders: Mapping[int, CustomValueDecoder] = field(default_factory=dict)
    other_refs: OtherRefs = field(default_factory=OtherRefs)

    def decoder(self, field_id: int) -> CustomValueDecoder:
        # Option-backed fields without an option group have no decoder.
        return self.custom_value_decoders.get(field_id) or PassThroughDecoder()


def _type_refs(options: Iterable[TypeOption]) -> Dict[int, str]:
    return {option.key: option.value for option in options}


def build_other_refs(provider: BaseDataProvider) -> OtherRefs:
    return OtherRefs(
        email=_frozen(_type_refs(provider.type_table("email"))),
        website=_frozen(_type_refs(provider.type_table("website"))),
        phone=_frozen(_type_refs(provider.type_table("phone"))),
        address_locations=_frozen(_type_refs(provider.type_table("address"))),
        address_fields=_frozen(
            {definition.name: definition.title for definition in provider.address_field_definitions()}
        ),
    )


def build_catalog(provider: BaseDataProvider, contact_type: str) -> ReferenceCatalog:
    """Fetch schema metadata for ``contact_type`` and build the lookup tables.

    Errors from the provider propagate; a partial catalog is never returned.
    """

    entity_types = ["Contact", contact_type]

    core_refs: Dict[str, str] = {}
    for definition in provider.field_definitions(entity_types, visibility="public"):
        core_refs[definition.name] = definition.title

    custom_definitions = provider.custom_field_definitions(entity_types)
    custom_refs: Dict[int, str] = {}
    decoders: Dict[int, CustomValueDecoder] = {}
    for definition in custom_definitions:
        custom_refs[definition.id] = definition.label
        if definition.html_type not in OPTION_HTML_TYPES:
            decoders[definition.id] = PassThroughDecoder(definition.data_type)
        elif definition.option_group_id:
            decoders[definition.id] = OptionDecoder(
                _frozen(provider.option_values(definition.option_group_id))
            )
        else:
            logger.warning(
                "Custom field %s (%s) has no option group; values are shown as stored",
                definition.id,
                definition.html_type,
            )

    catalog = ReferenceCatalog(
        core_refs=_frozen(core_refs),
        custom_refs=_frozen(custom_refs),
        custom_value_decoders=_frozen(decoders),
        other_refs=build_other_refs(provider),
    )
    logger.debug(
        "Built catalog for %s: %d core labels, %d custom labels",
        contact_type,
        len(core_refs),
        len(custom_refs),
    )
    return catalog
