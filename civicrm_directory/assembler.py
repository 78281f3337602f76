"""Turn a raw contact record into the grouped, labeled view model.

``assemble`` is a pure function of the raw record, the reference catalog and
the request plan. Empty or absent raw values never produce an entry; a label
missing from the catalog raises ``ContractViolation`` because the catalog must
cover every field the plan requests.
"""

from __future__ import annotations

import logging
from typing import Dict, List

from .catalog import ReferenceCatalog, require
from .models import AddressGroup, LabeledValue, RawContactRecord, ViewModel, is_empty
from .plan import DENORMALIZED_ADDRESS_KEYS, RequestPlan, custom_key

# Fixed labels for the id-valued address keys shown by name.
SUBSTITUTED_ADDRESS_LABELS: Dict[str, str] = {
    "state_province_id": "State/Province",
    "country_id": "Country",
}

logger = logging.getLogger(__name__)

_DENORMALIZED_NAME_KEYS = frozenset(DENORMALIZED_ADDRESS_KEYS.values())


def _core(raw: RawContactRecord, catalog: ReferenceCatalog, plan: RequestPlan) -> List[LabeledValue]:
    entries: List[LabeledValue] = []
    for name in plan.fields_core:
        value = raw.get(name)
        if is_empty(value):
            continue
        entries.append(LabeledValue(require(catalog.core_refs, name, "core field label"), value))
    return entries


def _custom(raw: RawContactRecord, catalog: ReferenceCatalog, plan: RequestPlan) -> List[LabeledValue]:
    entries: List[LabeledValue] = []
    for field_id in plan.fields_custom:
        value = raw.get(custom_key(field_id))
        if is_empty(value):
            continue
        label = require(catalog.custom_refs, field_id, "custom field label")
        entries.append(LabeledValue(label, catalog.decoder(field_id).decode(value)))
    return entries


def _emails(raw: RawContactRecord, catalog: ReferenceCatalog) -> List[LabeledValue]:
    # Keyed by type: a later entry of the same type replaces an earlier one.
    by_type: Dict[object, LabeledValue] = {}
    for item in raw.emails:
        if is_empty(item.email):
            continue
        label = require(catalog.other_refs.email, item.location_type_id, "email type label")
        by_type[item.location_type_id] = LabeledValue(label, item.email)
    return list(by_type.values())


def _websites(raw: RawContactRecord, catalog: ReferenceCatalog) -> List[LabeledValue]:
    by_type: Dict[object, LabeledValue] = {}
    for item in raw.websites:
        if is_empty(item.url):
            continue
        label = require(catalog.other_refs.website, item.website_type_id, "website type label")
        by_type[item.website_type_id] = LabeledValue(label, item.url)
    return list(by_type.values())


def _phones(raw: RawContactRecord, catalog: ReferenceCatalog, plan: RequestPlan) -> List[LabeledValue]:
    # The label is the location, taken from the email location table; the
    # phone type is carried in the value. An empty type selection for a
    # location shows every type there.
    selections = plan.sub_requests.phone
    by_location: Dict[object, LabeledValue] = {}
    for item in raw.phones:
        if is_empty(item.phone):
            continue
        allowed = selections.get(item.location_type_id)
        if allowed is None or (allowed and item.phone_type_id not in allowed):
            continue
        label = require(catalog.other_refs.email, item.location_type_id, "location label")
        phone_type = require(catalog.other_refs.phone, item.phone_type_id, "phone type label")
        by_location[item.location_type_id] = LabeledValue(label, f"{phone_type}: {item.phone}")
    return list(by_location.values())


def _addresses(raw: RawContactRecord, catalog: ReferenceCatalog, plan: RequestPlan) -> List[AddressGroup]:
    groups: List[AddressGroup] = []
    refs = catalog.other_refs
    for location_id, requested in plan.sub_requests.address.items():
        group = AddressGroup(
            location_type_id=location_id,
            label=require(refs.address_locations, location_id, "address location label"),
        )
        for item in raw.addresses:
            if item.location_type_id != location_id:
                continue
            for key, value in item.items():
                if key in _DENORMALIZED_NAME_KEYS or key not in requested:
                    continue
                if is_empty(value):
                    continue
                if key in SUBSTITUTED_ADDRESS_LABELS:
                    name = item.values.get(DENORMALIZED_ADDRESS_KEYS[key])
                    if is_empty(name):
                        logger.debug(
                            "No %s for %s %r at location %s; field skipped",
                            DENORMALIZED_ADDRESS_KEYS[key],
                            key,
                            value,
                            location_id,
                        )
                        continue
                    group.fields.append(LabeledValue(SUBSTITUTED_ADDRESS_LABELS[key], name))
                    continue
                label = require(refs.address_fields, key, "address field label")
                group.fields.append(LabeledValue(label, value))
        if group.fields:
            groups.append(group)
    return groups


def assemble(raw: RawContactRecord, catalog: ReferenceCatalog, plan: RequestPlan) -> ViewModel:
    """Build the view model for ``raw`` from the catalog and plan."""

    view = ViewModel(core=_core(raw, catalog, plan), custom=_custom(raw, catalog, plan))
    for category in plan.categories:
        if category == "email":
            view.email = _emails(raw, catalog)
        elif category == "website":
            view.website = _websites(raw, catalog)
        elif category == "phone":
            view.phone = _phones(raw, catalog, plan)
        elif category == "address":
            view.address = _addresses(raw, catalog, plan)
    return view
