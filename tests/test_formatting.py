from __future__ import annotations

from civicrm_directory.controller import DirectoryEntry
from civicrm_directory.formatting import format_entry
from civicrm_directory.models import AddressGroup, LabeledValue, RawContactRecord, ViewModel


def test_format_entry_renders_groups_in_order():
    entry = DirectoryEntry(
        contact=RawContactRecord(contact_id=101, contact_type="Individual", display_name="Ada Lovelace"),
        view=ViewModel(
            core=[LabeledValue("First Name", "Ada")],
            email=[LabeledValue("Home", "ada@example.org")],
            address=[AddressGroup(1, "Home", [LabeledValue("City", "London")])],
        ),
    )

    assert format_entry(entry).splitlines() == [
        "Ada Lovelace",
        "",
        "Details:",
        "  First Name: Ada",
        "",
        "Email:",
        "  Home: ada@example.org",
        "",
        "Address:",
        "  Home",
        "    City: London",
    ]


def test_format_entry_without_name_or_values():
    entry = DirectoryEntry(
        contact=RawContactRecord(contact_id=7, contact_type="Household"),
        view=ViewModel(),
    )

    assert format_entry(entry) == "Contact 7"
