from __future__ import annotations

from civicrm_directory.config import AppConfig
from civicrm_directory.controller import DirectoryEntryController, parse_entry_id
from civicrm_directory.field_config import FieldConfigStore
from civicrm_directory.formatting import format_entry
from civicrm_directory.providers import FixtureDataProvider


def test_e2e_render_flow():
    config = AppConfig()
    provider = FixtureDataProvider(config.fixture_path)
    controller = DirectoryEntryController(provider, FieldConfigStore(config.field_config_path))

    contact_id = parse_entry_id("-101")
    entry = controller.render_entry(1, contact_id)
    assert not entry.view.is_empty(), "Contact details are expected"

    text = format_entry(entry)
    assert text.startswith("Ada Lovelace")
    assert "  Home: Mobile: 555-1000" in text
    assert "Billing" not in text
    assert "Supplemental" not in text
