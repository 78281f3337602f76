from __future__ import annotations

from pathlib import Path

import pytest

from civicrm_directory.catalog import OptionDecoder, OtherRefs, PassThroughDecoder, ReferenceCatalog
from civicrm_directory.field_config import FieldConfigStore
from civicrm_directory.providers import FixtureDataProvider

ROOT_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = ROOT_DIR / "data"


@pytest.fixture()
def fixture_provider() -> FixtureDataProvider:
    return FixtureDataProvider(DATA_DIR / "civicrm_fixture.json")


@pytest.fixture()
def config_store() -> FieldConfigStore:
    return FieldConfigStore(DATA_DIR / "directory_config.json")


@pytest.fixture()
def catalog() -> ReferenceCatalog:
    return ReferenceCatalog(
        core_refs={
            "first_name": "First Name",
            "last_name": "Last Name",
            "job_title": "Job Title",
        },
        custom_refs={1: "Favourite Colour", 2: "Biography"},
        custom_value_decoders={
            1: OptionDecoder({"1": "Blue", "3": "Red"}),
            2: PassThroughDecoder("Memo"),
        },
        other_refs=OtherRefs(
            email={1: "Home", 2: "Work"},
            website={1: "Work", 2: "Main"},
            phone={1: "Phone", 2: "Mobile"},
            address_locations={1: "Home", 2: "Work"},
            address_fields={
                "street_address": "Street Address",
                "city": "City",
                "postal_code": "Postal Code",
                "state_province_id": "State/Province ID",
                "country_id": "Country ID",
            },
        ),
    )
