"""Controller logic for directory entry views."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from .assembler import assemble
from .catalog import build_catalog
from .field_config import FieldConfigStore
from .models import RawContactRecord, ViewModel
from .plan import compile_plan
from .providers import BaseDataProvider

logger = logging.getLogger(__name__)


def parse_entry_id(value: Any) -> Optional[int]:
    """Convert the ``entry`` request value to a contact id.

    The value is read as an absolute integer; anything that converts to 0
    is rejected.
    """

    if value is None or isinstance(value, bool):
        return None
    try:
        contact_id = abs(int(str(value).strip()))
    except ValueError:
        return None
    return contact_id or None


@dataclass
class DirectoryEntry:
    contact: RawContactRecord
    view: ViewModel

    @property
    def contact_id(self) -> int:
        return self.contact.contact_id

    @property
    def contact_type(self) -> str:
        return self.contact.contact_type

    @property
    def display_name(self) -> str:
        return self.contact.display_name


class DirectoryEntryController:
    """Run the contact rendering pipeline for one directory."""

    def __init__(self, provider: BaseDataProvider, config_store: FieldConfigStore) -> None:
        self.provider = provider
        self.config_store = config_store

    def render_entry(self, directory_id: int | str, contact_id: int) -> DirectoryEntry:
        """Build the view model for one contact shown in a directory."""

        group_id = self.config_store.group_id(directory_id)
        # Base fetch: contact type and group membership pick the configuration.
        contact = self.provider.get_contact(contact_id, group_id=group_id)
        configuration = self.config_store.field_configuration(directory_id, contact.contact_type)

        catalog = build_catalog(self.provider, contact.contact_type)
        plan = compile_plan(configuration)
        raw = self.provider.get_contact(contact.contact_id, group_id=group_id, plan=plan)
        view = assemble(raw, catalog, plan)

        logger.info(
            "Rendered contact %s (%s) for directory %s",
            contact.contact_id,
            contact.contact_type,
            directory_id,
        )
        return DirectoryEntry(contact=contact, view=view)

    @staticmethod
    def map_contacts(listing: Sequence[Any], entry: Optional[DirectoryEntry] = None) -> List[Any]:
        """Return the contacts to plot on the directory map.

        When an entry is being viewed only that contact is shown.
        """

        if entry is not None:
            return [entry.contact]
        return list(listing)
