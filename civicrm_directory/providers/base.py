"""Provider interface and errors shared by all data sources."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

from ..models import CustomFieldDefinition, FieldDefinition, RawContactRecord, TypeOption
from ..plan import RequestPlan

TYPE_CATEGORIES = ("email", "website", "phone", "address")


class TransportError(RuntimeError):
    """Raised when the CRM cannot be reached or answers with an error."""


class NotFoundError(LookupError):
    """Raised when no contact matches the requested id and group."""


class BaseDataProvider(ABC):
    """Abstract interface for provider implementations."""

    @abstractmethod
    def field_definitions(
        self, entity_types: Sequence[str], visibility: str = "public"
    ) -> List[FieldDefinition]:
        """Return core field definitions for the given contact entity types."""

    @abstractmethod
    def custom_field_definitions(self, entity_types: Sequence[str]) -> List[CustomFieldDefinition]:
        """Return the active custom fields extending the given entity types."""

    @abstractmethod
    def option_values(self, option_group_id: int) -> Dict[str, str]:
        """Return option value -> label for an option group."""

    @abstractmethod
    def type_table(self, category: str) -> List[TypeOption]:
        """Return the type options for ``email``, ``website``, ``phone`` or ``address``."""

    @abstractmethod
    def address_field_definitions(self) -> List[FieldDefinition]:
        """Return address field key -> title definitions."""

    @abstractmethod
    def get_contact(
        self,
        contact_id: int,
        *,
        group_id: Optional[int],
        plan: Optional[RequestPlan] = None,
    ) -> RawContactRecord:
        """Fetch one contact, with the plan's fields and chained sub-records if given."""
