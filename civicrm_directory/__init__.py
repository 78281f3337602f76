"""CiviCRM Directory entry rendering package."""

from .assembler import assemble
from .catalog import ContractViolation, ReferenceCatalog, build_catalog
from .config import AppConfig, load_config
from .controller import DirectoryEntry, DirectoryEntryController, parse_entry_id
from .field_config import ConfigurationError, FieldConfigStore, FieldConfiguration
from .plan import RequestPlan, compile_plan
from .providers import NotFoundError, TransportError, create_provider

__all__ = [
    "AppConfig",
    "ConfigurationError",
    "ContractViolation",
    "DirectoryEntry",
    "DirectoryEntryController",
    "FieldConfigStore",
    "FieldConfiguration",
    "NotFoundError",
    "ReferenceCatalog",
    "RequestPlan",
    "TransportError",
    "assemble",
    "build_catalog",
    "compile_plan",
    "create_provider",
    "load_config",
    "parse_entry_id",
]
