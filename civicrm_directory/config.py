"""Application configuration utilities."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class AppConfig:
    """Configuration container for the CiviCRM Directory application."""

    data_source: str = "fixture"
    fixture_path: Path = Path("data/civicrm_fixture.json")
    field_config_path: Path = Path("data/directory_config.json")
    timeout: int = 10

    @property
    def use_civicrm(self) -> bool:
        return self.data_source.lower() == "civicrm"


def load_config(base_dir: Path | None = None) -> AppConfig:
    """Load configuration from environment variables."""

    base_dir = base_dir or Path.cwd()
    data_source = os.getenv("DATA_SOURCE", "fixture")

    fixture_override = os.getenv("CIVICRM_FIXTURE_PATH")
    if fixture_override:
        fixture_path = Path(fixture_override)
    else:
        fixture_path = base_dir / "data" / "civicrm_fixture.json"

    field_config_override = os.getenv("CIVICRM_FIELD_CONFIG_PATH")
    if field_config_override:
        field_config_path = Path(field_config_override)
    else:
        field_config_path = base_dir / "data" / "directory_config.json"

    timeout_env = os.getenv("CIVICRM_TIMEOUT")
    try:
        timeout = int(timeout_env) if timeout_env else 10
    except ValueError:
        timeout = 10

    return AppConfig(
        data_source=data_source,
        fixture_path=fixture_path,
        field_config_path=field_config_path,
        timeout=timeout,
    )
