"""Data providers for CiviCRM Directory."""

from __future__ import annotations

import os

from .base import TYPE_CATEGORIES, BaseDataProvider, NotFoundError, TransportError
from .civicrm import CiviCRMDataProvider
from .fixture import FixtureDataProvider

__all__ = [
    "TYPE_CATEGORIES",
    "BaseDataProvider",
    "CiviCRMDataProvider",
    "FixtureDataProvider",
    "NotFoundError",
    "TransportError",
    "create_provider",
]


def create_provider(config) -> BaseDataProvider:
    """Create the appropriate provider based on configuration."""

    if config.use_civicrm:
        required_env = {
            "CIVICRM_REST_URL": os.getenv("CIVICRM_REST_URL"),
            "CIVICRM_API_KEY": os.getenv("CIVICRM_API_KEY"),
            "CIVICRM_SITE_KEY": os.getenv("CIVICRM_SITE_KEY"),
        }
        missing = [key for key, value in required_env.items() if not value]
        if missing:
            raise TransportError(
                "CiviCRM configuration incomplete. Missing variables: " + ", ".join(missing)
            )
        return CiviCRMDataProvider(
            rest_url=required_env["CIVICRM_REST_URL"],
            api_key=required_env["CIVICRM_API_KEY"],
            site_key=required_env["CIVICRM_SITE_KEY"],
            timeout=config.timeout,
        )

    return FixtureDataProvider(config.fixture_path)
