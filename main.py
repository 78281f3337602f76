"""Entry point: render one directory entry on the command line."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Sequence

from civicrm_directory import (
    ConfigurationError,
    DirectoryEntryController,
    FieldConfigStore,
    NotFoundError,
    TransportError,
    create_provider,
    load_config,
    parse_entry_id,
)
from civicrm_directory.formatting import format_entry


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Render a CiviCRM directory entry")
    parser.add_argument("directory_id", help="Id of the directory the contact is listed in")
    parser.add_argument("entry", help="Contact id, as passed in the 'entry' query variable")
    parser.add_argument("--json", action="store_true", help="Print the view model as JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    contact_id = parse_entry_id(args.entry)
    if contact_id is None:
        raise SystemExit(f"Invalid directory entry: {args.entry!r}")

    config = load_config(Path(__file__).parent)
    try:
        provider = create_provider(config)
        controller = DirectoryEntryController(provider, FieldConfigStore(config.field_config_path))
        entry = controller.render_entry(args.directory_id, contact_id)
    except NotFoundError as exc:
        raise SystemExit(f"Contact not found: {exc}") from exc
    except ConfigurationError as exc:
        raise SystemExit(f"Directory is not configured correctly: {exc}") from exc
    except TransportError as exc:
        raise SystemExit(f"CiviCRM request failed: {exc}") from exc

    if args.json:
        payload = {
            "contact_id": entry.contact_id,
            "display_name": entry.display_name,
            "contact_type": entry.contact_type,
            "view": entry.view.to_dict(),
        }
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        print(format_entry(entry))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
