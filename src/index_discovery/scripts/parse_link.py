#!/usr/bin/env python
"""Print the index definition embedded in a console ``create_composite`` link.

Usage:
    python -m index_discovery.scripts.parse_link "<console link>"
"""

import argparse
import json
import sys

from index_discovery.core.exceptions import DecodeError, MalformedLinkError
from index_discovery.core.logging import get_logger, setup_logging
from index_discovery.services.link_parser import parse_link

logger = get_logger(__name__)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Decode the index definition of a console create_composite link",
    )
    parser.add_argument("url", help="Console link, quoted")

    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)

    setup_logging("DEBUG" if args.verbose else None)

    try:
        definition = parse_link(args.url).to_index_definition()
    except (MalformedLinkError, DecodeError) as e:
        logger.error(f"Cannot decode link: {e.message}")
        sys.exit(1)

    print(json.dumps(definition.to_json_dict(), indent=2))
    sys.exit(0)


if __name__ == "__main__":
    main()
