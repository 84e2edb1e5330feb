"""CLI entry point for the builder server."""

import argparse
import logging
from pathlib import Path

import uvicorn

from fable_builder.engine import BuilderSettings, ConfigError, load_catalogue


def main() -> int:
    """Launch the builder server."""
    parser = argparse.ArgumentParser(
        description="HTTP API for the fable pipeline builder",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s catalogue.yml                   # Serve with a catalogue
  %(prog)s --settings fable-builder.yml    # Catalogue and limits from settings
  %(prog)s catalogue.yml --port 8080       # Custom port
        """,
    )

    parser.add_argument(
        "catalogue",
        nargs="?",
        type=Path,
        help="Path to block catalogue (YAML/JSON)",
    )
    parser.add_argument(
        "--settings",
        type=Path,
        default=None,
        help="Path to builder settings YAML",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to run server on (default: 8000)",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = BuilderSettings.from_yaml(args.settings) if args.settings else BuilderSettings()
        catalogue_path = args.catalogue or settings.catalogue_path
        if catalogue_path is None:
            print("No catalogue given (pass a path or use --settings)")
            return 1
        catalogue = load_catalogue(catalogue_path)
    except ConfigError as e:
        print(f"Error: {e}")
        return 1

    # Configure server
    from .server import configure

    configure(
        catalogue=catalogue,
        catalogue_path=catalogue_path,
        max_token_length=settings.max_token_length,
    )

    url = f"http://{args.host}:{args.port}"
    print(f"Starting builder API at {url}")
    print(f"Catalogue: {catalogue_path} ({len(catalogue)} plugins)")

    uvicorn.run(
        "fable_builder.ui.server:app",
        host=args.host,
        port=args.port,
        log_level="debug" if args.verbose else "warning",
    )

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
