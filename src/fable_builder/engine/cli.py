#!/usr/bin/env python3
"""Fable builder CLI."""

import argparse
import json
import logging
import sys
from pathlib import Path

import yaml

from .catalogue import Catalogue, factory_id_to_key
from .codec import compression_stats, decode, encode, is_too_large
from .config import BuilderSettings, ConfigError, load_catalogue, load_pipeline
from .generator import generate_plugin_pipeline
from .graph import to_graph
from .validation import validate


def _load_catalogue(args: argparse.Namespace, settings: BuilderSettings) -> Catalogue:
    path = args.catalogue or settings.catalogue_path
    if path is None:
        raise ConfigError("No catalogue given (use --catalogue or a settings file)")
    return load_catalogue(path)


def _cmd_validate(args: argparse.Namespace, settings: BuilderSettings) -> int:
    catalogue = _load_catalogue(args, settings)
    report = validate(load_pipeline(args.pipeline), catalogue)

    for error in report.globalErrors:
        print(f"error: {error}")
    for block_id, state in report.blockStates.items():
        for error in state.errors:
            print(f"error: [{block_id}] {error}")
        if args.expansions and state.possibleExpansions:
            keys = ", ".join(factory_id_to_key(fid) for fid in state.possibleExpansions)
            print(f"  [{block_id}] can feed: {keys}")

    if report.isValid:
        print(f"Pipeline is valid ({len(report.blockStates)} blocks)")
        return 0
    return 1


def _cmd_graph(args: argparse.Namespace, settings: BuilderSettings) -> int:
    graph = to_graph(load_pipeline(args.pipeline), _load_catalogue(args, settings))
    print(graph.model_dump_json(indent=2))
    return 0


def _cmd_encode(args: argparse.Namespace, settings: BuilderSettings) -> int:
    token = encode(load_pipeline(args.pipeline))
    print(token)
    limit = args.max_length or settings.max_token_length
    if is_too_large(token, limit):
        print(
            f"warning: token is {len(token)} characters, links over {limit} may be cut",
            file=sys.stderr,
        )
    return 0


def _cmd_decode(args: argparse.Namespace, settings: BuilderSettings) -> int:
    model = decode(args.token.strip())
    if model is None:
        print("Invalid or corrupted pipeline token", file=sys.stderr)
        return 1
    text = yaml.safe_dump(model.model_dump(mode="json"), sort_keys=False, allow_unicode=True)
    if args.output:
        args.output.write_text(text)
        print(f"Wrote {args.output}")
    else:
        print(text, end="")
    return 0


def _cmd_stats(args: argparse.Namespace, settings: BuilderSettings) -> int:
    stats = compression_stats(load_pipeline(args.pipeline))
    print(f"Original size:   {stats.original_size}")
    print(f"Compressed size: {stats.compressed_size}")
    print(f"Ratio:           {stats.ratio:.3f}")
    return 0


def _cmd_generate(args: argparse.Namespace, settings: BuilderSettings) -> int:
    catalogue = _load_catalogue(args, settings)
    if args.plugin not in catalogue:
        print(f"Plugin not found in catalogue: {args.plugin}", file=sys.stderr)
        return 1
    generated = generate_plugin_pipeline(catalogue, args.plugin)
    print(yaml.safe_dump(generated.model.model_dump(mode="json"), sort_keys=False), end="")
    return 0


def main() -> int:
    """Run the fable builder CLI."""
    parser = argparse.ArgumentParser(
        description="Validate, project and share fable pipelines",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s validate pipeline.yml -c catalogue.yml   # Report findings
  %(prog)s graph pipeline.yml -c catalogue.yml      # React Flow nodes/edges as JSON
  %(prog)s encode pipeline.yml                      # Print a shareable token
  %(prog)s decode <token> -o pipeline.yml           # Restore a pipeline from a token
  %(prog)s stats pipeline.yml                       # Show compression statistics
  %(prog)s generate ecmwf/ecmwf-base -c catalogue.yml
        """,
    )
    parser.add_argument(
        "--settings", type=Path, default=None, help="Path to builder settings YAML"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    catalogue_parent = argparse.ArgumentParser(add_help=False)
    catalogue_parent.add_argument(
        "-c", "--catalogue", type=Path, default=None, help="Path to block catalogue (YAML/JSON)"
    )

    commands = parser.add_subparsers(dest="command", required=True)

    p = commands.add_parser("validate", parents=[catalogue_parent], help="Validate a pipeline")
    p.add_argument("pipeline", type=Path)
    p.add_argument(
        "--expansions", action="store_true", help="Also list possible expansions per block"
    )
    p.set_defaults(func=_cmd_validate)

    p = commands.add_parser("graph", parents=[catalogue_parent], help="Print the visual graph")
    p.add_argument("pipeline", type=Path)
    p.set_defaults(func=_cmd_graph)

    p = commands.add_parser("encode", help="Encode a pipeline into a URL token")
    p.add_argument("pipeline", type=Path)
    p.add_argument("--max-length", type=int, default=None, help="Warn above this token length")
    p.set_defaults(func=_cmd_encode)

    p = commands.add_parser("decode", help="Decode a URL token into a pipeline")
    p.add_argument("token")
    p.add_argument("-o", "--output", type=Path, default=None, help="Write YAML here")
    p.set_defaults(func=_cmd_decode)

    p = commands.add_parser("stats", help="Show compression statistics")
    p.add_argument("pipeline", type=Path)
    p.set_defaults(func=_cmd_stats)

    p = commands.add_parser(
        "generate", parents=[catalogue_parent], help="Generate a pipeline from a plugin"
    )
    p.add_argument("plugin", help="Plugin key in the catalogue")
    p.set_defaults(func=_cmd_generate)

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = BuilderSettings.from_yaml(args.settings) if args.settings else BuilderSettings()
        return int(args.func(args, settings))
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e.strerror}: {e.filename}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
