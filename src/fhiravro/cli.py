"""fhiravro CLI: compile element definition trees into Avro schemas."""

import argparse
import logging
import sys
from importlib.metadata import version as get_version, PackageNotFoundError
from pathlib import Path

from pydantic import ValidationError

from fhiravro._internal.canonical_json import canonical_dumps
from fhiravro.api import compile_definition
from fhiravro.kernel.errors import CompilationError
from fhiravro.kernel.naming import ROOT_NAMESPACE
from fhiravro.kernel.session import CompilerSettings


def main():
    """Main CLI entry point for fhiravro commands."""
    try:
        fhiravro_version = get_version("fhiravro")
    except PackageNotFoundError:
        fhiravro_version = "dev"

    parser = argparse.ArgumentParser(
        prog="fhiravro",
        description="fhiravro: compile FHIR structure definitions into Avro schemas"
    )
    parser.add_argument("--version", action="version", version=f"fhiravro {fhiravro_version}")
    parent_parser = argparse.ArgumentParser(add_help=False)
    parent_parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress all non-error output."
    )
    parent_parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log compilation details (cache hits, dropped elements)."
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    schema_parser = subparsers.add_parser(
        "schema",
        help="Compile an element definition tree and write its Avro schema",
        parents=[parent_parser]
    )
    schema_parser.add_argument(
        "--definition",
        type=Path,
        required=True,
        help="Path to element definition JSON"
    )
    schema_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the schema here (defaults to stdout)"
    )
    schema_parser.add_argument(
        "--root-namespace",
        default=ROOT_NAMESPACE,
        help=f"Namespace of base FHIR types (default: {ROOT_NAMESPACE})"
    )
    schema_parser.add_argument(
        "--max-depth",
        type=int,
        default=1,
        help="Times a recursive element may repeat on one branch (default: 1)"
    )

    args = parser.parse_args()

    if args.command == "schema":
        level = logging.ERROR if args.quiet else (logging.DEBUG if args.verbose else logging.WARNING)
        logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
        try:
            settings = CompilerSettings(root_namespace=args.root_namespace, max_depth=args.max_depth)
            result = compile_definition(args.definition, settings=settings)
        except (CompilationError, ValidationError, ValueError, OSError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

        text = canonical_dumps(result.avro_schema, indent=2)
        if args.output is None:
            print(text)
            return
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(text + "\n", encoding="utf-8")
        if not args.quiet:
            print(f"[OK] Wrote {result.full_name or 'schema'} to {args.output}")
            print(f"  Schema hash: {result.schema_hash}")
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
