"""Main CLI entry point for the schema engine."""

import argparse
import sys
from pathlib import Path

# Add project root to path for imports
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from src.cli.commands.components import components_command
from src.cli.commands.convert import convert_command
from src.utils.config import Config
from src.utils.logging_config import setup_logging


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="schema-engine",
        description="Schema Engine - resolve JSON Schema models into OpenAPI components",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Components command
    components_parser = subparsers.add_parser(
        "components", help="Resolve documentation models into components.schemas"
    )
    components_parser.add_argument("documentation", help="YAML or JSON file with models / modelsList")
    components_parser.add_argument(
        "--request-schemas", help="YAML or JSON file with the provider request schema map", default=None
    )
    components_parser.add_argument(
        "--openapi", help="OpenAPI document to merge the components into", default=None
    )

    # Convert command
    convert_parser = subparsers.add_parser(
        "convert", help="Dereference and convert a single schema file or URL"
    )
    convert_parser.add_argument("name", help="Component name for the top-level schema")
    convert_parser.add_argument("schema", help="Schema file path or URL")

    for subparser in (components_parser, convert_parser):
        subparser.add_argument("-o", "--output", help="Write output to a file instead of stdout", default=None)
        subparser.add_argument(
            "--format", choices=["yaml", "json"], default="yaml", help="Output format (default: yaml)"
        )
        subparser.add_argument("--base-dir", help="Base directory for relative file references", default=None)
        subparser.add_argument("--config", help="Path to .env configuration file", default=None)
        subparser.add_argument(
            "-v",
            "--verbose",
            action="store_true",
            help="Show detailed processing information",
        )

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    setup_logging(verbose=args.verbose)

    # Load configuration
    config = Config(args.config)
    if args.base_dir:
        config.schema_base_dir = args.base_dir

    # Execute command
    if args.command == "components":
        components_command(
            config=config,
            documentation_path=args.documentation,
            request_schemas_path=args.request_schemas,
            openapi_path=args.openapi,
            output_path=args.output,
            output_format=args.format,
        )
    elif args.command == "convert":
        convert_command(
            config=config,
            name=args.name,
            schema=args.schema,
            output_path=args.output,
            output_format=args.format,
        )
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
