"""
CLI commands for resolving NETCONF filters offline.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from .config import load_config_from_env
from .dispatcher import FilterCarrier
from .errors import FilterError
from .registry import load_registry
from .service import FilterService


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def _service(args) -> FilterService:
    config = load_config_from_env()
    if args.registry:
        config.registry_path = Path(args.registry)
    if config.registry_path is None:
        return FilterService(limits=config.limits)
    return FilterService(
        load_registry(config.registry_path), config.limits, source=str(config.registry_path)
    )


def _print_filters(filters, as_json: bool):
    if as_json:
        print(json.dumps({"filters": filters.to_list(), "count": len(filters)}, indent=2))
        return
    for xpath in filters:
        print(xpath)


def cmd_compile(args):
    """Resolve a <filter> element read from a file or stdin."""
    setup_logging(args.verbose)
    try:
        if args.file == "-":
            text = sys.stdin.buffer.read()
        else:
            text = Path(args.file).read_bytes()
        filters = _service(args).build_from_xml(text)
    except FilterError as e:
        print(f"✗ {e.error_tag}: {e.message}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"✗ Cannot read filter: {e}", file=sys.stderr)
        return 1
    _print_filters(filters, args.json)
    return 0


def cmd_xpath(args):
    """Pass an XPath select expression through the xpath filter path."""
    setup_logging(args.verbose)
    try:
        carrier = FilterCarrier(attributes={"type": "xpath", "select": args.select})
        filters = _service(args).build(carrier)
    except FilterError as e:
        print(f"✗ {e.error_tag}: {e.message}", file=sys.stderr)
        return 1
    _print_filters(filters, args.json)
    return 0


def cmd_modules(args):
    """List modules of the configured registry."""
    setup_logging(args.verbose)
    try:
        service = _service(args)
    except FilterError as e:
        print(f"✗ {e.message}", file=sys.stderr)
        return 1
    modules = getattr(service.resolver, "modules", [])
    if not modules:
        print("No schema modules registered")
        return 0
    print("Registered schema modules:")
    for module in modules:
        revision = f"@{module.revision}" if module.revision else ""
        nodes = ", ".join(module.top_level_nodes) or "-"
        print(f"  {module.name}{revision} ({module.namespace}): {nodes}")
    return 0


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="NETCONF filter resolution CLI",
        prog="netconf-filter"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )
    parser.add_argument(
        "--registry",
        help="Module registry JSON file (default: $NETCONF_FILTER_REGISTRY)"
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands"
    )

    # Compile command
    compile_parser = subparsers.add_parser(
        "compile",
        help="Resolve a <filter> element into XPath expressions"
    )
    compile_parser.add_argument(
        "file",
        help="File holding the <filter> element, or '-' for stdin"
    )
    compile_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON"
    )
    compile_parser.set_defaults(func=cmd_compile)

    # XPath command
    xpath_parser = subparsers.add_parser(
        "xpath",
        help="Resolve an xpath filter select expression"
    )
    xpath_parser.add_argument("select", help="XPath select expression")
    xpath_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON"
    )
    xpath_parser.set_defaults(func=cmd_xpath)

    # Modules command
    modules_parser = subparsers.add_parser(
        "modules",
        help="List registered schema modules"
    )
    modules_parser.set_defaults(func=cmd_modules)

    args = parser.parse_args(argv)

    if not hasattr(args, 'func'):
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
