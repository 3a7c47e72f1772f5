#!/usr/bin/env python3
"""
httpdconf - Apache-style configuration file reader
CLI Entry Point

Parses an httpd.conf-style file (with its Include files) and prints
directive values, block listings or a dump of the whole tree.

Usage:
    httpdconf --config <file> --directive ServerName
    httpdconf --config <file> --context VirtualHost=10.1.1.2 --directive DocumentRoot
    httpdconf --config <file> --dump [--format text|json]
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from httpdconf.core.exceptions import ConfigFileError  # pyre-ignore
from httpdconf.core.navigator import ContextHandle  # pyre-ignore
from httpdconf.core.normalizer import split_option_pair  # pyre-ignore
from httpdconf.core.parser_engine import ConfigFile  # pyre-ignore
from httpdconf.core.report_generator import ReportGenerator  # pyre-ignore


def setup_logging(verbose: bool = False):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S"
    )


def navigate(config: ConfigFile, steps: List[str]) -> Optional[ContextHandle]:
    """Walk "Tag=Param" steps from the root, taking the first instance each time."""
    handle = config.context()
    for step in steps:
        tag, param = split_option_pair(step)
        handle = handle.context(tag, param)
        if handle is None:
            return None
    return handle


def run_query(
    config_path: str,
    contexts: List[str],
    directive: Optional[str] = None,
    dump: bool = False,
    output_format: str = "text",
    **options
) -> int:
    """
    Load a configuration and print the requested part of it.

    Args:
        config_path: Path to the configuration file.
        contexts: "Tag=Param" steps to walk before querying.
        directive: Directive to print (all rows), or None to list names.
        dump: Dump the tree under the selected context.
        output_format: "text" or "json".
        options: ConfigFile options.

    Returns:
        Process exit status.
    """
    logger = logging.getLogger("httpdconf")

    config = ConfigFile(config_path, **options)
    for problem in config.diagnostics:
        logger.warning(f"{problem.kind}: {problem.message}")

    handle = navigate(config, contexts)
    if handle is None:
        print(f"  [ERROR] No such context: {' > '.join(contexts)}", file=sys.stderr)
        return 1

    if directive:
        rows = handle.all_rows(directive)
        values = handle.directive_values(directive)
        if output_format == "json":
            print(json.dumps({"directive": directive, "rows": rows, "values": values}, indent=2))
        elif rows:
            for row in rows:
                print(" ".join(row))
        else:
            # block tag: its parameters
            for value in values:
                print(value)
        return 0 if values else 1

    if not dump:
        names = handle.directive_values()
        if output_format == "json":
            print(json.dumps({"names": names}, indent=2))
        else:
            for name in names:
                print(name)
        return 0

    report_gen = ReportGenerator()
    if output_format == "json":
        print(report_gen.generate_json(handle))
    else:
        print(report_gen.generate_text(handle, source=config_path), end="")
    return 0


def main(argv: Optional[List[str]] = None):
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="httpdconf",
        description="httpdconf - read Apache httpd-style configuration files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  httpdconf --config /etc/httpd/conf/httpd.conf --directive ServerName
  httpdconf --config httpd.conf --context VirtualHost=10.1.1.2 --directive DocumentRoot
  httpdconf --config releases.conf --ignore-case --expand-vars --dump --format json
        """
    )

    parser.add_argument(
        "--config", "-c",
        required=True,
        help="Path to the configuration file to read"
    )
    parser.add_argument(
        "--context", "-x",
        action="append",
        default=[],
        metavar="TAG[=PARAM]",
        help="Block to descend into; repeat to walk nested blocks"
    )
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--directive", "-d",
        default=None,
        help="Directive whose rows to print"
    )
    group.add_argument(
        "--dump",
        action="store_true",
        help="Dump the tree under the selected context"
    )
    parser.add_argument(
        "--format", "-f",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)"
    )
    parser.add_argument("--ignore-case", action="store_true", help="Case-insensitive names")
    parser.add_argument("--fix-booleans", action="store_true", help="Map yes/on/true to 1 and no/off/false to 0")
    parser.add_argument("--expand-vars", action="store_true", help="Expand $Var references to top-level directives")
    parser.add_argument("--raise-error", action="store_true", help="Abort on the first read or parse error")
    parser.add_argument("--server-root", default=None, help="Initial root directory for relative Include paths")
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose/debug logging"
    )

    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    try:
        status = run_query(
            config_path=args.config,
            contexts=args.context,
            directive=args.directive,
            dump=args.dump,
            output_format=args.format,
            ignore_case=args.ignore_case,
            fix_booleans=args.fix_booleans,
            expand_vars=args.expand_vars,
            raise_error=args.raise_error,
            server_root=args.server_root,
        )
    except ConfigFileError as e:
        print(f"\n  [ERROR] {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"\n  [ERROR] Unexpected Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)

    sys.exit(status)


if __name__ == "__main__":
    main()
