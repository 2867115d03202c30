import argparse
import logging
import sys

from portreleasor import VERSION, config
from portreleasor.core import check_ports, release_ports
from portreleasor.errors import PortReleasorError

logger = logging.getLogger("portreleasor")


def show_help():
    print(f"""
PortReleasor {VERSION} - check which process owns a port and release it

Usage:
  portreleasor check [PATTERN...] [-v] [-w]
  portreleasor release PORT... [-f]

Commands:
  check               List listening ports (all, or those matching PATTERN)
    -v, --verbose     Also show the executable path of each process
    -w, --wildcard    Match PATTERN anywhere in the port number
  release             Kill the processes listening on PORT
                      (8080, 8080,8081 or 8080-8090)
    -f, --force       Do not ask for confirmation

Options:
  --debug             Verbose diagnostics on stderr
  -h, --help          Show this help
  --version           Show version

Environment:
  PORTRELEASOR_TIMEOUT    Seconds before an external tool is abandoned (default 10)
  PORTRELEASOR_GRACE      Seconds between SIGTERM and SIGKILL (default 3)
  PORTRELEASOR_LOG_LEVEL  Logging level (default WARNING)
""".strip())


def build_parser():
    parser = argparse.ArgumentParser(prog="portreleasor", add_help=False,
                                     description=f"PortReleasor {VERSION}")
    parser.add_argument("-h", "--help", action="store_true", help="Show help")
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("--debug", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command")

    check = sub.add_parser("check", help="Check port usage")
    check.add_argument("patterns", nargs="*", metavar="PATTERN")
    check.add_argument("-v", "--verbose", action="store_true", help="Show executable paths")
    check.add_argument("-w", "--wildcard", action="store_true", help="Substring match on port numbers")

    release = sub.add_parser("release", help="Release ports")
    release.add_argument("ports", nargs="+", metavar="PORT")
    release.add_argument("-f", "--force", action="store_true", help="Skip confirmation")
    return parser


def setup_logging(debug=False):
    level = logging.DEBUG if debug else getattr(logging, config.LOG_LEVEL, logging.WARNING)
    logging.basicConfig(level=level, format=config.LOG_FORMAT, stream=sys.stderr)


def run(argv=None):
    """Parse argv and run a command; returns the process exit status."""
    args = build_parser().parse_args(argv)
    if args.version:
        print(f"PortReleasor {VERSION}")
        return 0
    if args.help or args.command is None:
        show_help()
        return 0 if args.help else 1
    setup_logging(args.debug)

    if args.command == "check":
        op = "check"
        call = lambda: check_ports(args.patterns, args.verbose, args.wildcard)
    else:
        op = "release"
        call = lambda: release_ports(args.ports, args.force)
    try:
        call()
    except PortReleasorError as e:
        print(f"Failed to {op} ports: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130
    return 0


def main():
    sys.exit(run())


if __name__ == "__main__":
    main()
