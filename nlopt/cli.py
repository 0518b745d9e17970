"""Netlist optimization debugging tool."""
import argparse
import logging
import sys

from nlopt.io import from_file, from_verilog
from nlopt.netlist import NetlistError
from nlopt.passes import Passes, Pipeline

log = logging.getLogger(__name__)


def pass_list(text):
    """Parse a comma separated list of pass names."""
    passes = []
    for name in text.split(","):
        try:
            passes.append(Passes(name.strip()))
        except ValueError:
            choices = ", ".join(p.value for p in Passes)
            raise argparse.ArgumentTypeError(
                f"unknown pass '{name}' (choose from {choices})"
            ) from None
    return passes


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="nl-opt", description="Netlist optimization debugging tool"
    )
    parser.add_argument(
        "input", nargs="?", default=None,
        help="Verilog file to read from (or use stdin)",
    )
    parser.add_argument(
        "-x", "--no-xilinx", action="store_true",
        help="Do not parse with Xilinx-specific port names",
    )
    parser.add_argument(
        "-v", "--verify", action="store_true",
        help="Verify after every pass (not just the last)",
    )
    parser.add_argument(
        "-p", "--passes", type=pass_list, action="extend", default=[],
        help="A comma separated list of passes to run in order",
    )
    parser.add_argument(
        "--log-level", default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    log.info("Netlist optimization debugging tool")
    try:
        if args.input is None:
            log.info("Reading from stdin...")
            netlist = from_verilog(sys.stdin.read(), xilinx=not args.no_xilinx)
        else:
            log.info("Parsing %s...", args.input)
            netlist = from_file(args.input, xilinx=not args.no_xilinx)

        report = Pipeline(netlist, args.passes, verify_each=args.verify).run()
    except NetlistError as e:
        log.error("%s", e)
        return 1

    if report is not None:
        print(report.rstrip("\n"))
    return 0


if __name__ == "__main__":
    sys.exit(main())
