import argparse
import json
import sys

from loguru import logger

from .codeviews.influence.analysis import DEFAULT_PROPERTIES
from .codeviews.influence.influence_driver import InfluenceDriver
from .ir_parser.ir_model import MalformedIRError
from .ir_parser.ll_parser import LLParseError
from .utils.ir_nodes import dependency_modes, input_function_sets


def build_parser():
    parser = argparse.ArgumentParser(
        prog="seminal",
        description="Report which branches and calls are influenced by external input",
    )

    parser.add_argument(
        "--ir-file",
        required=True,
        help="Path to a textual LLVM IR (.ll) file"
    )

    parser.add_argument(
        "--function",
        action="append",
        dest="functions",
        help="Only analyse this function (repeatable)"
    )

    parser.add_argument(
        "--input-function",
        action="append",
        dest="input_functions",
        help="Routine whose arguments are input-origin values (repeatable); overrides --input-set"
    )

    parser.add_argument(
        "--input-set",
        choices=sorted(input_function_sets),
        help="Named set of input routines"
    )

    parser.add_argument(
        "--mode",
        choices=dependency_modes,
        help="Dependency test: same-block heuristic or direct operand use"
    )

    parser.add_argument(
        "--config",
        help="JSON file with analysis properties"
    )

    parser.add_argument(
        "--output",
        help="Write the influence graph to this file"
    )

    parser.add_argument(
        "--graph-format",
        choices=["json", "dot", "all"],
        default="json",
        help="Graph output format"
    )

    parser.add_argument(
        "--png",
        action="store_true",
        help="Also render the DOT graph to PNG with Graphviz"
    )

    parser.add_argument(
        "--structured",
        action="store_true",
        help="Print the key-point map as JSON on stdout"
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging"
    )
    return parser


def load_properties(args):
    properties = dict(DEFAULT_PROPERTIES)
    if args.config:
        with open(args.config, "r") as f:
            properties.update(json.load(f))
    if args.input_set:
        properties["input_functions"] = args.input_set
    if args.input_functions:
        properties["input_functions"] = args.input_functions
    if args.mode:
        properties["dependency_mode"] = args.mode
    return properties


def main(argv=None):
    args = build_parser().parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if args.verbose else "INFO", format="{message}")

    try:
        properties = load_properties(args)
        with open(args.ir_file, "r") as f:
            src_code = f.read()
        driver = InfluenceDriver(
            src_code=src_code,
            output_file=args.output,
            graph_format=args.graph_format,
            properties=properties,
            functions=args.functions,
            output_png=args.png,
        )
    except (LLParseError, MalformedIRError, ValueError, OSError) as e:
        logger.error("seminal: {}", e)
        return 1

    if args.structured:
        print(json.dumps(driver.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
