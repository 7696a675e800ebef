#!/usr/bin/env python3
"""Reference interpreter CLI.

Loads a solc compact-JSON AST and a JSON transaction list, interprets the
transactions against the contract, and writes the emitted-event trace.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys

from soloracle import constants
from soloracle.api import interpret_files, node_stats
from soloracle.errors import OracleError
from soloracle.run_types import InterpreterConfig


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Transaction-driven reference interpreter for Solidity contracts")
    parser.add_argument("ast",
                        help="solc compact-JSON AST file")
    parser.add_argument("transactions", nargs="?",
                        help="JSON list of {contract, function, arguments}")
    parser.add_argument("--output", "-o", default=constants.DEFAULT_OUTPUT_PATH,
                        help=f"Trace output path (default: {constants.DEFAULT_OUTPUT_PATH})")
    parser.add_argument("--seed", "-s", type=int, default=constants.DEFAULT_RANDOM_SEED,
                        help="Random number seed for the expression evaluator")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Log node dispatch and print argument evaluation")
    parser.add_argument("--node-stats", action="store_true",
                        help="Only print node-kind counts of the AST (no interpretation)")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.node_stats:
            print(json.dumps(node_stats(args.ast), indent=2, sort_keys=True))
            return 0
        if not args.transactions:
            parser.error("a transactions file is required unless --node-stats is given")

        config = InterpreterConfig(
            random_seed=args.seed,
            output_path=args.output,
            verbose=args.verbose,
        )
        stats = interpret_files(args.ast, args.transactions, config)
    except (OracleError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(stats.report())
    return 0


if __name__ == "__main__":
    sys.exit(main())
