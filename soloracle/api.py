"""Composable API functions for the reference interpreter.

Each function corresponds to a CLI workflow but is callable programmatically
without argparse.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .ast_loader import load_source_unit_file
from .ast_nodes import SourceUnit
from .driver import ASTInterpreter
from .full_interpreter import FullInterpreter
from .node_stats import count_node_kinds
from .run_types import InterpreterConfig, RunStats
from .transactions import Transaction, load_transactions_file

logger = logging.getLogger(__name__)


def run_transactions(
    source_unit: SourceUnit,
    transactions: list[Transaction],
    config: InterpreterConfig = InterpreterConfig(),
) -> RunStats:
    """Interpret *transactions* and write the event trace.

    Args:
        source_unit: The loaded AST the transactions refer to.
        transactions: Calls to interpret, in order.
        config: Seed and trace output path.

    Returns:
        RunStats for the completed run.

    Raises:
        OracleError: On the first fatal error; no trace is written then.
    """
    interpreter = FullInterpreter(transactions, config)
    ASTInterpreter(source_unit).interpret(interpreter)
    return interpreter.stats


def interpret_files(
    ast_path: str | Path,
    transactions_path: str | Path,
    config: InterpreterConfig = InterpreterConfig(),
) -> RunStats:
    """Load an AST and a transaction list from disk, then run them.

    Args:
        ast_path: solc compact-JSON AST file.
        transactions_path: JSON list of {contract, function, arguments}.
        config: Seed and trace output path.

    Returns:
        RunStats for the completed run.
    """
    source_unit = load_source_unit_file(ast_path)
    transactions = load_transactions_file(transactions_path, source_unit)
    logger.info("Trace goes to %s", config.output_path)
    return run_transactions(source_unit, transactions, config)


def node_stats(ast_path: str | Path) -> dict[str, int]:
    """Load an AST file and return node-kind frequency counts."""
    return count_node_kinds(load_source_unit_file(ast_path))
