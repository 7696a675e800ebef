"""Reference interpreter for Solidity contract transactions."""

from .api import run_transactions, interpret_files, node_stats  # noqa: F401
from .full_interpreter import FullInterpreter  # noqa: F401
from .run_types import InterpreterConfig, RunStats  # noqa: F401
