"""Run configuration and statistics (pure data, no business logic)."""

from __future__ import annotations

from dataclasses import dataclass, field

from . import constants
from .values import Value


@dataclass(frozen=True)
class InterpreterConfig:
    """Groups reference-interpreter configuration."""

    random_seed: int = constants.DEFAULT_RANDOM_SEED
    output_path: str = constants.DEFAULT_OUTPUT_PATH
    verbose: bool = False


@dataclass
class RunStats:
    """Returned run metrics from FullInterpreter.run."""

    transactions: int = 0
    events_emitted: int = 0
    nodes_covered: int = 0
    max_stack_depth: int = 0
    # Reserved: per-transaction return values, None where nothing was returned
    return_values: list[Value | None] = field(default_factory=list)

    def report(self) -> str:
        lines = [
            "═══ Run Statistics ═══",
            f"  Transactions:   {self.transactions}",
            f"  Events emitted: {self.events_emitted}",
            f"  Nodes covered:  {self.nodes_covered}",
            f"  Max stack depth: {self.max_stack_depth}",
        ]
        return "\n".join(lines)
