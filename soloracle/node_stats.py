"""Node-kind statistics over a loaded AST, gathered by per-node navigation."""

from __future__ import annotations

from collections import Counter

from .ast_nodes import ASTNode, SourceUnit
from .callbacks import NodeNavigationCallback
from .driver import ASTInterpreter


class NodeKindCounter(NodeNavigationCallback):
    def __init__(self):
        self.counts: Counter[str] = Counter()
        self._depth = 0
        self.max_depth = 0

    def initialize(self, ast_interpreter: ASTInterpreter):
        self.counts.clear()
        self._depth = 0
        self.max_depth = 0

    def visit_node_before_processing(self, node: ASTNode):
        self.counts[node.kind.value] += 1
        self._depth += 1
        self.max_depth = max(self.max_depth, self._depth)

    def visit_node_after_processing(self, node: ASTNode):
        self._depth -= 1

    def finish(self):
        pass


def count_node_kinds(source_unit: SourceUnit) -> dict[str, int]:
    """Return a frequency map of node kinds in *source_unit*.

    Args:
        source_unit: A loaded AST.

    Returns:
        A dict mapping node-kind names to their occurrence counts.
        Empty dict for a source unit without contracts.
    """
    counter = NodeKindCounter()
    ASTInterpreter(source_unit).interpret(counter)
    return dict(counter.counts)
