"""AST interpreter — hands a loaded SourceUnit to a callback in the mode it declares."""

from __future__ import annotations

import logging

from .ast_nodes import ASTNode, SourceUnit
from .callbacks import (
    FullInterpretationCallback,
    InterpreterCallback,
    NavigationPolicy,
    NodeNavigationCallback,
)
from .errors import InvalidInvocationError

logger = logging.getLogger(__name__)


class ASTInterpreter:
    def __init__(self, source_unit: SourceUnit):
        self.source_unit = source_unit

    def interpret(self, callback: InterpreterCallback):
        policy = callback.navigation_policy
        logger.info("Interpreting with %s (%s)", type(callback).__name__, policy.value)
        if policy == NavigationPolicy.FULL_INTERPRETATION:
            if not isinstance(callback, FullInterpretationCallback):
                raise InvalidInvocationError("run", type(callback).__name__)
            callback.initialize(self)
            callback.run()
            callback.finish()
            return
        if not isinstance(callback, NodeNavigationCallback):
            raise InvalidInvocationError("visit_node_before_processing", type(callback).__name__)
        callback.initialize(self)
        target = callback.next_target_statement()
        if target is not None:
            self._navigate(target, callback)
        else:
            for contract in self.source_unit.contracts:
                self._navigate(contract, callback)
        callback.finish()

    def _navigate(self, node: ASTNode, callback: NodeNavigationCallback):
        callback.visit_node_before_processing(node)
        for child in node.children():
            self._navigate(child, callback)
        callback.visit_node_after_processing(node)
