"""Run-mode capability interfaces for AST interpretation callbacks.

A callback either takes over whole-transaction interpretation or is driven
node by node; the navigation policy declared at construction selects which.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING

from .ast_nodes import ASTNode
from .errors import InvalidInvocationError

if TYPE_CHECKING:
    from .driver import ASTInterpreter


class NavigationPolicy(str, Enum):
    FULL_INTERPRETATION = "full_interpretation"
    PER_NODE = "per_node"


class InterpreterCallback(ABC):
    @property
    @abstractmethod
    def navigation_policy(self) -> NavigationPolicy: ...

    @abstractmethod
    def initialize(self, ast_interpreter: ASTInterpreter): ...

    @abstractmethod
    def finish(self): ...


class FullInterpretationCallback(InterpreterCallback):
    """Receives control once per run and interprets transactions itself."""

    @property
    def navigation_policy(self) -> NavigationPolicy:
        return NavigationPolicy.FULL_INTERPRETATION

    @abstractmethod
    def run(self): ...

    # Dynamic boundary: callers holding a plain InterpreterCallback can still
    # reach the per-node hooks, which this mode never supports.

    def visit_node_before_processing(self, node: ASTNode):
        raise InvalidInvocationError("visit_node_before_processing", type(self).__name__)

    def visit_node_after_processing(self, node: ASTNode):
        raise InvalidInvocationError("visit_node_after_processing", type(self).__name__)

    def next_target_statement(self) -> ASTNode | None:
        raise InvalidInvocationError("next_target_statement", type(self).__name__)


class NodeNavigationCallback(InterpreterCallback):
    """Driven by the AST interpreter before and after every visited node."""

    @property
    def navigation_policy(self) -> NavigationPolicy:
        return NavigationPolicy.PER_NODE

    @abstractmethod
    def visit_node_before_processing(self, node: ASTNode): ...

    @abstractmethod
    def visit_node_after_processing(self, node: ASTNode): ...

    def next_target_statement(self) -> ASTNode | None:
        """Node to start navigation at; None walks every contract."""
        return None
