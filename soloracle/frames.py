"""Call activations — coverage, scopes, stack frames and run state (pure data)."""

from __future__ import annotations

from dataclasses import dataclass, field

from .ast_nodes import ASTNode, ContractDefinition, FunctionDefinition
from .values import Value
from .variables import VariableEnvironment


@dataclass
class CoverageMap:
    """Write-once coverage flags keyed by node identity."""

    _covered: set[ASTNode] = field(default_factory=set)

    def mark(self, node: ASTNode):
        self._covered.add(node)

    def is_covered(self, node: ASTNode) -> bool:
        return node in self._covered

    def __len__(self) -> int:
        return len(self._covered)


@dataclass
class Scope:
    coverage: CoverageMap
    entered: list[ASTNode] = field(default_factory=list)

    def mark_covered(self, node: ASTNode):
        self.coverage.mark(node)

    def enter_node(self, node: ASTNode):
        self.entered.append(node)

    def leave_node(self, node: ASTNode):
        # Innermost occurrence only
        for i in range(len(self.entered) - 1, -1, -1):
            if self.entered[i] is node:
                del self.entered[i]
                return
        raise ValueError(f"{node.describe()} was never entered")

    def has_entered(self, node: ASTNode) -> bool:
        return any(n is node for n in self.entered)


@dataclass
class StackFrame:
    contract: ContractDefinition
    function: FunctionDefinition
    arguments: tuple[Value, ...]
    environment: VariableEnvironment
    scope: Scope

    def __str__(self) -> str:
        return f"{self.contract.name}.{self.function.name}"


@dataclass
class RunState:
    """Everything one run mutates: storage, the call stack and coverage."""

    global_environment: VariableEnvironment
    call_stack: list[StackFrame] = field(default_factory=list)
    coverage: CoverageMap = field(default_factory=CoverageMap)

    @property
    def current_frame(self) -> StackFrame:
        return self.call_stack[-1]

    def push(self, frame: StackFrame):
        self.call_stack.append(frame)

    def pop(self) -> StackFrame:
        return self.call_stack.pop()
