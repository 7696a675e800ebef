"""Contract AST — a closed set of node kinds and immutable node types.

Nodes compare and hash by identity, so structurally equal statements in
different places of a contract remain distinct (coverage is tracked per node).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from .values import SolType, Value, parse_type_name


class NodeKind(str, Enum):
    # Declarations
    CONTRACT_DEFINITION = "ContractDefinition"
    VARIABLE_DECLARATION = "VariableDeclaration"
    EVENT_DEFINITION = "EventDefinition"
    FUNCTION_DEFINITION = "FunctionDefinition"
    # Statements
    BLOCK = "Block"
    EMIT_STATEMENT = "EmitStatement"
    RETURN = "Return"
    EXPRESSION_STATEMENT = "ExpressionStatement"
    VARIABLE_DECLARATION_STATEMENT = "VariableDeclarationStatement"
    IF_STATEMENT = "IfStatement"
    FOR_STATEMENT = "ForStatement"
    WHILE_STATEMENT = "WhileStatement"
    # Expressions
    FUNCTION_CALL = "FunctionCall"
    IDENTIFIER = "Identifier"
    LITERAL = "Literal"
    BINARY_OPERATION = "BinaryOperation"
    UNARY_OPERATION = "UnaryOperation"
    ASSIGNMENT = "Assignment"


# Statement kinds the AST carries without a dedicated node type.
GENERIC_STATEMENT_KINDS: frozenset[NodeKind] = frozenset(
    {
        NodeKind.EXPRESSION_STATEMENT,
        NodeKind.VARIABLE_DECLARATION_STATEMENT,
        NodeKind.IF_STATEMENT,
        NodeKind.FOR_STATEMENT,
        NodeKind.WHILE_STATEMENT,
    }
)


@dataclass(frozen=True, eq=False, kw_only=True)
class ASTNode:
    node_id: int = -1
    src: str = ""

    def children(self) -> tuple[ASTNode, ...]:
        return ()

    def describe(self) -> str:
        where = f" @{self.src}" if self.src else ""
        return f"{self.kind.value}{where}"


# ── Expressions ──────────────────────────────────────────────────


@dataclass(frozen=True, eq=False, kw_only=True)
class Identifier(ASTNode):
    name: str
    kind: NodeKind = field(default=NodeKind.IDENTIFIER, init=False)

    def to_solidity(self) -> str:
        return self.name


@dataclass(frozen=True, eq=False, kw_only=True)
class Literal(ASTNode):
    value: str
    literal_kind: str = "number"  # "number" | "bool"
    kind: NodeKind = field(default=NodeKind.LITERAL, init=False)

    def to_solidity(self) -> str:
        return self.value


@dataclass(frozen=True, eq=False, kw_only=True)
class UnaryOperation(ASTNode):
    operator: str
    operand: Expression
    prefix: bool = True
    kind: NodeKind = field(default=NodeKind.UNARY_OPERATION, init=False)

    def children(self) -> tuple[ASTNode, ...]:
        return (self.operand,)

    def to_solidity(self) -> str:
        if self.prefix:
            return f"{self.operator}{self.operand.to_solidity()}"
        return f"{self.operand.to_solidity()}{self.operator}"


@dataclass(frozen=True, eq=False, kw_only=True)
class BinaryOperation(ASTNode):
    operator: str
    left: Expression
    right: Expression
    kind: NodeKind = field(default=NodeKind.BINARY_OPERATION, init=False)

    def children(self) -> tuple[ASTNode, ...]:
        return (self.left, self.right)

    def to_solidity(self) -> str:
        return f"({self.left.to_solidity()} {self.operator} {self.right.to_solidity()})"


@dataclass(frozen=True, eq=False, kw_only=True)
class Assignment(ASTNode):
    operator: str
    left: Expression
    right: Expression
    kind: NodeKind = field(default=NodeKind.ASSIGNMENT, init=False)

    def children(self) -> tuple[ASTNode, ...]:
        return (self.left, self.right)

    def to_solidity(self) -> str:
        return f"{self.left.to_solidity()} {self.operator} {self.right.to_solidity()}"


@dataclass(frozen=True, eq=False, kw_only=True)
class FunctionCall(ASTNode):
    callee: Identifier
    arguments: tuple[Expression, ...] = ()
    kind: NodeKind = field(default=NodeKind.FUNCTION_CALL, init=False)

    @property
    def callee_name(self) -> str:
        return self.callee.name

    def children(self) -> tuple[ASTNode, ...]:
        return (self.callee, *self.arguments)

    def to_solidity(self) -> str:
        args = ", ".join(a.to_solidity() for a in self.arguments)
        return f"{self.callee.to_solidity()}({args})"


Expression = Union[
    Identifier, Literal, UnaryOperation, BinaryOperation, Assignment, FunctionCall
]


# ── Statements ───────────────────────────────────────────────────


@dataclass(frozen=True, eq=False, kw_only=True)
class Block(ASTNode):
    statements: tuple[ASTNode, ...] = ()
    kind: NodeKind = field(default=NodeKind.BLOCK, init=False)

    def children(self) -> tuple[ASTNode, ...]:
        return self.statements


@dataclass(frozen=True, eq=False, kw_only=True)
class EmitStatement(ASTNode):
    event_call: FunctionCall
    kind: NodeKind = field(default=NodeKind.EMIT_STATEMENT, init=False)

    @property
    def name(self) -> str:
        return self.event_call.callee_name

    @property
    def arguments(self) -> tuple[Expression, ...]:
        return self.event_call.arguments

    def children(self) -> tuple[ASTNode, ...]:
        return (self.event_call,)


@dataclass(frozen=True, eq=False, kw_only=True)
class Return(ASTNode):
    expression: Expression | None = None
    kind: NodeKind = field(default=NodeKind.RETURN, init=False)

    def children(self) -> tuple[ASTNode, ...]:
        return (self.expression,) if self.expression is not None else ()


@dataclass(frozen=True, eq=False, kw_only=True)
class GenericStatement(ASTNode):
    """A statement kind kept structurally but not modelled field by field."""

    kind: NodeKind
    body: tuple[ASTNode, ...] = ()

    def __post_init__(self):
        if self.kind not in GENERIC_STATEMENT_KINDS:
            raise ValueError(f"{self.kind} is not a generic statement kind")

    def children(self) -> tuple[ASTNode, ...]:
        return self.body


# ── Declarations ─────────────────────────────────────────────────


@dataclass(frozen=True, eq=False, kw_only=True)
class VariableDeclaration(ASTNode):
    name: str
    type_name: str
    value: Expression | None = None
    initializer_value: Value | None = None
    state_variable: bool = False
    kind: NodeKind = field(default=NodeKind.VARIABLE_DECLARATION, init=False)

    @property
    def sol_type(self) -> SolType | None:
        return parse_type_name(self.type_name)

    def children(self) -> tuple[ASTNode, ...]:
        return (self.value,) if self.value is not None else ()


@dataclass(frozen=True, eq=False, kw_only=True)
class EventDefinition(ASTNode):
    name: str
    parameters: tuple[VariableDeclaration, ...] = ()
    kind: NodeKind = field(default=NodeKind.EVENT_DEFINITION, init=False)

    def children(self) -> tuple[ASTNode, ...]:
        return self.parameters


@dataclass(frozen=True, eq=False, kw_only=True)
class FunctionDefinition(ASTNode):
    name: str
    parameters: tuple[VariableDeclaration, ...] = ()
    body: Block | None = None
    kind: NodeKind = field(default=NodeKind.FUNCTION_DEFINITION, init=False)

    def children(self) -> tuple[ASTNode, ...]:
        if self.body is None:
            return self.parameters
        return (*self.parameters, self.body)


@dataclass(frozen=True, eq=False, kw_only=True)
class ContractDefinition(ASTNode):
    name: str
    variables: tuple[VariableDeclaration, ...] = ()
    events: tuple[EventDefinition, ...] = ()
    functions: tuple[FunctionDefinition, ...] = ()
    kind: NodeKind = field(default=NodeKind.CONTRACT_DEFINITION, init=False)

    def children(self) -> tuple[ASTNode, ...]:
        return (*self.variables, *self.events, *self.functions)

    def function(self, name: str) -> FunctionDefinition | None:
        return next((f for f in self.functions if f.name == name), None)

    def event(self, name: str) -> EventDefinition | None:
        return next((e for e in self.events if e.name == name), None)


@dataclass(frozen=True, eq=False)
class SourceUnit:
    """Root of a loaded AST: the contracts of one compilation unit."""

    contracts: tuple[ContractDefinition, ...] = ()

    def contract(self, name: str) -> ContractDefinition | None:
        return next((c for c in self.contracts if c.name == name), None)


def walk(node: ASTNode):
    """Yield *node* and all its descendants, depth-first, pre-order."""
    yield node
    for child in node.children():
        yield from walk(child)
