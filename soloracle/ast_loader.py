"""Loader for solc's compact-JSON AST (``solc --ast-compact-json``).

Only the subset of node types the interpreter and its callers understand is
accepted; anything else is rejected with AstLoadError rather than dropped.
"""

from __future__ import annotations

import json
import logging
from fractions import Fraction
from pathlib import Path
from typing import Any

from . import constants
from .ast_nodes import (
    GENERIC_STATEMENT_KINDS,
    ASTNode,
    Assignment,
    BinaryOperation,
    Block,
    ContractDefinition,
    EmitStatement,
    EventDefinition,
    Expression,
    FunctionCall,
    FunctionDefinition,
    GenericStatement,
    Identifier,
    Literal,
    NodeKind,
    Return,
    SourceUnit,
    UnaryOperation,
    VariableDeclaration,
)
from .errors import AstLoadError, EvaluationError, UnsupportedNodeError
from .evaluator import (
    ExpressionEvaluationErrorHandler,
    ExpressionEvaluator,
    convert_implicitly,
)
from .random_numbers import RandomNumbers
from .values import Value, zero_value
from .variables import VariableEnvironment

logger = logging.getLogger(__name__)

# Top-level nodes that carry nothing the interpreter needs.
_IGNORED_NODE_TYPES: frozenset[str] = frozenset({"PragmaDirective", "ImportDirective"})

# Generic statements: nodeType -> keys holding child nodes, in source order.
_GENERIC_CHILD_KEYS: dict[str, tuple[str, ...]] = {
    NodeKind.EXPRESSION_STATEMENT.value: ("expression",),
    NodeKind.VARIABLE_DECLARATION_STATEMENT.value: ("declarations", "initialValue"),
    NodeKind.IF_STATEMENT.value: ("condition", "trueBody", "falseBody"),
    NodeKind.FOR_STATEMENT.value: (
        "initializationExpression",
        "condition",
        "loopExpression",
        "body",
    ),
    NodeKind.WHILE_STATEMENT.value: ("condition", "body"),
}


def _require(raw: dict, key: str) -> Any:
    if key not in raw:
        raise AstLoadError(f"{raw.get('nodeType', '<node>')} is missing '{key}'")
    return raw[key]


def _common(raw: dict) -> dict[str, Any]:
    return {"node_id": raw.get("id", -1), "src": raw.get("src", "")}


def _apply_subdenomination(value: str, unit: str) -> str:
    """Fold a unit suffix (``1 ether``, ``2 days``) into the literal's integer text."""
    multiplier = constants.SUBDENOMINATIONS.get(unit)
    if multiplier is None:
        raise AstLoadError(f"Unsupported literal subdenomination {unit}")
    raw = value.replace("_", "")
    try:
        amount = Fraction(int(raw, 16)) if raw.lower().startswith("0x") else Fraction(raw)
    except (ValueError, ZeroDivisionError):
        raise AstLoadError(f"Malformed number literal {value} {unit}") from None
    scaled = amount * multiplier
    if scaled.denominator != 1:
        raise AstLoadError(f"{value} {unit} is not an integer amount")
    return str(scaled.numerator)


def _type_string(raw: dict) -> str:
    type_string = (raw.get("typeDescriptions") or {}).get("typeString")
    if type_string:
        return type_string
    type_name = raw.get("typeName") or {}
    return type_name.get("name", "")


class _Loader:
    def __init__(self):
        # Constant folding of storage initializers needs no randomness
        self._evaluator = ExpressionEvaluator(
            ExpressionEvaluationErrorHandler(RandomNumbers(constants.DEFAULT_RANDOM_SEED))
        )
        self._empty_environment = VariableEnvironment(is_global=True)

    # ── Declarations ─────────────────────────────────────────────

    def source_unit(self, raw: dict) -> SourceUnit:
        if raw.get("nodeType") != constants.SOURCE_UNIT:
            raise AstLoadError(f"Expected {constants.SOURCE_UNIT}, got {raw.get('nodeType')}")
        contracts = []
        for node in raw.get("nodes", []):
            node_type = node.get("nodeType")
            if node_type in _IGNORED_NODE_TYPES:
                continue
            if node_type != constants.CONTRACT_DEFINITION:
                raise AstLoadError(f"Unsupported top-level node type {node_type}")
            contracts.append(self.contract(node))
        return SourceUnit(contracts=tuple(contracts))

    def contract(self, raw: dict) -> ContractDefinition:
        variables, events, functions = [], [], []
        for node in raw.get("nodes", []):
            node_type = node.get("nodeType")
            if node_type == NodeKind.VARIABLE_DECLARATION.value:
                variables.append(self.state_variable(node))
            elif node_type == NodeKind.EVENT_DEFINITION.value:
                events.append(self.event(node))
            elif node_type == NodeKind.FUNCTION_DEFINITION.value:
                functions.append(self.function(node))
            else:
                raise AstLoadError(f"Unsupported contract member type {node_type}")
        contract = ContractDefinition(
            name=_require(raw, "name"),
            variables=tuple(variables),
            events=tuple(events),
            functions=tuple(functions),
            **_common(raw),
        )
        logger.debug(
            "Loaded contract %s: %d variables, %d events, %d functions",
            contract.name,
            len(variables),
            len(events),
            len(functions),
        )
        return contract

    def state_variable(self, raw: dict) -> VariableDeclaration:
        declaration = self.variable(raw)
        initializer = self._initializer_value(declaration)
        return VariableDeclaration(
            name=declaration.name,
            type_name=declaration.type_name,
            value=declaration.value,
            initializer_value=initializer,
            state_variable=True,
            node_id=declaration.node_id,
            src=declaration.src,
        )

    def variable(self, raw: dict) -> VariableDeclaration:
        value = raw.get("value")
        return VariableDeclaration(
            name=_require(raw, "name"),
            type_name=_type_string(raw),
            value=self.expression(value) if value else None,
            state_variable=bool(raw.get("stateVariable", False)),
            **_common(raw),
        )

    def _parameters(self, raw: dict | None) -> tuple[VariableDeclaration, ...]:
        if not raw:
            return ()
        return tuple(self.variable(p) for p in raw.get("parameters", []))

    def event(self, raw: dict) -> EventDefinition:
        return EventDefinition(
            name=_require(raw, "name"),
            parameters=self._parameters(raw.get("parameters")),
            **_common(raw),
        )

    def function(self, raw: dict) -> FunctionDefinition:
        body = raw.get("body")
        return FunctionDefinition(
            name=raw.get("name", ""),
            parameters=self._parameters(raw.get("parameters")),
            body=self.block(body) if body else None,
            **_common(raw),
        )

    def _initializer_value(self, declaration: VariableDeclaration) -> Value | None:
        sol_type = declaration.sol_type
        if sol_type is None:
            logger.debug("No value model for %s %s", declaration.type_name, declaration.name)
            return None
        if declaration.value is None:
            return zero_value(sol_type)
        try:
            value = self._evaluator.evaluate(
                self._empty_environment, declaration.value, sol_type
            )
            return convert_implicitly(value, sol_type, declaration.value.to_solidity())
        except (EvaluationError, UnsupportedNodeError) as e:
            logger.debug("Initializer of %s is not constant: %s", declaration.name, e)
            return None

    # ── Statements ───────────────────────────────────────────────

    def block(self, raw: dict) -> Block:
        return Block(
            statements=tuple(self.statement(s) for s in raw.get("statements", [])),
            **_common(raw),
        )

    def statement(self, raw: dict) -> ASTNode:
        node_type = raw.get("nodeType")
        if node_type == NodeKind.BLOCK.value:
            return self.block(raw)
        if node_type == NodeKind.EMIT_STATEMENT.value:
            event_call = self.expression(_require(raw, "eventCall"))
            if not isinstance(event_call, FunctionCall):
                raise AstLoadError("EmitStatement.eventCall must be a FunctionCall")
            return EmitStatement(event_call=event_call, **_common(raw))
        if node_type == NodeKind.RETURN.value:
            expression = raw.get("expression")
            return Return(
                expression=self.expression(expression) if expression else None,
                **_common(raw),
            )
        if node_type in _GENERIC_CHILD_KEYS:
            return self._generic_statement(raw, NodeKind(node_type))
        raise AstLoadError(f"Unsupported statement type {node_type}")

    def _generic_statement(self, raw: dict, kind: NodeKind) -> GenericStatement:
        assert kind in GENERIC_STATEMENT_KINDS
        body: list[ASTNode] = []
        for key in _GENERIC_CHILD_KEYS[kind.value]:
            child = raw.get(key)
            if child is None:
                continue
            for item in child if isinstance(child, list) else [child]:
                if item is not None:
                    body.append(self._any(item))
        return GenericStatement(kind=kind, body=tuple(body), **_common(raw))

    def _any(self, raw: dict) -> ASTNode:
        node_type = raw.get("nodeType")
        if node_type == NodeKind.VARIABLE_DECLARATION.value:
            return self.variable(raw)
        if node_type in _EXPRESSION_TYPES:
            return self.expression(raw)
        return self.statement(raw)

    # ── Expressions ──────────────────────────────────────────────

    def expression(self, raw: dict) -> Expression:
        node_type = raw.get("nodeType")
        common = _common(raw)
        if node_type == NodeKind.IDENTIFIER.value:
            return Identifier(name=_require(raw, "name"), **common)
        if node_type == NodeKind.LITERAL.value:
            value = str(_require(raw, "value"))
            unit = raw.get("subdenomination")
            return Literal(
                value=_apply_subdenomination(value, unit) if unit else value,
                literal_kind=raw.get("kind", "number"),
                **common,
            )
        if node_type == NodeKind.UNARY_OPERATION.value:
            return UnaryOperation(
                operator=_require(raw, "operator"),
                operand=self.expression(_require(raw, "subExpression")),
                prefix=bool(raw.get("prefix", True)),
                **common,
            )
        if node_type == NodeKind.BINARY_OPERATION.value:
            return BinaryOperation(
                operator=_require(raw, "operator"),
                left=self.expression(_require(raw, "leftExpression")),
                right=self.expression(_require(raw, "rightExpression")),
                **common,
            )
        if node_type == NodeKind.ASSIGNMENT.value:
            return Assignment(
                operator=_require(raw, "operator"),
                left=self.expression(_require(raw, "leftHandSide")),
                right=self.expression(_require(raw, "rightHandSide")),
                **common,
            )
        if node_type == NodeKind.FUNCTION_CALL.value:
            callee = self.expression(_require(raw, "expression"))
            if not isinstance(callee, Identifier):
                raise AstLoadError("Only calls through a plain identifier are supported")
            return FunctionCall(
                callee=callee,
                arguments=tuple(self.expression(a) for a in raw.get("arguments", [])),
                **common,
            )
        if node_type == constants.TUPLE_EXPRESSION:
            # Parentheses: (e) is a one-component tuple that is not an inline array
            components = raw.get("components") or []
            if raw.get("isInlineArray") or len(components) != 1 or components[0] is None:
                raise AstLoadError("Only parenthesized single expressions are supported")
            return self.expression(components[0])
        raise AstLoadError(f"Unsupported expression type {node_type}")


_EXPRESSION_TYPES: frozenset[str] = frozenset(
    {
        NodeKind.IDENTIFIER.value,
        NodeKind.LITERAL.value,
        NodeKind.UNARY_OPERATION.value,
        NodeKind.BINARY_OPERATION.value,
        NodeKind.ASSIGNMENT.value,
        NodeKind.FUNCTION_CALL.value,
        constants.TUPLE_EXPRESSION,
    }
)


def load_source_unit(document: dict | str) -> SourceUnit:
    """Build a SourceUnit from a compact-JSON AST document.

    Args:
        document: The parsed JSON object, or its text.

    Returns:
        The loaded SourceUnit.

    Raises:
        AstLoadError: If the document contains node types outside the
            supported subset or is missing required fields.
    """
    if isinstance(document, str):
        try:
            document = json.loads(document)
        except json.JSONDecodeError as e:
            raise AstLoadError(f"Malformed AST JSON: {e}") from e
    if not isinstance(document, dict):
        raise AstLoadError("AST document must be a JSON object")
    return _Loader().source_unit(document)


def load_source_unit_file(path: str | Path) -> SourceUnit:
    logger.info("Loading AST from %s", path)
    return load_source_unit(Path(path).read_text(encoding="utf-8"))
