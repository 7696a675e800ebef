"""Expression evaluator — checked integer and boolean semantics over environments."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Sequence

from . import constants
from .ast_nodes import (
    BinaryOperation,
    Expression,
    Identifier,
    Literal,
    NodeKind,
    UnaryOperation,
)
from .errors import EvaluationError, UnsupportedNodeError
from .random_numbers import RandomNumbers
from .values import (
    BoolType,
    BoolValue,
    IntegerType,
    IntegerValue,
    SolType,
    Value,
)
from .variables import VariableEnvironment

logger = logging.getLogger(__name__)

_DEFAULT_INTEGER = IntegerType()
_DEFAULT_SIGNED_INTEGER = IntegerType(signed=True)

ARITHMETIC_OPERATORS = frozenset({"+", "-", "*", "/", "%", "**"})
BITWISE_OPERATORS = frozenset({"&", "|", "^"})
SHIFT_OPERATORS = frozenset({"<<", ">>"})
COMPARISON_OPERATORS = frozenset({"==", "!=", "<", "<=", ">", ">="})
LOGICAL_OPERATORS = frozenset({"&&", "||"})


class ErrorPolicy(str, Enum):
    """What to do when an arithmetic evaluation error is detected."""

    FAIL = "fail"
    REPAIR = "repair"


class ExpressionEvaluationErrorHandler:
    """Decides the outcome of arithmetic errors (overflow, division by zero).

    FAIL raises; REPAIR substitutes a result drawn from the seeded random
    source, which keeps expression synthesis going while staying reproducible.
    """

    def __init__(self, random_numbers: RandomNumbers, policy: ErrorPolicy = ErrorPolicy.FAIL):
        self.random_numbers = random_numbers
        self.policy = policy

    def handle(self, expression: Expression, reason: str, result_type: IntegerType) -> Value:
        if self.policy == ErrorPolicy.FAIL:
            raise EvaluationError(expression.to_solidity(), reason)
        replacement = IntegerValue(
            result_type,
            self.random_numbers.next_int(result_type.min_value, result_type.max_value),
        )
        logger.debug(
            "Repaired %s (%s) with %s", expression.to_solidity(), reason, replacement
        )
        return replacement


@dataclass
class EvaluationResult:
    """One value per environment, in the order the environments were given."""

    values: list[Value] = field(default_factory=list)


def convert_implicitly(value: Value, target: SolType, context: str = "") -> Value:
    """Apply Solidity's implicit conversion of *value* to *target*.

    Only widening between integers of the same signedness is allowed.
    """
    if value.type == target:
        return value
    if (
        isinstance(value, IntegerValue)
        and isinstance(target, IntegerType)
        and value.type.signed == target.signed
        and value.type.bits <= target.bits
    ):
        return IntegerValue(target, value.value)
    raise EvaluationError(
        context or str(value), f"cannot convert {value.type} to {target}"
    )


def _common_integer_type(left: IntegerType, right: IntegerType) -> IntegerType | None:
    if left.signed != right.signed:
        return None
    return left if left.bits >= right.bits else right


def _smallest_integer_type(value: int, signed: bool) -> IntegerType | None:
    for bits in range(constants.INTEGER_MIN_BITS, constants.INTEGER_MAX_BITS + 1, 8):
        sol_type = IntegerType(bits=bits, signed=signed)
        if sol_type.contains(value):
            return sol_type
    return None


def _truncating_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


def _wrap(value: int, sol_type: IntegerType) -> int:
    mask = (1 << sol_type.bits) - 1
    value &= mask
    if sol_type.signed and value > sol_type.max_value:
        value -= 1 << sol_type.bits
    return value


class ExpressionEvaluator:
    def __init__(self, error_handler: ExpressionEvaluationErrorHandler):
        self.error_handler = error_handler
        self._rules: dict[NodeKind, Callable[..., Value]] = {
            NodeKind.LITERAL: self._evaluate_literal,
            NodeKind.IDENTIFIER: self._evaluate_identifier,
            NodeKind.UNARY_OPERATION: self._evaluate_unary,
            NodeKind.BINARY_OPERATION: self._evaluate_binary,
        }

    def evaluate_for_all(
        self,
        environments: VariableEnvironment | Sequence[VariableEnvironment],
        expression: Expression,
        expected_type: SolType | None = None,
    ) -> EvaluationResult:
        """Evaluate *expression* once per environment.

        Args:
            environments: A single environment or a sequence of them.
            expression: The expression node to evaluate.
            expected_type: Type a bare number literal should take, if known.

        Returns:
            An EvaluationResult holding one Value per environment.
        """
        if isinstance(environments, VariableEnvironment):
            environments = [environments]
        return EvaluationResult(
            values=[self.evaluate(env, expression, expected_type) for env in environments]
        )

    def evaluate(
        self,
        environment: VariableEnvironment,
        expression: Expression,
        expected_type: SolType | None = None,
    ) -> Value:
        rule = self._rules.get(expression.kind)
        if rule is None:
            raise UnsupportedNodeError(expression.kind.value)
        return rule(environment, expression, expected_type)

    # ── Leaves ───────────────────────────────────────────────────

    def _evaluate_literal(
        self, environment: VariableEnvironment, literal: Literal, expected_type: SolType | None
    ) -> Value:
        if literal.literal_kind == "bool":
            if literal.value not in ("true", "false"):
                raise EvaluationError(literal.value, "malformed bool literal")
            return BoolValue(literal.value == "true")
        if literal.literal_kind != "number":
            raise EvaluationError(literal.value, f"unsupported literal kind {literal.literal_kind}")
        try:
            raw = int(literal.value.replace("_", ""), 0)
        except ValueError:
            raise EvaluationError(literal.value, "malformed number literal") from None
        if not isinstance(expected_type, IntegerType):
            sol_type = _DEFAULT_INTEGER if raw >= 0 else _DEFAULT_SIGNED_INTEGER
        elif expected_type.contains(raw):
            sol_type = expected_type
        else:
            # Too wide for the context: take the smallest type that holds it and
            # leave widening or rejection to the caller
            sol_type = _smallest_integer_type(raw, expected_type.signed or raw < 0)
        if sol_type is None or not sol_type.contains(raw):
            raise EvaluationError(literal.value, f"literal out of range for {sol_type or expected_type}")
        return IntegerValue(sol_type, raw)

    def _evaluate_identifier(
        self, environment: VariableEnvironment, identifier: Identifier, expected_type: SolType | None
    ) -> Value:
        variable_values = environment.lookup(identifier.name)
        if variable_values is None:
            raise EvaluationError(identifier.name, "undeclared identifier")
        return variable_values.current()

    # ── Operators ────────────────────────────────────────────────

    def _evaluate_unary(
        self, environment: VariableEnvironment, operation: UnaryOperation, expected_type: SolType | None
    ) -> Value:
        op = operation.operator
        if op == "-" and isinstance(operation.operand, Literal):
            # Negative literal: fold the sign before typing it
            negated = Literal(value=f"-{operation.operand.value}")
            return self._evaluate_literal(environment, negated, expected_type)

        operand = self.evaluate(environment, operation.operand, expected_type)
        if op == "!":
            if not isinstance(operand, BoolValue):
                raise EvaluationError(operation.to_solidity(), f"'!' needs bool, got {operand.type}")
            return BoolValue(not operand.value)
        if not isinstance(operand, IntegerValue):
            raise EvaluationError(operation.to_solidity(), f"'{op}' needs an integer, got {operand.type}")
        if op == "-":
            if not operand.type.signed:
                raise EvaluationError(operation.to_solidity(), "unary minus on unsigned integer")
            return self._checked(operation, -operand.value, operand.type)
        if op == "~":
            return IntegerValue(operand.type, _wrap(~operand.value, operand.type))
        raise UnsupportedNodeError(f"{operation.kind.value} '{op}'")

    def _evaluate_binary(
        self, environment: VariableEnvironment, operation: BinaryOperation, expected_type: SolType | None
    ) -> Value:
        op = operation.operator
        if op in LOGICAL_OPERATORS:
            return self._evaluate_logical(environment, operation)
        if op in SHIFT_OPERATORS or op == "**":
            return self._evaluate_power_or_shift(environment, operation, expected_type)

        hint = expected_type if op in ARITHMETIC_OPERATORS | BITWISE_OPERATORS else None
        left, right = self._evaluate_operands(environment, operation, hint)

        if op in COMPARISON_OPERATORS:
            return self._compare(operation, left, right)
        if not (isinstance(left, IntegerValue) and isinstance(right, IntegerValue)):
            raise EvaluationError(
                operation.to_solidity(), f"'{op}' needs integers, got {left.type} and {right.type}"
            )
        sol_type = self._operand_type(operation, left, right)
        a, b = left.value, right.value
        if op == "+":
            return self._checked(operation, a + b, sol_type)
        if op == "-":
            return self._checked(operation, a - b, sol_type)
        if op == "*":
            return self._checked(operation, a * b, sol_type)
        if op in ("/", "%"):
            if b == 0:
                return self.error_handler.handle(operation, "division by zero", sol_type)
            quotient = _truncating_div(a, b)
            if op == "/":
                return self._checked(operation, quotient, sol_type)
            return IntegerValue(sol_type, a - b * quotient)
        if op == "&":
            return IntegerValue(sol_type, a & b)
        if op == "|":
            return IntegerValue(sol_type, a | b)
        if op == "^":
            return IntegerValue(sol_type, a ^ b)
        raise UnsupportedNodeError(f"{operation.kind.value} '{op}'")

    def _evaluate_operands(
        self, environment: VariableEnvironment, operation: BinaryOperation, hint: SolType | None
    ) -> tuple[Value, Value]:
        """Evaluate both operands, letting a bare literal adopt the other side's type."""
        left_is_literal = isinstance(operation.left, Literal)
        right_is_literal = isinstance(operation.right, Literal)
        if left_is_literal and not right_is_literal:
            right = self.evaluate(environment, operation.right, hint)
            left = self.evaluate(environment, operation.left, right.type)
            return left, right
        left = self.evaluate(environment, operation.left, hint)
        right_hint = left.type if right_is_literal and not left_is_literal else hint
        right = self.evaluate(environment, operation.right, right_hint)
        return left, right

    def _evaluate_logical(
        self, environment: VariableEnvironment, operation: BinaryOperation
    ) -> Value:
        left = self.evaluate(environment, operation.left)
        if not isinstance(left, BoolValue):
            raise EvaluationError(operation.to_solidity(), f"'{operation.operator}' needs bool operands")
        # Short-circuit like Solidity
        if operation.operator == "&&" and not left.value:
            return left
        if operation.operator == "||" and left.value:
            return left
        right = self.evaluate(environment, operation.right)
        if not isinstance(right, BoolValue):
            raise EvaluationError(operation.to_solidity(), f"'{operation.operator}' needs bool operands")
        return right

    def _evaluate_power_or_shift(
        self, environment: VariableEnvironment, operation: BinaryOperation, expected_type: SolType | None
    ) -> Value:
        op = operation.operator
        base = self.evaluate(environment, operation.left, expected_type)
        amount = self.evaluate(environment, operation.right)
        if not (isinstance(base, IntegerValue) and isinstance(amount, IntegerValue)):
            raise EvaluationError(operation.to_solidity(), f"'{op}' needs integers")
        if amount.type.signed and amount.value < 0:
            raise EvaluationError(operation.to_solidity(), f"negative right operand for '{op}'")
        a, b = base.value, amount.value
        if op == "**":
            if b > base.type.bits and abs(a) > 1:
                return self.error_handler.handle(operation, "arithmetic overflow", base.type)
            return self._checked(operation, a**b, base.type)
        if op == "<<":
            # Shifts are not overflow-checked
            return IntegerValue(base.type, _wrap(a << min(b, base.type.bits), base.type))
        return IntegerValue(base.type, a >> min(b, base.type.bits))

    # ── Helpers ──────────────────────────────────────────────────

    def _compare(self, operation: BinaryOperation, left: Value, right: Value) -> BoolValue:
        op = operation.operator
        if isinstance(left, BoolValue) or isinstance(right, BoolValue):
            if not (isinstance(left, BoolValue) and isinstance(right, BoolValue)):
                raise EvaluationError(operation.to_solidity(), f"cannot compare {left.type} with {right.type}")
            if op not in ("==", "!="):
                raise EvaluationError(operation.to_solidity(), f"'{op}' is not defined for bool")
            return BoolValue((left.value == right.value) == (op == "=="))
        self._operand_type(operation, left, right)
        a, b = left.value, right.value
        results = {
            "==": a == b,
            "!=": a != b,
            "<": a < b,
            "<=": a <= b,
            ">": a > b,
            ">=": a >= b,
        }
        return BoolValue(results[op])

    def _operand_type(
        self, operation: BinaryOperation, left: IntegerValue, right: IntegerValue
    ) -> IntegerType:
        sol_type = _common_integer_type(left.type, right.type)
        if sol_type is None:
            raise EvaluationError(
                operation.to_solidity(), f"no common type for {left.type} and {right.type}"
            )
        return sol_type

    def _checked(self, expression: Expression, result: int, sol_type: IntegerType) -> Value:
        if not sol_type.contains(result):
            return self.error_handler.handle(expression, "arithmetic overflow", sol_type)
        return IntegerValue(sol_type, result)
