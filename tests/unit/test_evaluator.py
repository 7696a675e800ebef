"""Tests for ExpressionEvaluator — checked integer arithmetic, typing, and error policies."""

import pytest

from soloracle.ast_nodes import (
    Assignment,
    BinaryOperation,
    FunctionCall,
    Identifier,
    Literal,
    UnaryOperation,
    VariableDeclaration,
)
from soloracle.errors import EvaluationError, UnsupportedNodeError
from soloracle.evaluator import (
    ErrorPolicy,
    ExpressionEvaluationErrorHandler,
    ExpressionEvaluator,
    convert_implicitly,
)
from soloracle.random_numbers import RandomNumbers
from soloracle.values import BoolType, BoolValue, IntegerType, IntegerValue
from soloracle.variables import Variable, VariableEnvironment, VariableValues

UINT8 = IntegerType(bits=8)
UINT256 = IntegerType()
INT256 = IntegerType(signed=True)


def _evaluator(policy=ErrorPolicy.FAIL, seed=0):
    return ExpressionEvaluator(ExpressionEvaluationErrorHandler(RandomNumbers(seed), policy))


def _env(**bindings):
    """Global environment with name=(type_name, Value) bindings."""
    env = VariableEnvironment(is_global=True)
    for name, (type_name, value) in bindings.items():
        variable = Variable(VariableDeclaration(name=name, type_name=type_name))
        values = VariableValues(variable, 0)
        values.add_value(value)
        env.add_variable_values(variable, values)
    return env


def _num(value):
    return Literal(value=str(value))


def _bin(op, left, right):
    return BinaryOperation(operator=op, left=left, right=right)


def _id(name):
    return Identifier(name=name)


class TestLiterals:
    def test_number_literal_defaults_to_uint256(self):
        assert _evaluator().evaluate(_env(), _num(5)) == IntegerValue(UINT256, 5)

    def test_number_literal_takes_expected_type(self):
        assert _evaluator().evaluate(_env(), _num(5), UINT8) == IntegerValue(UINT8, 5)

    def test_literal_too_wide_for_expected_type_takes_smallest_fitting_type(self):
        result = _evaluator().evaluate(_env(), _num(300), UINT8)
        assert result == IntegerValue(IntegerType(bits=16), 300)

    def test_negative_literal_with_unsigned_context_is_signed(self):
        expr = UnaryOperation(operator="-", operand=_num(1))
        assert _evaluator().evaluate(_env(), expr, UINT8) == IntegerValue(IntegerType(bits=8, signed=True), -1)

    def test_literal_beyond_256_bits_fails(self):
        with pytest.raises(EvaluationError, match="out of range"):
            _evaluator().evaluate(_env(), _num(2**256), UINT8)

    def test_negative_literal_is_signed(self):
        expr = UnaryOperation(operator="-", operand=_num(3))
        assert _evaluator().evaluate(_env(), expr) == IntegerValue(INT256, -3)

    def test_hex_and_underscore_literals(self):
        assert _evaluator().evaluate(_env(), _num("0xff")).value == 255
        assert _evaluator().evaluate(_env(), _num("1_000")).value == 1000

    def test_bool_literal(self):
        expr = Literal(value="false", literal_kind="bool")
        assert _evaluator().evaluate(_env(), expr) == BoolValue(False)


class TestIdentifiers:
    def test_reads_current_value(self):
        env = _env(count=("uint256", IntegerValue(UINT256, 5)))
        assert _evaluator().evaluate(env, _id("count")) == IntegerValue(UINT256, 5)

    def test_undeclared_identifier_fails(self):
        with pytest.raises(EvaluationError, match="undeclared identifier"):
            _evaluator().evaluate(_env(), _id("nope"))

    def test_local_environment_falls_back_to_parent(self):
        parent = _env(count=("uint256", IntegerValue(UINT256, 5)))
        local = VariableEnvironment(is_global=False, parent=parent)
        assert _evaluator().evaluate(local, _id("count")).value == 5


class TestArithmetic:
    def test_literal_adopts_identifier_type(self):
        env = _env(x=("uint8", IntegerValue(UINT8, 7)))
        result = _evaluator().evaluate(env, _bin("+", _id("x"), _num(1)))
        assert result == IntegerValue(UINT8, 8)

    def test_literal_on_left_adopts_right_type(self):
        env = _env(x=("uint8", IntegerValue(UINT8, 7)))
        result = _evaluator().evaluate(env, _bin("-", _num(10), _id("x")))
        assert result == IntegerValue(UINT8, 3)

    def test_wide_literal_widens_the_operation(self):
        env = _env(x=("uint8", IntegerValue(UINT8, 5)))
        result = _evaluator().evaluate(env, _bin("+", _id("x"), _num(300)))
        assert result == IntegerValue(IntegerType(bits=16), 305)

    def test_overflow_fails(self):
        env = _env(x=("uint8", IntegerValue(UINT8, 255)))
        with pytest.raises(EvaluationError, match="overflow"):
            _evaluator().evaluate(env, _bin("+", _id("x"), _num(1)))

    def test_underflow_fails(self):
        with pytest.raises(EvaluationError, match="overflow"):
            _evaluator().evaluate(_env(), _bin("-", _num(1), _num(2)))

    def test_signed_division_truncates_toward_zero(self):
        minus_seven = UnaryOperation(operator="-", operand=_num(7))
        assert _evaluator().evaluate(_env(), _bin("/", minus_seven, _num(2))).value == -3
        assert _evaluator().evaluate(_env(), _bin("%", minus_seven, _num(2))).value == -1

    def test_division_by_zero_fails(self):
        with pytest.raises(EvaluationError, match="division by zero"):
            _evaluator().evaluate(_env(), _bin("/", _num(1), _num(0)))

    def test_widening_between_same_signedness(self):
        env = _env(
            small=("uint8", IntegerValue(UINT8, 200)),
            big=("uint256", IntegerValue(UINT256, 100)),
        )
        result = _evaluator().evaluate(env, _bin("+", _id("small"), _id("big")))
        assert result == IntegerValue(UINT256, 300)

    def test_mixed_signedness_fails(self):
        env = _env(
            u=("uint256", IntegerValue(UINT256, 1)),
            s=("int256", IntegerValue(INT256, 1)),
        )
        with pytest.raises(EvaluationError, match="no common type"):
            _evaluator().evaluate(env, _bin("+", _id("u"), _id("s")))

    def test_power_overflow(self):
        with pytest.raises(EvaluationError):
            _evaluator().evaluate(_env(), _bin("**", _num(2), _num(8)), UINT8)
        assert _evaluator().evaluate(_env(), _bin("**", _num(2), _num(255))).value == 2**255

    def test_unary_minus_on_unsigned_fails(self):
        env = _env(x=("uint256", IntegerValue(UINT256, 1)))
        with pytest.raises(EvaluationError, match="unsigned"):
            _evaluator().evaluate(env, UnaryOperation(operator="-", operand=_id("x")))


class TestBitwise:
    def test_shift_left_wraps(self):
        env = _env(x=("uint8", IntegerValue(UINT8, 1)))
        assert _evaluator().evaluate(env, _bin("<<", _id("x"), _num(8))).value == 0
        assert _evaluator().evaluate(env, _bin("<<", _id("x"), _num(7))).value == 128

    def test_bitwise_not_unsigned(self):
        env = _env(x=("uint8", IntegerValue(UINT8, 0)))
        result = _evaluator().evaluate(env, UnaryOperation(operator="~", operand=_id("x")))
        assert result == IntegerValue(UINT8, 255)

    def test_and_or_xor(self):
        assert _evaluator().evaluate(_env(), _bin("&", _num(12), _num(10))).value == 8
        assert _evaluator().evaluate(_env(), _bin("|", _num(12), _num(10))).value == 14
        assert _evaluator().evaluate(_env(), _bin("^", _num(12), _num(10))).value == 6


class TestComparisonAndLogic:
    def test_comparison_yields_bool(self):
        assert _evaluator().evaluate(_env(), _bin("<", _num(1), _num(2))) == BoolValue(True)
        assert _evaluator().evaluate(_env(), _bin("==", _num(1), _num(2))) == BoolValue(False)

    def test_comparison_with_literal_wider_than_operand(self):
        env = _env(x=("uint8", IntegerValue(UINT8, 5)))
        assert _evaluator().evaluate(env, _bin("<", _id("x"), _num(300))) == BoolValue(True)
        assert _evaluator().evaluate(env, _bin(">", _num(300), _id("x"))) == BoolValue(True)

    def test_bool_ordering_is_rejected(self):
        t = Literal(value="true", literal_kind="bool")
        with pytest.raises(EvaluationError):
            _evaluator().evaluate(_env(), _bin("<", t, t))

    def test_logical_and_short_circuits(self):
        false = Literal(value="false", literal_kind="bool")
        result = _evaluator().evaluate(_env(), _bin("&&", false, _id("undeclared")))
        assert result == BoolValue(False)

    def test_logical_not(self):
        true = Literal(value="true", literal_kind="bool")
        result = _evaluator().evaluate(_env(), UnaryOperation(operator="!", operand=true))
        assert result == BoolValue(False)


class TestBatchEvaluation:
    def test_one_value_per_environment(self):
        envs = [
            _env(x=("uint256", IntegerValue(UINT256, 1))),
            _env(x=("uint256", IntegerValue(UINT256, 2))),
        ]
        result = _evaluator().evaluate_for_all(envs, _bin("*", _id("x"), _num(10)))
        assert [v.value for v in result.values] == [10, 20]

    def test_single_environment_is_accepted(self):
        result = _evaluator().evaluate_for_all(_env(), _num(4))
        assert result.values == [IntegerValue(UINT256, 4)]


class TestUnsupportedExpressions:
    def test_function_call_is_unsupported(self):
        call = FunctionCall(callee=_id("f"))
        with pytest.raises(UnsupportedNodeError) as exc_info:
            _evaluator().evaluate(_env(), call)
        assert exc_info.value.kind == "FunctionCall"

    def test_assignment_is_unsupported(self):
        assignment = Assignment(operator="=", left=_id("x"), right=_num(1))
        with pytest.raises(UnsupportedNodeError):
            _evaluator().evaluate(_env(), assignment)


class TestRepairPolicy:
    def test_repair_replaces_failed_result_in_range(self):
        env = _env(x=("uint8", IntegerValue(UINT8, 255)))
        result = _evaluator(ErrorPolicy.REPAIR, seed=3).evaluate(
            env, _bin("+", _id("x"), _num(1))
        )
        assert result.type == UINT8
        assert UINT8.contains(result.value)

    def test_repair_is_deterministic_per_seed(self):
        expr = _bin("/", _num(1), _num(0))
        first = _evaluator(ErrorPolicy.REPAIR, seed=11).evaluate(_env(), expr)
        second = _evaluator(ErrorPolicy.REPAIR, seed=11).evaluate(_env(), expr)
        assert first == second

    def test_repair_does_not_cover_undeclared_identifiers(self):
        with pytest.raises(EvaluationError):
            _evaluator(ErrorPolicy.REPAIR).evaluate(_env(), _id("missing"))


class TestImplicitConversion:
    def test_widening(self):
        assert convert_implicitly(IntegerValue(UINT8, 3), UINT256) == IntegerValue(UINT256, 3)

    def test_narrowing_fails(self):
        with pytest.raises(EvaluationError):
            convert_implicitly(IntegerValue(UINT256, 3), UINT8)

    def test_bool_to_integer_fails(self):
        with pytest.raises(EvaluationError):
            convert_implicitly(BoolValue(True), UINT256)

    def test_same_type_is_identity(self):
        value = BoolValue(True)
        assert convert_implicitly(value, BoolType()) is value
