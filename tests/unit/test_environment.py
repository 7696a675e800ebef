"""Tests for values, variable environments, and the frame data types."""

import pytest

from soloracle.ast_nodes import Block, ContractDefinition, FunctionDefinition, VariableDeclaration
from soloracle.errors import EnvironmentInitializationError
from soloracle.frames import CoverageMap, RunState, Scope, StackFrame
from soloracle.random_numbers import RandomNumbers
from soloracle.values import (
    BoolType,
    BoolValue,
    IntegerType,
    IntegerValue,
    parse_type_name,
    value_from_python,
    zero_value,
)
from soloracle.variables import Variable, VariableEnvironment, VariableValues


def _values(name, type_name="uint256", depth=0):
    return VariableValues(Variable(VariableDeclaration(name=name, type_name=type_name)), depth)


def _bind(env, name, value, type_name="uint256"):
    values = _values(name, type_name)
    values.add_value(value)
    env.add_variable_values(values.variable, values)
    return values


class TestTypes:
    @pytest.mark.parametrize(
        "type_name, expected",
        [
            ("uint8", IntegerType(bits=8)),
            ("uint", IntegerType()),
            ("int", IntegerType(signed=True)),
            ("int128", IntegerType(bits=128, signed=True)),
            ("bool", BoolType()),
        ],
    )
    def test_parse_elementary(self, type_name, expected):
        assert parse_type_name(type_name) == expected

    @pytest.mark.parametrize("type_name", ["uint7", "uint264", "address", "bytes32", "uint256[]"])
    def test_parse_unmodelled(self, type_name):
        assert parse_type_name(type_name) is None

    def test_ranges(self):
        assert IntegerType(bits=8).max_value == 255
        assert IntegerType(bits=8, signed=True).min_value == -128

    def test_value_out_of_range(self):
        with pytest.raises(ValueError):
            IntegerValue(IntegerType(bits=8), 256)

    def test_bool_is_not_an_integer(self):
        with pytest.raises(ValueError):
            IntegerValue(IntegerType(), True)

    def test_zero_values(self):
        assert zero_value(BoolType()) == BoolValue(False)
        assert zero_value(IntegerType(bits=16)) == IntegerValue(IntegerType(bits=16), 0)

    def test_value_from_python(self):
        assert value_from_python(IntegerType(), "0x20").value == 32
        assert value_from_python(BoolType(), True) == BoolValue(True)
        with pytest.raises(ValueError):
            value_from_python(BoolType(), 1)


class TestVariableValues:
    def test_current_is_latest(self):
        values = _values("x")
        values.add_value(IntegerValue(IntegerType(), 1))
        values.add_value(IntegerValue(IntegerType(), 2))
        assert values.current().value == 2

    def test_missing_initializer(self):
        with pytest.raises(EnvironmentInitializationError) as exc_info:
            _values("x").add_value(None)
        assert exc_info.value.variable == "x"

    def test_type_mismatch(self):
        with pytest.raises(EnvironmentInitializationError, match="declared type"):
            _values("x", "uint8").add_value(IntegerValue(IntegerType(), 1))

    def test_read_before_initialization(self):
        with pytest.raises(EnvironmentInitializationError, match="before initialization"):
            _values("x").current()


class TestVariableEnvironment:
    def test_lookup_by_name(self):
        env = VariableEnvironment(is_global=True)
        values = _bind(env, "x", IntegerValue(IntegerType(), 1))
        assert env.lookup("x") is values
        assert env.lookup("y") is None
        assert values.variable in env
        assert len(env) == 1

    def test_local_shadows_global(self):
        global_env = VariableEnvironment(is_global=True)
        _bind(global_env, "a", IntegerValue(IntegerType(), 1))
        local = VariableEnvironment(is_global=False, parent=global_env)
        shadow = _bind(local, "a", IntegerValue(IntegerType(), 2))
        assert local.lookup("a") is shadow
        assert global_env.lookup("a").current().value == 1

    def test_get_falls_back_to_parent(self):
        global_env = VariableEnvironment(is_global=True)
        values = _bind(global_env, "a", IntegerValue(IntegerType(), 1))
        local = VariableEnvironment(is_global=False, parent=global_env)
        assert local.get(values.variable) is values
        assert values.variable not in local

    def test_duplicate_name(self):
        env = VariableEnvironment(is_global=True)
        _bind(env, "x", IntegerValue(IntegerType(), 1))
        with pytest.raises(EnvironmentInitializationError, match="declared twice"):
            _bind(env, "x", IntegerValue(IntegerType(), 2))

    def test_unnamed_variables_do_not_collide(self):
        env = VariableEnvironment(is_global=False)
        first = _bind(env, "", IntegerValue(IntegerType(), 1))
        second = _bind(env, "", IntegerValue(IntegerType(), 2))
        assert len(env) == 2
        assert env.get(first.variable) is first
        assert env.get(second.variable) is second
        assert env.lookup("") is None

    def test_variables_follow_declaration_identity(self):
        first = Variable(VariableDeclaration(name="x", type_name="uint256"))
        second = Variable(VariableDeclaration(name="x", type_name="uint256"))
        assert first != second
        assert first == Variable(first.declaration)


class TestFrames:
    def test_coverage_is_per_node(self):
        coverage = CoverageMap()
        a, b = Block(), Block()
        coverage.mark(a)
        coverage.mark(a)
        assert coverage.is_covered(a)
        assert not coverage.is_covered(b)
        assert len(coverage) == 1

    def test_scope_enter_and_leave(self):
        scope = Scope(CoverageMap())
        node = Block()
        scope.enter_node(node)
        assert scope.has_entered(node)
        scope.leave_node(node)
        assert not scope.has_entered(node)

    def test_leave_without_enter(self):
        with pytest.raises(ValueError):
            Scope(CoverageMap()).leave_node(Block())

    def test_run_state_stack(self):
        f = FunctionDefinition(name="f", body=Block())
        contract = ContractDefinition(name="C", functions=(f,))
        state = RunState(global_environment=VariableEnvironment(is_global=True))
        frame = StackFrame(
            contract=contract,
            function=f,
            arguments=(),
            environment=VariableEnvironment(is_global=False, parent=state.global_environment),
            scope=Scope(state.coverage),
        )
        state.push(frame)
        assert state.current_frame is frame
        assert str(frame) == "C.f"
        assert state.pop() is frame
        assert state.call_stack == []


class TestRandomNumbers:
    def test_same_seed_same_sequence(self):
        first, second = RandomNumbers(42), RandomNumbers(42)
        assert [first.next_int(0, 1000) for _ in range(5)] == [
            second.next_int(0, 1000) for _ in range(5)
        ]

    def test_bounds_are_inclusive(self):
        numbers = RandomNumbers(1)
        assert all(numbers.next_int(3, 3) == 3 for _ in range(3))
