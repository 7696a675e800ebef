"""Full interpretation of transactions applied to contract functions.

Unlike per-node callbacks, FullInterpreter is handed control once per run and
walks each transaction's function body itself, recording every emitted event
as the reference trace.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from . import constants
from .ast_nodes import (
    ASTNode,
    Block,
    ContractDefinition,
    EmitStatement,
    FunctionDefinition,
    NodeKind,
    Return,
)
from .callbacks import FullInterpretationCallback
from .errors import EvaluationError, InvalidTransactionError, OracleError, UnsupportedNodeError
from .evaluator import (
    ErrorPolicy,
    ExpressionEvaluationErrorHandler,
    ExpressionEvaluator,
    convert_implicitly,
)
from .frames import RunState, Scope, StackFrame
from .random_numbers import RandomNumbers
from .run_types import InterpreterConfig, RunStats
from .trace import EmittedEvent, TraceSink
from .transactions import Transaction
from .values import VOID, Value
from .variables import Variable, VariableEnvironment, VariableValues

if TYPE_CHECKING:
    from .driver import ASTInterpreter

logger = logging.getLogger(__name__)

# Kinds deliberately left without a rule; together with FullInterpreter._RULES
# they cover NodeKind exactly.
UNINTERPRETED_KINDS: frozenset[NodeKind] = frozenset(
    {
        NodeKind.CONTRACT_DEFINITION,
        NodeKind.VARIABLE_DECLARATION,
        NodeKind.EVENT_DEFINITION,
        NodeKind.EXPRESSION_STATEMENT,
        NodeKind.VARIABLE_DECLARATION_STATEMENT,
        NodeKind.IF_STATEMENT,
        NodeKind.FOR_STATEMENT,
        NodeKind.WHILE_STATEMENT,
        NodeKind.FUNCTION_CALL,
        NodeKind.IDENTIFIER,
        NodeKind.LITERAL,
        NodeKind.BINARY_OPERATION,
        NodeKind.UNARY_OPERATION,
        NodeKind.ASSIGNMENT,
    }
)


class FullInterpreter(FullInterpretationCallback):
    def __init__(
        self,
        transactions: list[Transaction],
        config: InterpreterConfig = InterpreterConfig(),
    ):
        self._transactions = list(transactions)
        self._config = config
        # Evaluation errors always propagate; a repaired value would corrupt the trace
        self._evaluator = ExpressionEvaluator(
            ExpressionEvaluationErrorHandler(
                RandomNumbers(config.random_seed), policy=ErrorPolicy.FAIL
            )
        )
        self._trace = TraceSink()
        self._state: RunState | None = None
        self._ast_interpreter: ASTInterpreter | None = None
        self._failed = False
        self.stats = RunStats()

    @property
    def trace(self) -> TraceSink:
        return self._trace

    @property
    def state(self) -> RunState | None:
        return self._state

    def initialize(self, ast_interpreter: ASTInterpreter):
        self._ast_interpreter = ast_interpreter
        self._trace.clear()

    def finish(self):
        """Write the accumulated events as one JSON document."""
        if self._failed:
            raise OracleError("Run failed; refusing to write an incomplete trace")
        self._trace.write(self._config.output_path)

    # ── Run orchestration ────────────────────────────────────────

    def run(self) -> RunStats:
        self._failed = False
        try:
            contract = self._run_contract()
            logger.info(
                "Interpreting %d transactions on %s", len(self._transactions), contract.name
            )
            self._state = RunState(
                global_environment=self._initialize_global_environment(contract)
            )
            for transaction in self._transactions:
                self.stats.return_values.append(self.interpret_transaction(transaction))
        except Exception:
            self._failed = True
            self._trace.clear()
            raise

        self.stats.transactions = len(self._transactions)
        self.stats.events_emitted = len(self._trace)
        self.stats.nodes_covered = len(self._state.coverage)
        return self.stats

    def _run_contract(self) -> ContractDefinition:
        """The single contract every transaction of this run targets."""
        if not self._transactions:
            raise InvalidTransactionError("No transactions to interpret")
        contract = self._transactions[0].contract
        # TODO multiple contracts per run
        if any(t.contract is not contract for t in self._transactions):
            raise InvalidTransactionError("All transactions of a run must target one contract")
        if self._ast_interpreter is not None and not any(
            c is contract for c in self._ast_interpreter.source_unit.contracts
        ):
            raise InvalidTransactionError(f"Contract {contract.name} is not part of the AST")
        return contract

    def interpret_transaction(self, transaction: Transaction) -> Value | None:
        """Interpret one call; returns the function's return Value or None."""
        if self._state is None:
            self._state = RunState(
                global_environment=self._initialize_global_environment(transaction.contract)
            )
        logger.info("Transaction %s", transaction)

        frame = StackFrame(
            contract=transaction.contract,
            function=transaction.function,
            arguments=transaction.arguments,
            environment=self._initialize_local_environment(transaction),
            scope=Scope(self._state.coverage),
        )
        self._state.push(frame)
        self.stats.max_stack_depth = max(
            self.stats.max_stack_depth, len(self._state.call_stack)
        )
        trace_length = len(self._trace)
        try:
            return self._do_interpret(transaction.function, frame)
        except Exception:
            self._trace.truncate(trace_length)
            raise
        finally:
            self._state.pop()

    def _initialize_global_environment(self, contract: ContractDefinition) -> VariableEnvironment:
        environment = VariableEnvironment(is_global=True)
        for declaration in contract.variables:
            variable = Variable(declaration)
            variable_values = VariableValues(variable, constants.GLOBAL_SCOPE_DEPTH)
            # Start out with initializer value
            variable_values.add_value(declaration.initializer_value)
            environment.add_variable_values(variable, variable_values)
            logger.debug("Storage %s = %s", declaration.name, declaration.initializer_value)
        return environment

    def _initialize_local_environment(self, transaction: Transaction) -> VariableEnvironment:
        environment = VariableEnvironment(
            is_global=False, parent=self._state.global_environment
        )
        for parameter, argument in zip(transaction.function.parameters, transaction.arguments):
            variable = Variable(parameter)
            variable_values = VariableValues(variable, constants.LOCAL_SCOPE_DEPTH)
            variable_values.add_value(argument)
            environment.add_variable_values(variable, variable_values)
        return environment

    # ── Node dispatch ────────────────────────────────────────────

    def _do_interpret(self, node: ASTNode, frame: StackFrame) -> Value | None:
        frame.scope.mark_covered(node)
        frame.scope.enter_node(node)

        rule = self._RULES.get(node.kind)
        if rule is None:
            raise UnsupportedNodeError(node.kind.value)
        logger.debug("%s: %s", frame, node.describe())
        return rule(self, node, frame)

    def _interpret_child_nodes(self, nodes: tuple[ASTNode, ...], frame: StackFrame) -> Value | None:
        # Depth-first; the first child yielding a value ends the block
        for child in nodes:
            result = self._do_interpret(child, frame)
            if result is not None:
                return result
        return None

    def _interpret_function_definition(
        self, function: FunctionDefinition, frame: StackFrame
    ) -> Value | None:
        body = function.body
        frame.scope.mark_covered(body)
        result = self._interpret_child_nodes(body.statements, frame)
        return None if result is VOID else result

    def _interpret_block(self, block: Block, frame: StackFrame) -> Value | None:
        return self._interpret_child_nodes(block.statements, frame)

    def _interpret_return(self, statement: Return, frame: StackFrame) -> Value:
        if statement.expression is None:
            return VOID
        return self._evaluator.evaluate_for_all(frame.environment, statement.expression).values[0]

    def _interpret_emit_statement(self, statement: EmitStatement, frame: StackFrame) -> None:
        parameter_types = self._event_parameter_types(statement, frame.contract)
        args = []
        for slot, expression in enumerate(statement.arguments):
            expected_type = parameter_types[slot] if parameter_types else None
            value = self._evaluator.evaluate_for_all(
                frame.environment, expression, expected_type
            ).values[0]
            if expected_type is not None:
                value = convert_implicitly(value, expected_type, expression.to_solidity())
            logger.debug("  arg %d %s = %s", slot, expression.to_solidity(), value)
            if self._config.verbose:
                print(f"  [emit {statement.name}] arg {slot} {expression.to_solidity()} = {value}")
            args.append((str(slot), value))
        self._trace.record(EmittedEvent(event=statement.name, args=args))
        return None

    def _event_parameter_types(self, statement: EmitStatement, contract: ContractDefinition) -> list | None:
        """Declared parameter types of the emitted event, if the contract declares it."""
        definition = contract.event(statement.name)
        if definition is None:
            return None
        if len(definition.parameters) != len(statement.arguments):
            raise EvaluationError(
                statement.event_call.to_solidity(),
                f"event {statement.name} takes {len(definition.parameters)} arguments",
            )
        return [p.sol_type for p in definition.parameters]

    _RULES: dict[NodeKind, Callable[..., Value | None]] = {
        NodeKind.FUNCTION_DEFINITION: _interpret_function_definition,
        NodeKind.BLOCK: _interpret_block,
        NodeKind.RETURN: _interpret_return,
        NodeKind.EMIT_STATEMENT: _interpret_emit_statement,
    }
