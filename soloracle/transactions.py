"""Transactions — simulated calls into contract functions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import BaseModel, TypeAdapter, ValidationError

from .ast_nodes import ContractDefinition, FunctionDefinition, SourceUnit
from .errors import InvalidTransactionError
from .values import Value, value_from_python

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transaction:
    contract: ContractDefinition
    function: FunctionDefinition
    arguments: tuple[Value, ...] = ()

    def __post_init__(self):
        target = f"{self.contract.name}.{self.function.name}"
        if self.function not in self.contract.functions:
            raise InvalidTransactionError(f"{target} is not a function of {self.contract.name}")
        if self.function.body is None:
            raise InvalidTransactionError(f"{target} has no body")
        parameters = self.function.parameters
        if len(self.arguments) != len(parameters):
            raise InvalidTransactionError(
                f"{target} expects {len(parameters)} arguments, got {len(self.arguments)}"
            )
        for parameter, argument in zip(parameters, self.arguments):
            if parameter.sol_type is None or argument.type != parameter.sol_type:
                raise InvalidTransactionError(
                    f"{target}: argument {argument} does not match parameter "
                    f"{parameter.type_name} {parameter.name}"
                )

    def __str__(self) -> str:
        args = ", ".join(str(a) for a in self.arguments)
        return f"{self.contract.name}.{self.function.name}({args})"


class TransactionSpec(BaseModel):
    """Wire form of a transaction: names plus plain JSON arguments."""

    contract: str
    function: str
    arguments: list[bool | int | str] = []


_SPEC_LIST = TypeAdapter(list[TransactionSpec])


def resolve_transaction(spec: TransactionSpec, source_unit: SourceUnit) -> Transaction:
    contract = source_unit.contract(spec.contract)
    if contract is None:
        raise InvalidTransactionError(f"Unknown contract {spec.contract}")
    function = contract.function(spec.function)
    if function is None:
        raise InvalidTransactionError(f"Unknown function {spec.contract}.{spec.function}")
    if len(spec.arguments) != len(function.parameters):
        raise InvalidTransactionError(
            f"{spec.contract}.{spec.function} expects {len(function.parameters)} "
            f"arguments, got {len(spec.arguments)}"
        )
    arguments = []
    for parameter, raw in zip(function.parameters, spec.arguments):
        sol_type = parameter.sol_type
        if sol_type is None:
            raise InvalidTransactionError(
                f"Parameter type {parameter.type_name} of {spec.function} is not supported"
            )
        try:
            arguments.append(value_from_python(sol_type, raw))
        except ValueError as e:
            raise InvalidTransactionError(f"{spec.function}({parameter.name}): {e}") from e
    return Transaction(contract=contract, function=function, arguments=tuple(arguments))


def load_transactions(document: list[dict[str, Any]] | str, source_unit: SourceUnit) -> list[Transaction]:
    """Validate and resolve a JSON list of transactions against *source_unit*.

    Args:
        document: Parsed JSON list, or its text.
        source_unit: AST the contract/function names refer to.

    Returns:
        Transactions in document order.

    Raises:
        InvalidTransactionError: On malformed input, unknown names, or
            arguments that do not fit the parameter types.
    """
    try:
        if isinstance(document, str):
            specs = _SPEC_LIST.validate_json(document)
        else:
            specs = _SPEC_LIST.validate_python(document)
    except ValidationError as e:
        raise InvalidTransactionError(f"Malformed transaction list: {e}") from e
    transactions = [resolve_transaction(spec, source_unit) for spec in specs]
    logger.info("Loaded %d transactions", len(transactions))
    return transactions


def load_transactions_file(path: str | Path, source_unit: SourceUnit) -> list[Transaction]:
    return load_transactions(Path(path).read_text(encoding="utf-8"), source_unit)

