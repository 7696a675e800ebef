"""Variables, their versioned values, and the environments holding them."""

from __future__ import annotations

from dataclasses import dataclass, field

from .ast_nodes import VariableDeclaration
from .errors import EnvironmentInitializationError
from .values import SolType, Value


@dataclass(frozen=True)
class Variable:
    """One binding per declaration; equality follows declaration identity."""

    declaration: VariableDeclaration

    @property
    def name(self) -> str:
        return self.declaration.name

    @property
    def sol_type(self) -> SolType | None:
        return self.declaration.sol_type


@dataclass
class VariableValues:
    variable: Variable
    scope_depth: int
    values: list[Value] = field(default_factory=list)

    def add_value(self, value: Value | None):
        if value is None:
            raise EnvironmentInitializationError(self.variable.name)
        if self.variable.sol_type is not None and value.type != self.variable.sol_type:
            raise EnvironmentInitializationError(
                self.variable.name,
                f"value {value} does not have declared type {self.variable.sol_type}",
            )
        self.values.append(value)

    def current(self) -> Value:
        if not self.values:
            raise EnvironmentInitializationError(
                self.variable.name, "read before initialization"
            )
        return self.values[-1]


class VariableEnvironment:
    """Mapping from Variable to VariableValues.

    A local environment may name a parent; lookups that miss locally are
    resolved against it, so a call activation sees its parameters first and
    contract storage second.
    """

    def __init__(self, is_global: bool, parent: VariableEnvironment | None = None):
        self.is_global = is_global
        self.parent = parent
        self._values: dict[Variable, VariableValues] = {}
        self._by_name: dict[str, Variable] = {}

    def add_variable_values(self, variable: Variable, variable_values: VariableValues):
        if variable in self._values:
            raise EnvironmentInitializationError(variable.name or "<unnamed>", "declared twice")
        # Unnamed parameters are bound but cannot be looked up by name
        if variable.name:
            if variable.name in self._by_name:
                raise EnvironmentInitializationError(variable.name, "declared twice")
            self._by_name[variable.name] = variable
        self._values[variable] = variable_values

    def get(self, variable: Variable) -> VariableValues | None:
        if variable in self._values:
            return self._values[variable]
        if self.parent is not None:
            return self.parent.get(variable)
        return None

    def lookup(self, name: str) -> VariableValues | None:
        """Innermost VariableValues bound to *name*, or None."""
        variable = self._by_name.get(name)
        if variable is not None:
            return self._values[variable]
        if self.parent is not None:
            return self.parent.lookup(name)
        return None

    def variables(self) -> list[Variable]:
        return list(self._values)

    def __contains__(self, variable: Variable) -> bool:
        return variable in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        kind = "global" if self.is_global else "local"
        names = ", ".join(self._by_name)
        return f"VariableEnvironment({kind}: {names})"
