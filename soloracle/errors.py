"""Error hierarchy for the reference interpreter.

Every error aborts the whole run: a trace is either complete or absent.
"""

from __future__ import annotations


class OracleError(Exception):
    """Base class for all reference-interpreter failures."""


class UnsupportedNodeError(OracleError):
    """An AST node kind has no interpretation rule."""

    def __init__(self, kind: str):
        super().__init__(f"No interpretation rule for node kind {kind}")
        self.kind = kind


class InvalidInvocationError(OracleError):
    """A per-node navigation callback was invoked on a whole-transaction interpreter."""

    def __init__(self, method: str, owner: str = "FullInterpreter"):
        super().__init__(f"Invalid call to {owner}.{method}")
        self.method = method


class EnvironmentInitializationError(OracleError):
    """A variable has no usable value to seed its environment with."""

    def __init__(self, variable: str, reason: str = "no initializer value"):
        super().__init__(f"Cannot initialize variable '{variable}': {reason}")
        self.variable = variable


class EvaluationError(OracleError):
    """Expression evaluation failed; never recovered from inside the core."""

    def __init__(self, expression: str, reason: str):
        super().__init__(f"Cannot evaluate {expression}: {reason}")
        self.expression = expression
        self.reason = reason


class InvalidTransactionError(OracleError):
    """A transaction does not match its target contract or function."""


class AstLoadError(OracleError):
    """A JSON AST document cannot be turned into interpreter nodes."""
