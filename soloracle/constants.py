"""Named constants — eliminates magic strings across the codebase."""

from __future__ import annotations

TRACE_EVENT_KEY = "event"
TRACE_ARGS_KEY = "args"

DEFAULT_OUTPUT_PATH = "interpretation.json"
DEFAULT_RANDOM_SEED = 0

GLOBAL_SCOPE_DEPTH = 0
LOCAL_SCOPE_DEPTH = 1

INTEGER_MIN_BITS = 8
INTEGER_MAX_BITS = 256

# solc compact-json node types
SOURCE_UNIT = "SourceUnit"
CONTRACT_DEFINITION = "ContractDefinition"
TUPLE_EXPRESSION = "TupleExpression"

# Number literal units: subdenomination -> multiplier
SUBDENOMINATIONS: dict[str, int] = {
    "wei": 1,
    "gwei": 10**9,
    "ether": 10**18,
    "seconds": 1,
    "minutes": 60,
    "hours": 3600,
    "days": 86400,
    "weeks": 604800,
}
