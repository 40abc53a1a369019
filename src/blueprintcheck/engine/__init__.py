"""
Engine layer for blueprintcheck.

Contains the variable resolution engine. The rule engine lives in
``blueprintcheck.engine.validator``, which depends on the rules package.
"""

from blueprintcheck.engine.resolver import (
    HELPERS,
    VariableResolver,
    check_helper,
    resolve_all_expressions,
    resolve_helper,
    resolve_variable_map,
)

__all__ = [
    "HELPERS",
    "VariableResolver",
    "check_helper",
    "resolve_all_expressions",
    "resolve_helper",
    "resolve_variable_map",
]
