from usercss.variables.directives import (
    check_variable_default,
    merge_variables,
    parse_var_directive,
)
from usercss.variables.placeholders import (
    PLACEHOLDER_RE,
    extract_variables,
    resolve_variables,
)

__all__ = [
    "PLACEHOLDER_RE",
    "extract_variables",
    "resolve_variables",
    "parse_var_directive",
    "merge_variables",
    "check_variable_default",
]
