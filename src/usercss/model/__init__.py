"""UserCSS model layer -- public type re-exports."""

from usercss.model.diagnostic import Diagnostic, Result, Severity
from usercss.model.domain import DOMAIN_KINDS, DomainRule
from usercss.model.style import Asset, ParseResult, StyleMeta
from usercss.model.variable import VARIABLE_TYPES, VariableDescriptor, VariableOption

__all__ = [
    # diagnostic
    "Severity",
    "Diagnostic",
    "Result",
    # domain
    "DOMAIN_KINDS",
    "DomainRule",
    # variable
    "VARIABLE_TYPES",
    "VariableOption",
    "VariableDescriptor",
    # style
    "Asset",
    "StyleMeta",
    "ParseResult",
]
