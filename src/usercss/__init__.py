"""UserCSS engine: parse UserStyle sources into metadata and injectable CSS."""
from __future__ import annotations

__version__ = "0.1.0"

# Configuration and errors
from usercss.config import UserCSSOptions
from usercss.errors import BackendUnavailableError, CompilationError, ParseError

# Model
from usercss.model import (
    Asset,
    Diagnostic,
    DomainRule,
    ParseResult,
    Result,
    Severity,
    StyleMeta,
    VariableDescriptor,
    VariableOption,
)

# Domains
from usercss.domains import matches_url, normalize_domains, parse_domains, serialize_domains

# Variables
from usercss.variables import (
    extract_variables,
    merge_variables,
    parse_var_directive,
    resolve_variables,
)

# Preprocessors
from usercss.preprocessor import (
    LRUCache,
    PreprocessorDetection,
    PreprocessorEngine,
    PreprocessResult,
    detect_preprocessor,
)

# Fonts and assets
from usercss.assets import extract_assets
from usercss.fonts import FontFace, extract_font_faces, inject_fonts, resolve_font_variables

# Orchestration
from usercss.processor import UserCSSProcessor, parse_usercss

# Validation
from usercss.validation import validate_domain_rules, validate_style_meta, validate_variables

__all__ = [
    "__version__",
    "UserCSSOptions",
    "ParseError",
    "CompilationError",
    "BackendUnavailableError",
    "Asset",
    "Diagnostic",
    "DomainRule",
    "ParseResult",
    "Result",
    "Severity",
    "StyleMeta",
    "VariableDescriptor",
    "VariableOption",
    "parse_domains",
    "serialize_domains",
    "normalize_domains",
    "matches_url",
    "extract_variables",
    "resolve_variables",
    "parse_var_directive",
    "merge_variables",
    "detect_preprocessor",
    "PreprocessorDetection",
    "PreprocessorEngine",
    "PreprocessResult",
    "LRUCache",
    "FontFace",
    "extract_font_faces",
    "resolve_font_variables",
    "inject_fonts",
    "extract_assets",
    "UserCSSProcessor",
    "parse_usercss",
    "validate_domain_rules",
    "validate_variables",
    "validate_style_meta",
]
