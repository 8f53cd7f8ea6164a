"""Pydantic schemas for validating UserCSS data at trust boundaries.

Parsed styles that come back from storage or from another process are
re-checked here before use.  Each ``validate_*`` function accepts the model
dataclasses or plain dicts and never raises for bad data: problems come back
as ``"<dotted.path>: <message>"`` strings in the result's ``errors``.
"""

from __future__ import annotations

import re
import uuid
from typing import Any, Iterable, Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from usercss.model.diagnostic import Result
from usercss.model.domain import DomainRule
from usercss.model.style import Asset, StyleMeta
from usercss.model.variable import VariableDescriptor, VariableOption

__all__ = [
    "DomainRuleSchema",
    "VariableOptionSchema",
    "VariableDescriptorSchema",
    "AssetSchema",
    "StyleMetaSchema",
    "validate_domain_rules",
    "validate_variables",
    "validate_style_meta",
]

_LEADING_NUMBER_RE = re.compile(r"^\s*(-?(?:\d+\.?\d*|\.\d+))")


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------


class DomainRuleSchema(BaseModel):
    """One ``@-moz-document`` condition."""

    model_config = ConfigDict(from_attributes=True)

    kind: Literal["domain", "url", "url-prefix", "regexp"]
    pattern: str
    include: bool = True

    @field_validator("pattern")
    @classmethod
    def pattern_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Domain pattern cannot be empty")
        return v

    @model_validator(mode="after")
    def regexp_compiles(self) -> "DomainRuleSchema":
        if self.kind == "regexp":
            try:
                re.compile(self.pattern)
            except re.error as exc:
                raise ValueError(f"Invalid regular expression: {exc}") from exc
        return self

    def to_rule(self) -> DomainRule:
        return DomainRule(kind=self.kind, pattern=self.pattern, include=self.include)


class VariableOptionSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    value: str
    label: str = ""


class VariableDescriptorSchema(BaseModel):
    """A customization variable as exposed to the user."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    type: str = "text"
    default: str
    value: str = ""
    label: str = ""
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None
    unit: Optional[str] = None
    options: list[VariableOptionSchema] = Field(default_factory=list)
    option_css: dict[str, str] = Field(default_factory=dict)

    @field_validator("name")
    @classmethod
    def name_has_prefix(cls, v: str) -> str:
        if not v.startswith("--"):
            raise ValueError("Variable name must start with '--'")
        return v

    @field_validator("default")
    @classmethod
    def default_not_empty(cls, v: str) -> str:
        if v == "":
            raise ValueError("Variable default cannot be empty")
        return v

    @model_validator(mode="after")
    def default_fits_type(self) -> "VariableDescriptorSchema":
        if self.type == "select" and self.options:
            values = [o.value for o in self.options]
            if self.default not in values:
                raise ValueError(f"Default '{self.default}' is not one of the options {values}")
        elif self.type in ("number", "range"):
            match = _LEADING_NUMBER_RE.match(self.default)
            if match is None:
                raise ValueError(f"Default '{self.default}' is not a number")
            number = float(match.group(1))
            if self.min is not None and number < self.min:
                raise ValueError(f"Default {number:g} is below the minimum {self.min:g}")
            if self.max is not None and number > self.max:
                raise ValueError(f"Default {number:g} is above the maximum {self.max:g}")
        return self

    def to_descriptor(self) -> VariableDescriptor:
        return VariableDescriptor(
            name=self.name,
            type=self.type,
            default=self.default,
            value=self.value,
            label=self.label,
            min=self.min,
            max=self.max,
            step=self.step,
            unit=self.unit,
            options=[VariableOption(value=o.value, label=o.label) for o in self.options],
            option_css=dict(self.option_css),
        )


class AssetSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    type: Literal["font", "image", "other"]
    url: str
    format: Optional[str] = None
    weight: Optional[str] = None
    style: Optional[str] = None
    display: Optional[str] = None


class StyleMetaSchema(BaseModel):
    """Style metadata as stored alongside the compiled stylesheet."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    namespace: str
    version: str
    description: str = ""
    author: str = ""
    source_url: str = ""
    license: str = ""
    homepage_url: str = ""
    support_url: str = ""
    update_url: str = ""
    preprocessor: str = ""
    domains: list[DomainRuleSchema] = Field(default_factory=list)
    domain_source: str = ""
    compiled_css: str = ""
    variables: dict[str, VariableDescriptorSchema] = Field(default_factory=dict)
    assets: list[AssetSchema] = Field(default_factory=list)

    @field_validator("name", "namespace", "version")
    @classmethod
    def required_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Field cannot be empty")
        return v

    def to_meta(self) -> StyleMeta:
        return StyleMeta(
            name=self.name,
            id=str(self.id),
            namespace=self.namespace,
            version=self.version,
            description=self.description,
            author=self.author,
            source_url=self.source_url,
            license=self.license,
            homepage_url=self.homepage_url,
            support_url=self.support_url,
            update_url=self.update_url,
            preprocessor=self.preprocessor,
            domains=[d.to_rule() for d in self.domains],
            domain_source=self.domain_source,
            compiled_css=self.compiled_css,
            variables={k: v.to_descriptor() for k, v in self.variables.items()},
            assets=[Asset(**a.model_dump()) for a in self.assets],
        )


# ---------------------------------------------------------------------------
# Error rendering
# ---------------------------------------------------------------------------


def _message(error: Mapping[str, Any]) -> str:
    # Strip pydantic's "Value error, " prefix from our own validator messages.
    if error.get("type") == "value_error" and "error" in error.get("ctx", {}):
        return str(error["ctx"]["error"])
    return str(error["msg"])


def format_validation_errors(exc: ValidationError, prefix: str = "") -> list[str]:
    """Render *exc* as ``"<dotted.path>: <message>"`` strings."""
    lines = []
    for error in exc.errors():
        path = ".".join(str(p) for p in (prefix, *error["loc"]) if p != "")
        lines.append(f"{path}: {_message(error)}" if path else _message(error))
    return lines


# ---------------------------------------------------------------------------
# Validators
# ---------------------------------------------------------------------------


def validate_domain_rules(data: Iterable[Any]) -> Result[list[DomainRule]]:
    """Validate each rule; invalid rules are reported and left out of the value."""
    rules: list[DomainRule] = []
    errors: list[str] = []
    for index, item in enumerate(data):
        try:
            rules.append(DomainRuleSchema.model_validate(item).to_rule())
        except ValidationError as exc:
            errors.extend(format_validation_errors(exc, str(index)))
    return Result(value=rules, errors=errors)


def validate_variables(data: Mapping[str, Any] | Iterable[Any]) -> Result[dict[str, VariableDescriptor]]:
    """Validate variable descriptors, keyed by name (or list index) in error paths."""
    items = data.items() if isinstance(data, Mapping) else enumerate(data)
    variables: dict[str, VariableDescriptor] = {}
    errors: list[str] = []
    for key, item in items:
        try:
            descriptor = VariableDescriptorSchema.model_validate(item).to_descriptor()
        except ValidationError as exc:
            errors.extend(format_validation_errors(exc, str(key)))
            continue
        variables[descriptor.name] = descriptor
    return Result(value=variables, errors=errors)


def validate_style_meta(data: Any) -> Result[Optional[StyleMeta]]:
    """Validate a whole :class:`StyleMeta`; the value is None when invalid."""
    try:
        schema = StyleMetaSchema.model_validate(data)
    except ValidationError as exc:
        return Result(value=None, errors=format_validation_errors(exc))
    return Result(value=schema.to_meta())
