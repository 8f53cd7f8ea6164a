"""Tests for trust-boundary validation of imported style data."""

import pytest

from usercss.model import DomainRule, StyleMeta, VariableDescriptor, VariableOption
from usercss.processor import style_id
from usercss.validation import (
    DomainRuleSchema,
    validate_domain_rules,
    validate_style_meta,
    validate_variables,
)


# ---------------------------------------------------------------------------
# Domain rules
# ---------------------------------------------------------------------------


class TestValidateDomainRules:
    def test_valid_rules_from_dicts_and_dataclasses(self):
        result = validate_domain_rules([
            {"kind": "domain", "pattern": "a.com"},
            DomainRule(kind="url-prefix", pattern="https://b.com/", include=False),
        ])
        assert result.ok
        assert result.value == [
            DomainRule(kind="domain", pattern="a.com"),
            DomainRule(kind="url-prefix", pattern="https://b.com/", include=False),
        ]

    def test_empty_pattern_is_rejected(self):
        result = validate_domain_rules([{"kind": "domain", "pattern": "  "}])
        assert result.value == []
        assert result.errors == ["0.pattern: Domain pattern cannot be empty"]

    def test_unknown_kind_is_rejected(self):
        result = validate_domain_rules([
            {"kind": "domain", "pattern": "a.com"},
            {"kind": "media", "pattern": "print"},
        ])
        assert result.value == [DomainRule(kind="domain", pattern="a.com")]
        assert len(result.errors) == 1
        assert result.errors[0].startswith("1.kind: ")

    def test_invalid_regexp(self):
        result = validate_domain_rules([{"kind": "regexp", "pattern": "("}])
        assert result.errors[0].startswith("0: Invalid regular expression")

    def test_missing_field(self):
        result = validate_domain_rules([{"kind": "url"}])
        assert result.errors[0].startswith("0.pattern: ")

    def test_schema_accepts_attributes(self):
        schema = DomainRuleSchema.model_validate(DomainRule(kind="url", pattern="https://a.com/"))
        assert schema.to_rule() == DomainRule(kind="url", pattern="https://a.com/")


# ---------------------------------------------------------------------------
# Variables
# ---------------------------------------------------------------------------


class TestValidateVariables:
    def test_valid(self):
        result = validate_variables({
            "--accent": VariableDescriptor(name="--accent", type="color", default="#fff", value="#fff"),
            "--size": {"name": "--size", "type": "range", "default": "12px", "min": 8, "max": 20, "unit": "px"},
        })
        assert result.ok
        assert set(result.value) == {"--accent", "--size"}
        assert result.value["--size"].min == 8

    def test_name_needs_prefix(self):
        result = validate_variables([{"name": "accent", "default": "red"}])
        assert result.errors == ["0.name: Variable name must start with '--'"]

    def test_default_must_be_non_empty(self):
        result = validate_variables({"--a": {"name": "--a", "default": ""}})
        assert result.errors == ["--a.default: Variable default cannot be empty"]

    def test_select_default_must_be_an_option(self):
        descriptor = VariableDescriptor(
            name="--theme",
            type="select",
            default="blue",
            options=[VariableOption("light", "Light"), VariableOption("dark", "Dark")],
        )
        result = validate_variables([descriptor])
        assert result.value == {}
        assert result.errors == ["0: Default 'blue' is not one of the options ['light', 'dark']"]

    @pytest.mark.parametrize(
        "default, message",
        [
            ("40", "Default 40 is above the maximum 32"),
            ("-1", "Default -1 is below the minimum 0"),
            ("wide", "Default 'wide' is not a number"),
        ],
    )
    def test_numeric_default_must_be_in_range(self, default, message):
        result = validate_variables([{"name": "--n", "type": "number", "default": default, "min": 0, "max": 32}])
        assert result.errors == [f"0: {message}"]

    def test_options_round_trip(self):
        descriptor = VariableDescriptor(
            name="--bg",
            type="select",
            default="sky",
            value="sky",
            options=[VariableOption("sky", "Sky")],
            option_css={"sky": "url(sky.jpg)"},
        )
        assert validate_variables([descriptor]).value == {"--bg": descriptor}


# ---------------------------------------------------------------------------
# Style metadata
# ---------------------------------------------------------------------------


class TestValidateStyleMeta:
    @pytest.fixture()
    def meta(self):
        return StyleMeta(
            name="Dark",
            id=style_id("Dark", "example.com"),
            namespace="example.com",
            version="1.0.0",
            domains=[DomainRule(kind="domain", pattern="example.com")],
            variables={"--a": VariableDescriptor(name="--a", default="red", value="red")},
        )

    def test_valid(self, meta):
        result = validate_style_meta(meta)
        assert result.ok
        assert result.value == meta

    def test_from_dict(self, meta):
        data = {"id": meta.id, "name": "Dark", "namespace": "n", "version": "1"}
        result = validate_style_meta(data)
        assert result.ok
        assert result.value.name == "Dark"
        assert result.value.domains == []

    def test_bad_id(self, meta):
        meta.id = "not-a-uuid"
        result = validate_style_meta(meta)
        assert result.value is None
        assert result.errors[0].startswith("id: ")

    def test_empty_required_fields(self, meta):
        meta.namespace = ""
        meta.version = " "
        result = validate_style_meta(meta)
        assert result.errors == ["namespace: Field cannot be empty", "version: Field cannot be empty"]

    def test_nested_errors_have_dotted_paths(self, meta):
        meta.domains = [DomainRule(kind="domain", pattern="")]
        meta.variables = {"--a": VariableDescriptor(name="a", default="red")}
        result = validate_style_meta(meta)
        assert result.errors == [
            "domains.0.pattern: Domain pattern cannot be empty",
            "variables.--a.name: Variable name must start with '--'",
        ]
