from usercss.validation.schema import (
    AssetSchema,
    DomainRuleSchema,
    StyleMetaSchema,
    VariableDescriptorSchema,
    VariableOptionSchema,
    format_validation_errors,
    validate_domain_rules,
    validate_style_meta,
    validate_variables,
)

__all__ = [
    "DomainRuleSchema",
    "VariableOptionSchema",
    "VariableDescriptorSchema",
    "AssetSchema",
    "StyleMetaSchema",
    "format_validation_errors",
    "validate_domain_rules",
    "validate_variables",
    "validate_style_meta",
]
