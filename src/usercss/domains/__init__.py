from usercss.domains.matcher import extract_hostname, matches_rule, matches_url
from usercss.domains.parser import (
    NO_VALID_RULES,
    domains_from_hostnames,
    domains_from_match_patterns,
    find_document_rules,
    normalize_domains,
    parse_domains,
    serialize_domains,
)

__all__ = [
    "NO_VALID_RULES",
    "parse_domains",
    "serialize_domains",
    "normalize_domains",
    "find_document_rules",
    "domains_from_hostnames",
    "domains_from_match_patterns",
    "extract_hostname",
    "matches_rule",
    "matches_url",
]
