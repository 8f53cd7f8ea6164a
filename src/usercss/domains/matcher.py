"""Match URLs against domain rules."""

from __future__ import annotations

import logging
import re
from typing import Iterable

from usercss.model.domain import DomainRule

log = logging.getLogger(__name__)

_HOST_RE = re.compile(r"^[a-z][a-z0-9+.-]*://([^/?#]+)", re.IGNORECASE)


def extract_hostname(url: str) -> str:
    """Return the lowercase host of *url* (without port), or *url* itself if it has none."""
    match = _HOST_RE.match(url)
    if not match:
        return url.lower()
    host = match.group(1).rsplit("@", 1)[-1]
    return host.split(":", 1)[0].lower()


def _matches_domain(host: str, pattern: str) -> bool:
    pattern = pattern.lower()
    if pattern.startswith("*."):
        base = pattern[2:]
        return host == base or host.endswith(f".{base}")
    if pattern.endswith("*"):
        return host.startswith(pattern[:-1])
    if host.startswith("www.") and host[4:] == pattern:
        return True
    if pattern.startswith("www.") and pattern[4:] == host:
        return True
    return host == pattern or host.endswith(f".{pattern}")


def matches_rule(url: str, rule: DomainRule) -> bool:
    """Return True if *url* satisfies *rule*, ignoring its include flag."""
    if rule.kind == "domain":
        return _matches_domain(extract_hostname(url), rule.pattern)
    if rule.kind == "url-prefix":
        return url.lower().startswith(rule.pattern.lower())
    if rule.kind == "url":
        return url.rstrip("/").lower() == rule.pattern.rstrip("/").lower()
    if rule.kind == "regexp":
        try:
            return re.search(rule.pattern, url) is not None
        except re.error:
            log.debug("Invalid regexp rule %r never matches", rule.pattern)
            return False
    return False


def matches_url(url: str, rules: Iterable[DomainRule]) -> bool:
    """Decide whether a style with *rules* applies to *url*.

    No rules means every site.  A matching exclude rule always wins; otherwise
    a matching include rule accepts.  When only exclude rules exist and none
    matched, the URL is accepted.
    """
    rules = list(rules)
    if not rules:
        return True
    if any(not r.include and matches_rule(url, r) for r in rules):
        return False
    includes = [r for r in rules if r.include]
    if not includes:
        return True
    return any(matches_rule(url, r) for r in includes)
