"""Domain rule model: a single site-matching condition."""

from __future__ import annotations

from dataclasses import dataclass

DOMAIN_KINDS = ("domain", "url", "url-prefix", "regexp")


@dataclass(frozen=True)
class DomainRule:
    """A site-targeting rule from an ``@-moz-document`` list.

    kind is one of ``domain``, ``url``, ``url-prefix`` or ``regexp``;
    include=False marks an exclusion.
    """

    kind: str
    pattern: str
    include: bool = True
