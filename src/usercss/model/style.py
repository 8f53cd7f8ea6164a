"""Style model: StyleMeta, Asset and the pipeline's ParseResult."""

from __future__ import annotations

from dataclasses import dataclass, field

from usercss.model.domain import DomainRule
from usercss.model.variable import VariableDescriptor

UNTITLED_STYLE = "Untitled Style"


@dataclass(frozen=True)
class Asset:
    """An external resource referenced by the stylesheet."""

    type: str  # "font", "image", "other"
    url: str
    format: str | None = None
    weight: str | None = None
    style: str | None = None
    display: str | None = None


@dataclass
class StyleMeta:
    """Metadata read from a UserStyle header.

    An empty ``domains`` list means the style applies to every site.
    ``domain_source`` keeps the raw ``@-moz-document`` rule-list text.
    """

    name: str = UNTITLED_STYLE
    id: str = ""
    namespace: str = ""
    version: str = ""
    description: str = ""
    author: str = ""
    source_url: str = ""
    license: str = ""
    homepage_url: str = ""
    support_url: str = ""
    update_url: str = ""
    preprocessor: str = ""
    domains: list[DomainRule] = field(default_factory=list)
    domain_source: str = ""
    compiled_css: str = ""
    variables: dict[str, VariableDescriptor] = field(default_factory=dict)
    assets: list[Asset] = field(default_factory=list)


@dataclass
class ParseResult:
    """Output of the UserCSS pipeline.

    ``css`` is the final injectable stylesheet (fonts first); ``body`` is the
    source text that followed the header.
    """

    meta: StyleMeta
    css: str
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    body: str = ""

    @property
    def ok(self) -> bool:
        return not self.errors
