"""Collect external asset references (fonts, images) from compiled CSS."""

from __future__ import annotations

import re

from usercss.domains.parser import find_document_rules
from usercss.fonts import extract_font_faces
from usercss.model.style import Asset

_URL_RE = re.compile(r"""url\(\s*(?P<q>["']?)(?P<url>[^"')]+)(?P=q)\s*\)""")
_FORMAT_RE = re.compile(r"""format\(\s*["']?(?P<format>[^"')]+)["']?\s*\)""")

_SKIPPED_SCHEMES = ("data:", "chrome-extension:", "moz-extension:")
_FONT_RE = re.compile(r"\.(woff2?|ttf|otf|eot)(?:[?#].*)?$", re.IGNORECASE)
_IMAGE_RE = re.compile(r"\.(png|jpe?g|gif|svg|webp|ico|avif|bmp)(?:[?#].*)?$", re.IGNORECASE)


def classify_url(url: str) -> str:
    if _FONT_RE.search(url) or "fonts.googleapis.com" in url or "fonts.gstatic.com" in url:
        return "font"
    if _IMAGE_RE.search(url):
        return "image"
    return "other"


def _without_document_preludes(css: str) -> str:
    pieces: list[str] = []
    last = 0
    for _, start, end in find_document_rules(css):
        pieces.append(css[last:start])
        last = end
    pieces.append(css[last:])
    return "".join(pieces)


def extract_assets(css: str) -> list[Asset]:
    """List the external URLs referenced by *css*, fonts from ``@font-face`` first."""
    assets: dict[str, Asset] = {}

    for face in extract_font_faces(css):
        if not face.src:
            continue
        # src is "url(a) format(x), url(b) format(y)"
        for entry in face.src.split(","):
            url_match = _URL_RE.search(entry)
            if not url_match:
                continue
            url = url_match.group("url").strip()
            if url.startswith(_SKIPPED_SCHEMES) or url in assets:
                continue
            fmt = _FORMAT_RE.search(entry)
            assets[url] = Asset(
                type="font",
                url=url,
                format=fmt.group("format") if fmt else None,
                weight=face.weight,
                style=face.style,
                display=face.display,
            )

    for match in _URL_RE.finditer(_without_document_preludes(css)):
        url = match.group("url").strip()
        if url.startswith(_SKIPPED_SCHEMES) or url in assets:
            continue
        assets[url] = Asset(type=classify_url(url), url=url)

    return list(assets.values())
