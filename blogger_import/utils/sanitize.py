"""
HTML sanitization shared by titles, topic names and content bodies.

``sanitize(text)`` with no rules strips every tag and returns plain text.
Passing :data:`CONTENT_RULES` (or any dictionary of the same shape) keeps the
listed tags and attributes and unwraps everything else.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Optional

from bs4 import BeautifulSoup

_DROP_WITH_CONTENTS = ["script", "style", "object", "applet"]

_SAFE_URL = re.compile(r"^(https?:|mailto:|/|#|\^)", re.IGNORECASE)

CONTENT_RULES: Dict[str, Any] = {
    "allowed_tags": [
        "a", "b", "blockquote", "br", "caption", "code", "div", "em", "figcaption",
        "figure", "h1", "h2", "h3", "h4", "h5", "h6", "hr", "i", "iframe", "img",
        "li", "ol", "p", "pre", "s", "span", "strike", "strong", "sub", "sup",
        "table", "tbody", "td", "tfoot", "th", "thead", "tr", "u", "ul",
    ],
    "allowed_attributes": {
        "a": ["href", "name", "target", "title"],
        "img": ["src", "alt", "title", "width", "height"],
        "iframe": ["src", "width", "height", "frameborder", "allowfullscreen"],
        "td": ["colspan", "rowspan"],
        "th": ["colspan", "rowspan"],
        "*": ["class", "style"],
    },
}


def sanitize(value: Optional[str], rules: Optional[Dict[str, Any]] = None) -> str:
    if not value:
        return ""
    soup = BeautifulSoup(value, "html.parser")
    for bad in soup.find_all(_DROP_WITH_CONTENTS):
        bad.decompose()

    allowed_tags = (rules or {}).get("allowed_tags") or []
    if not allowed_tags:
        return soup.get_text().strip()

    allowed_attrs = rules.get("allowed_attributes") or {}
    common = set(allowed_attrs.get("*", []))
    for tag in soup.find_all(True):
        if tag.name not in allowed_tags:
            tag.unwrap()
            continue
        keep = common | set(allowed_attrs.get(tag.name, []))
        for attr in list(tag.attrs):
            if attr not in keep:
                del tag.attrs[attr]
            elif attr in ("href", "src") and not _SAFE_URL.match(str(tag.attrs[attr]).strip()):
                del tag.attrs[attr]
    return str(soup).strip()
