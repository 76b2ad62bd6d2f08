"""
web/templating.py -- Shared Jinja2 environment for the web UI.

One Jinja2Templates instance serves every page and fragment so filters and
globals are registered once.
"""

import re
from pathlib import Path

from fastapi.templating import Jinja2Templates
from markupsafe import Markup, escape

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))


def highlight(text: str, term: str) -> Markup:
    """Wrap every case-insensitive occurrence of term in <mark>.

    Both the text and the term are escaped before the markup is added, so
    resource titles cannot inject HTML through the search box.
    """
    if not term:
        return escape(text)
    pattern = re.compile(re.escape(term), re.IGNORECASE)
    parts: list[str] = []
    last = 0
    for match in pattern.finditer(text):
        parts.append(str(escape(text[last : match.start()])))
        parts.append(f"<mark>{escape(match.group(0))}</mark>")
        last = match.end()
    parts.append(str(escape(text[last:])))
    return Markup("".join(parts))


templates.env.filters["highlight"] = highlight
