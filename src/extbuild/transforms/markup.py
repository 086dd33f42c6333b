from __future__ import annotations

from typing import Iterable

import markdown


def render_markdown(text: str, extensions: Iterable[str] = ("fenced_code", "tables")) -> str:
    return markdown.markdown(text, extensions=list(extensions))
