"""Standalone HTML page for a whole conversation."""

from __future__ import annotations

import html
from collections.abc import Iterable

from mathtutor.core.models import ROLE_USER, ChatMessage

from .markdown import render

DEFAULT_TITLE = "東大数学チューター"

_STYLE = """
body { font-family: sans-serif; max-width: 48rem; margin: 2rem auto; line-height: 1.6; }
.message { padding: 0.5rem 1rem; border-radius: 0.5rem; margin: 1rem 0; }
.message.user { background: #1f2937; color: #f9fafb; white-space: pre-wrap; margin-left: 20%; }
.message.assistant { background: #f3f4f6; }
.math.block, .math.display { display: block; text-align: center; margin: 0.5rem 0; }
.math-error { color: #ef4444; }
table { border-collapse: collapse; }
th, td { border: 1px solid #d1d5db; padding: 0.25rem 0.5rem; }
"""


def render_message(message: ChatMessage) -> str:
    """User text is shown verbatim; assistant answers go through ``render``."""
    if message.role == ROLE_USER:
        body = html.escape(message.content)
    else:
        body = render(message.content)
    return f'<div class="message {message.role}">{body}</div>'


def render_document(
    messages: Iterable[ChatMessage], title: str = DEFAULT_TITLE
) -> str:
    body = "\n".join(render_message(m) for m in messages)
    return (
        "<!DOCTYPE html>\n"
        '<html lang="ja">\n'
        "<head>\n"
        '<meta charset="utf-8">\n'
        f"<title>{html.escape(title)}</title>\n"
        f"<style>{_STYLE}</style>\n"
        "</head>\n"
        "<body>\n"
        f"<h1>{html.escape(title)}</h1>\n"
        f"{body}\n"
        "</body>\n"
        "</html>\n"
    )
