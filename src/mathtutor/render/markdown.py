"""Markdown + LaTeX answer rendering with markdown-it-py.

Pipeline for ``render(text)``:

1. ``normalize`` rewrites delimiter variants some models emit:
   ``$begin:math:display$ ... $end:math:display$`` becomes ``$$ ... $$``,
   the ``:math:text`` pair becomes ``$ ... $``, and a doubled backslash in
   front of a command name (``\\\\boxed``) collapses to one.
2. CommonMark parsing with raw HTML disabled (input HTML is escaped),
   tables, and the ``dollarmath`` plugin for ``$...$`` / ``$$...$$``.
3. Inline code spans whose text is itself ``$...$`` or ``$$...$$`` are
   typeset as inline or display math instead of ``<code>``.
4. Headings h4/h5, tables, lists and emphasis get fixed CSS classes.

Output depends only on the input text, so rendering is idempotent.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any

from markdown_it import MarkdownIt
from markdown_it.renderer import RendererHTML
from markdown_it.token import Token
from markdown_it.utils import OptionsDict
from mdit_py_plugins.dollarmath import dollarmath_plugin

from mathtutor.core.metrics import RENDER_REQUESTS_TOTAL
from mathtutor.infra.singleton import singleton
from mathtutor.infra.telemetry import ATTR_RENDER_TEXT_LEN, SPAN_RENDER, tracer

from .math import MathEngine, get_math_engine

_DISPLAY_MARKER = re.compile(r"\\?\$(?:begin|end):math:display\$")
_INLINE_MARKER = re.compile(r"\\?\$(?:begin|end):math:text\$")
_DOUBLED_BACKSLASH = re.compile(r"\\\\(?=[A-Za-z])")

TAG_CLASSES = {
    "h4": "text-lg font-bold mt-4 mb-2",
    "h5": "text-base font-semibold mt-3 mb-1",
    "table": "table-auto border-collapse my-2",
    "ul": "list-disc pl-6",
    "ol": "list-decimal pl-6",
    "strong": "font-bold",
    "em": "italic",
}

_STYLED_OPEN_RULES = (
    "heading_open",
    "table_open",
    "bullet_list_open",
    "ordered_list_open",
    "strong_open",
    "em_open",
)


def normalize(text: str) -> str:
    """Rewrite nonstandard math delimiters and doubled command backslashes."""
    text = _DISPLAY_MARKER.sub("$$", text)
    text = _INLINE_MARKER.sub("$", text)
    return _DOUBLED_BACKSLASH.sub(r"\\", text)


def _math_in_code(content: str) -> tuple[str, bool] | None:
    """``(formula, display_mode)`` if a code span is really math."""
    if len(content) > 4 and content.startswith("$$") and content.endswith("$$"):
        return content[2:-2], True
    if len(content) > 2 and content.startswith("$") and content.endswith("$"):
        return content[1:-1], False
    return None


class MathMarkdownRenderer:
    """Markdown-it pipeline bound to a ``MathEngine``."""

    def __init__(self, engine: MathEngine) -> None:
        self._engine = engine
        self._md = self._build()

    def _build(self) -> MarkdownIt:
        engine = self._engine

        md = MarkdownIt("commonmark", {"html": False, "breaks": True})
        md.enable("table")
        md.use(
            dollarmath_plugin,
            allow_labels=False,
            allow_space=True,
            allow_digits=True,
            double_inline=True,
            renderer=lambda content, opts: engine.render(
                content, opts.get("display_mode", False)
            ),
        )

        def code_inline(
            self: RendererHTML,
            tokens: Sequence[Token],
            idx: int,
            options: OptionsDict,
            env: Any,
        ) -> str:
            math = _math_in_code(tokens[idx].content)
            if math is None:
                return self.code_inline(tokens, idx, options, env)
            formula, display_mode = math
            kind = "display" if display_mode else "inline"
            return f'<span class="math {kind}">{engine.render(formula, display_mode)}</span>'

        def styled_open(
            self: RendererHTML,
            tokens: Sequence[Token],
            idx: int,
            options: OptionsDict,
            env: Any,
        ) -> str:
            token = tokens[idx]
            css = TAG_CLASSES.get(token.tag)
            if css:
                token.attrJoin("class", css)
            return self.renderToken(tokens, idx, options, env)

        md.add_render_rule("code_inline", code_inline)
        for rule in _STYLED_OPEN_RULES:
            md.add_render_rule(rule, styled_open)
        return md

    def render(self, text: str, env: dict[str, Any] | None = None) -> str:
        RENDER_REQUESTS_TOTAL.inc()
        with tracer.start_as_current_span(SPAN_RENDER) as span:
            span.set_attribute(ATTR_RENDER_TEXT_LEN, len(text))
            return self._md.render(normalize(text), env if env is not None else {})


@singleton
def get_markdown_renderer() -> MathMarkdownRenderer:
    return MathMarkdownRenderer(get_math_engine())


def render(text: str) -> str:
    """Render a model answer (markdown + LaTeX) to a sanitized HTML fragment."""
    return get_markdown_renderer().render(text)
