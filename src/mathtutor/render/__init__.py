"""Answer rendering: markdown + LaTeX to sanitized HTML."""

from .document import render_document, render_message
from .markdown import MathMarkdownRenderer, get_markdown_renderer, normalize, render
from .math import MathEngine, MathSyntaxError, get_math_engine

__all__ = [
    "MathEngine",
    "MathMarkdownRenderer",
    "MathSyntaxError",
    "get_markdown_renderer",
    "get_math_engine",
    "normalize",
    "render",
    "render_document",
    "render_message",
]
