"""LaTeX typesetting with a never-raising contract.

``MathEngine.render(formula, display_mode)`` converts LaTeX to MathML via
``latex2mathml``.  Any failure (unbalanced braces, unsupported syntax,
converter bugs) is replaced by a visible error placeholder so a single
bad formula never breaks the surrounding document.

``latex2mathml`` copies the arguments of text-mode commands (``\\text``,
``\\mbox``...) into ``<mtext>`` verbatim, so markup characters in them are
escaped before conversion.  The converted markup is then parsed back and
must consist of MathML elements only, without event-handler or link
attributes; anything else is treated as a failed formula.
"""

from __future__ import annotations

import html
import logging
import re
import xml.etree.ElementTree as ET

from latex2mathml.converter import convert

from mathtutor.core.metrics import MATH_RENDER_ERRORS_TOTAL
from mathtutor.infra.singleton import singleton

logger = logging.getLogger(__name__)

MATH_ERROR_LABEL = "数式エラー"
MATH_ERROR_CLASS = "math-error"

_TEXT_COMMAND = re.compile(r"\\(?:text|textrm|textit|textbf|textsf|texttt|mbox|hbox)\s*\{")
_BARE_AMPERSAND = re.compile(r"(?<!\\)&")

MATHML_TAGS = frozenset(
    {
        "math", "semantics", "annotation", "annotation-xml",
        "mi", "mn", "mo", "ms", "mtext", "mspace", "mglyph",
        "mrow", "mfrac", "msqrt", "mroot", "mstyle", "merror", "mpadded",
        "mphantom", "mfenced", "menclose",
        "msub", "msup", "msubsup", "munder", "mover", "munderover",
        "mmultiscripts", "mprescripts", "none",
        "mtable", "mtr", "mtd", "mlabeledtr", "maligngroup", "malignmark",
    }
)  # fmt: skip
_FORBIDDEN_ATTRIBUTES = frozenset({"href", "src", "xlink:href"})


class MathSyntaxError(ValueError):
    """Formula rejected before conversion."""


class UnsafeMathML(ValueError):
    """Converted markup contains something other than plain MathML."""


def check_braces(formula: str) -> None:
    """Raise ``MathSyntaxError`` if unescaped braces do not balance."""
    depth = 0
    escaped = False
    for ch in formula:
        if escaped:
            escaped = False
            continue
        if ch == "\\":
            escaped = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth < 0:
                raise MathSyntaxError("unexpected '}'")
    if depth:
        raise MathSyntaxError(f"{depth} unclosed '{{'")


def _closing_brace(formula: str, start: int) -> int:
    """Index of the ``}`` closing the group that starts at *start*."""
    depth = 1
    i = start
    while i < len(formula):
        ch = formula[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return len(formula)


def _escape_text(text: str) -> str:
    text = _BARE_AMPERSAND.sub("&amp;", text)
    return text.replace("<", "&lt;").replace(">", "&gt;")


def escape_text_arguments(formula: str) -> str:
    """Escape ``&``, ``<`` and ``>`` inside text-mode command arguments.

    ``\\&`` is left alone; it already means a literal ampersand.
    """
    parts = []
    pos = 0
    for match in _TEXT_COMMAND.finditer(formula):
        if match.start() < pos:
            continue  # nested in an argument already escaped
        end = _closing_brace(formula, match.end())
        parts.append(formula[pos : match.end()])
        parts.append(_escape_text(formula[match.end() : end]))
        pos = end
    parts.append(formula[pos:])
    return "".join(parts)


def check_mathml(markup: str) -> None:
    """Raise ``UnsafeMathML`` unless *markup* is well-formed plain MathML."""
    try:
        root = ET.fromstring(markup)
    except ET.ParseError as exc:
        raise UnsafeMathML(f"malformed markup: {exc}") from exc

    for element in root.iter():
        if not isinstance(element.tag, str):
            continue
        tag = element.tag.rsplit("}", 1)[-1]
        if tag not in MATHML_TAGS:
            raise UnsafeMathML(f"element <{tag}> is not MathML")
        for name in element.attrib:
            local = name.rsplit("}", 1)[-1].lower()
            if local.startswith("on") or local in _FORBIDDEN_ATTRIBUTES:
                raise UnsafeMathML(f"attribute {local!r} on <{tag}>")


def error_placeholder(formula: str, reason: str, display_mode: bool) -> str:
    tag = "div" if display_mode else "span"
    return (
        f'<{tag} class="{MATH_ERROR_CLASS}" title="{html.escape(reason)}">'
        f"{MATH_ERROR_LABEL}: {html.escape(formula)}</{tag}>"
    )


class MathEngine:
    """Stateless LaTeX -> MathML converter."""

    def render(self, formula: str, display_mode: bool = False) -> str:
        formula = formula.strip()
        try:
            check_braces(formula)
            markup = convert(
                escape_text_arguments(formula),
                display="block" if display_mode else "inline",
            )
            check_mathml(markup)
            return markup
        except Exception as exc:
            MATH_RENDER_ERRORS_TOTAL.labels(
                display_mode="block" if display_mode else "inline"
            ).inc()
            logger.debug("Math render failed for %r: %s", formula, exc)
            return error_placeholder(formula, f"{type(exc).__name__}: {exc}", display_mode)


@singleton
def get_math_engine() -> MathEngine:
    return MathEngine()
