"""Tests for markdown + LaTeX answer rendering."""

import pytest

from mathtutor.core.models import ChatMessage
from mathtutor.render import (
    MathEngine,
    MathSyntaxError,
    normalize,
    render,
    render_document,
    render_message,
)
from mathtutor.render.math import (
    MATH_ERROR_CLASS,
    MATH_ERROR_LABEL,
    UnsafeMathML,
    check_braces,
    check_mathml,
    escape_text_arguments,
)

ANSWER = """#### 問題文の要約
- $a_n$ の一般項を求める

#### 設問別回答
##### (1)
**解答方針** 漸化式を変形する。

$$a_n = 2^n - 1$$

**結論** $$\\boxed{a_n = 2^n - 1}$$

#### 全設問まとめ
| 設問 | 答え |
| --- | --- |
| (1) | $2^n-1$ |

--- end ---
"""


class TestNormalize:
    def test_display_markers(self):
        text = "$begin:math:display$x^2$end:math:display$"
        assert normalize(text) == "$$x^2$$"

    def test_escaped_display_markers(self):
        text = "\\$begin:math:display$x$end:math:display$"
        assert normalize(text) == "$$x$$"

    def test_text_markers(self):
        assert normalize("$begin:math:text$x$end:math:text$") == "$x$"

    def test_doubled_command_backslash(self):
        assert normalize("$\\\\frac{1}{2}$") == "$\\frac{1}{2}$"

    def test_line_break_kept(self):
        assert normalize("a \\\\ b") == "a \\\\ b"

    def test_plain_text_untouched(self):
        text = "価格は 100 ドル"
        assert normalize(text) == text


class TestCheckBraces:
    def test_balanced(self):
        check_braces("\\frac{1}{2} + \\{x\\}")

    @pytest.mark.parametrize("formula", ["\\frac{1}{2", "x}", "{{x}"])
    def test_unbalanced(self, formula):
        with pytest.raises(MathSyntaxError):
            check_braces(formula)


class TestMathEngine:
    def test_inline(self):
        html = MathEngine().render("x^2", display_mode=False)
        assert html.startswith("<math")
        assert 'display="inline"' in html

    def test_display(self):
        html = MathEngine().render("\\frac{1}{2}", display_mode=True)
        assert 'display="block"' in html

    def test_malformed_becomes_placeholder(self):
        html = MathEngine().render("\\frac{1}{2", display_mode=True)
        assert html.startswith(f'<div class="{MATH_ERROR_CLASS}"')
        assert MATH_ERROR_LABEL in html

    def test_placeholder_escapes_formula(self):
        html = MathEngine().render("<b>{", display_mode=False)
        assert "<b>" not in html
        assert "&lt;b&gt;" in html


class TestRender:
    def test_full_answer(self):
        html = render(ANSWER)
        assert '<h4 class="text-lg font-bold mt-4 mb-2">' in html
        assert '<h5 class="' in html
        assert '<table class="' in html
        assert '<ul class="list-disc pl-6">' in html
        assert '<strong class="font-bold">' in html
        assert html.count("<math") >= 3
        assert "--- end ---" in html

    def test_idempotent(self):
        assert render(ANSWER) == render(ANSWER)

    def test_inline_and_display_math(self):
        html = render("解は $x=1$ です。\n\n$$\n\\int_0^1 x\\,dx\n$$\n")
        assert '<span class="math inline"><math' in html
        assert '<div class="math block">' in html

    def test_malformed_formula_does_not_break_document(self):
        html = render("#### 結論\n\n$\\frac{1}{2$ と $y=2$\n\n- 次の項目")
        assert MATH_ERROR_LABEL in html
        assert "<h4" in html
        assert "<li>次の項目</li>" in html
        assert html.count("<math") == 1

    def test_math_in_code_span(self):
        html = render("`$x^2$` と `$$y$$` と `print()`")
        assert '<span class="math inline"><math' in html
        assert '<span class="math display"><math' in html
        assert "<code>print()</code>" in html

    def test_html_is_escaped(self):
        html = render("<script>alert(1)</script>\n\n<b>太字</b>")
        assert "<script>" not in html
        assert "&lt;script&gt;" in html
        assert "<b>" not in html

    @pytest.mark.parametrize(
        "text",
        [
            "$\\text{<script>alert(1)</script>}$",
            "$$\\text{<img src=x onerror=alert(1)>}$$",
            "`$\\text{<script>alert(1)</script>}$`",
            "`$$\\mbox{<b>hi</b>}$$`",
        ],
    )
    def test_markup_in_math_text_is_escaped(self, text):
        html = render(text)
        assert "<script" not in html
        assert "<img" not in html
        assert "<b>" not in html
        assert "&lt;" in html

    def test_single_newline_is_line_break(self):
        assert "<br" in render("一行目\n二行目")

    def test_doubled_backslash_from_model(self):
        assert MATH_ERROR_LABEL not in render("$\\\\frac{1}{2}$")


class TestRenderDocument:
    def test_user_text_escaped(self):
        html = render_message(ChatMessage(role="user", content="<i>$x$</i>"))
        assert html == '<div class="message user">&lt;i&gt;$x$&lt;/i&gt;</div>'

    def test_assistant_rendered(self):
        html = render_message(ChatMessage(role="assistant", content="$x$"))
        assert html.startswith('<div class="message assistant">')
        assert "<math" in html

    def test_document(self):
        doc = render_document(
            [
                ChatMessage(role="user", content="問題"),
                ChatMessage(role="assistant", content="#### 答え\n$1$"),
            ]
        )
        assert doc.startswith("<!DOCTYPE html>")
        assert '<html lang="ja">' in doc
        assert "東大数学チューター" in doc
        assert doc.index("message user") < doc.index("message assistant")


class TestMathMLSafety:
    def test_text_argument_escaped(self):
        assert escape_text_arguments("x + \\text{<b> & c}") == (
            "x + \\text{&lt;b&gt; &amp; c}"
        )

    def test_escaped_ampersand_kept(self):
        assert escape_text_arguments("\\text{A \\& B}") == "\\text{A \\& B}"

    def test_nested_text_escaped_once(self):
        assert escape_text_arguments("\\text{\\textbf{<}}") == (
            "\\text{\\textbf{&lt;}}"
        )

    def test_math_mode_untouched(self):
        assert escape_text_arguments("a < b") == "a < b"

    def test_text_renders_as_plain_text(self):
        html = MathEngine().render("\\text{a<b}")
        assert "<mtext" in html
        assert "&lt;" in html

    def test_plain_mathml_accepted(self):
        check_mathml(MathEngine().render("\\frac{1}{2} < \\sqrt{x}"))

    @pytest.mark.parametrize(
        "markup",
        [
            '<math><mi>x</mi><script>alert(1)</script></math>',
            '<math><mi onclick="alert(1)">x</mi></math>',
            '<math><mtext href="javascript:alert(1)">x</mtext></math>',
            "<math><mtext><img src=x onerror=alert(1)></mtext></math>",
        ],
    )
    def test_unsafe_markup_rejected(self, markup):
        with pytest.raises(UnsafeMathML):
            check_mathml(markup)
