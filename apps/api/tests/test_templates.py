"""Tests for email template rendering."""
from clinicops.services.template_service import (
    render_email_body,
    render_template,
    sanitize_html,
    text_to_html,
)

CONTEXT = {
    "patient": {"first_name": "Sara", "email": None},
    "deal": {"title": "Rhinoplasty"},
    "to_stage": {"name": "Won"},
}


def test_render_nested_variables():
    result = render_template("Hi {{ patient.first_name }}, {{deal.title}} is {{to_stage.name}}", CONTEXT)
    assert result == "Hi Sara, Rhinoplasty is Won"


def test_missing_and_none_values_render_empty():
    assert render_template("[{{ patient.email }}][{{ nope.here }}]", CONTEXT) == "[][]"


def test_empty_template():
    assert render_template(None, CONTEXT) == ""
    assert render_template("", CONTEXT) == ""


def test_text_to_html_escapes_and_breaks_lines():
    assert text_to_html("a < b\nc & d") == "a &lt; b<br />c &amp; d"


def test_sanitize_strips_scripts():
    cleaned = sanitize_html('<p onclick="x()">Hi</p><script>alert(1)</script>')
    assert "<script>" not in cleaned
    assert "onclick" not in cleaned
    assert "<p>Hi</p>" in cleaned


def test_html_body_uses_html_template_when_enabled():
    html = render_email_body(
        CONTEXT,
        body_template="plain {{ patient.first_name }}",
        body_html_template="<strong>{{ patient.first_name }}</strong>",
        use_html=True,
    )
    assert html == "<strong>Sara</strong>"


def test_text_body_when_html_disabled():
    html = render_email_body(
        CONTEXT,
        body_template="Hi {{ patient.first_name }}\nBye",
        body_html_template="<b>ignored</b>",
        use_html=False,
    )
    assert html == "Hi Sara<br />Bye"
