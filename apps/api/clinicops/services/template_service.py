"""
Template rendering for automated emails.

Variables use {{ dotted.path }} syntax resolved against a nested context,
e.g. {{ patient.first_name }} or {{ to_stage.name }}.
"""

import re
from typing import Any

import nh3

VARIABLE_PATTERN = re.compile(r"\{\{\s*([^}]+?)\s*\}\}")

ALLOWED_TAGS = {
    "p", "br", "strong", "b", "em", "i", "u", "ul", "ol", "li", "a",
    "blockquote", "h1", "h2", "h3", "span", "div", "table", "tr", "td", "th",
}
ALLOWED_ATTRIBUTES = {"a": {"href", "target"}, "span": {"style"}, "div": {"style"}}


def resolve_path(context: dict[str, Any], path: str) -> Any:
    """Walk a dotted path through nested dicts. Missing keys give None."""
    current: Any = context
    for part in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(part)
        if current is None:
            return None
    return current


def render_template(template: str | None, context: dict[str, Any]) -> str:
    """
    Substitute {{ path }} variables.
    
    Missing or None values render as empty string.
    """
    if not template:
        return ""

    def replace_var(match: re.Match) -> str:
        value = resolve_path(context, match.group(1).strip())
        return "" if value is None else str(value)

    return VARIABLE_PATTERN.sub(replace_var, template)


def text_to_html(text: str) -> str:
    """Escape a plain-text body and turn newlines into <br />."""
    escaped = text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
    return "<br />".join(
        "<br />" if not line else line for line in re.split(r"\r?\n", escaped)
    )


def sanitize_html(html: str) -> str:
    """Strip anything outside the email-safe tag set."""
    return nh3.clean(html, tags=ALLOWED_TAGS, attributes=ALLOWED_ATTRIBUTES)


def render_email_body(
    context: dict[str, Any],
    *,
    body_template: str | None,
    body_html_template: str | None,
    use_html: bool,
) -> str:
    """
    Render the HTML body for an email action.
    
    HTML templates are sanitized after substitution; text templates are
    escaped and converted.
    """
    if use_html and body_html_template:
        return sanitize_html(render_template(body_html_template, context))
    return text_to_html(render_template(body_template, context))
