"""Transactional email templates: template key → subject/HTML/text (Jinja)."""

from __future__ import annotations

from typing import Any

from jinja2 import DictLoader, Environment, Template

_LAYOUT = """<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <style>
        body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #1f2933; }
        .container { max-width: 560px; margin: 0 auto; padding: 24px; }
        .button { display: inline-block; padding: 12px 24px; background: #2563eb; color: #ffffff; text-decoration: none; border-radius: 6px; }
        .muted { color: #6b7280; font-size: 13px; }
    </style>
</head>
<body>
    <div class="container">
        <h2>{{ subject }}</h2>
        {% block body %}{% endblock %}
        <p class="muted">{% block footer %}{{ security_footer }}{% endblock %}</p>
    </div>
</body>
</html>
"""

_SECURITY_FOOTER = (
    "If you did not make this change, reset your password and contact support immediately."
)

# key → (subject, html body, text body)
# Context: app_name, full_name and the per-template values passed to render().
_DEFAULT_TEMPLATES: dict[str, tuple[str, str, str]] = {
    "welcome": (
        "Welcome to {{ app_name }}",
        "{% extends 'layout.html' %}{% block body %}"
        "<p>Hi {{ full_name }},</p>"
        "<p>Your account has been created."
        "{% if company_name %} Your workspace <strong>{{ company_name }}</strong> is ready.{% endif %}</p>"
        '<p><a class="button" href="{{ login_url }}">Sign in</a></p>'
        "{% endblock %}"
        "{% block footer %}You received this email because an account was registered with this address.{% endblock %}",
        "Hi {{ full_name }},\n\nYour account has been created."
        "{% if company_name %} Your workspace {{ company_name }} is ready.{% endif %}"
        "\n\nSign in: {{ login_url }}\n",
    ),
    "password_reset": (
        "Reset your {{ app_name }} password",
        "{% extends 'layout.html' %}{% block body %}"
        "<p>Hi {{ full_name }},</p>"
        "<p>We received a request to reset your password. The link below can be used once "
        "and expires in {{ ttl_minutes }} minutes.</p>"
        '<p><a class="button" href="{{ reset_url }}">Reset password</a></p>'
        "{% endblock %}"
        "{% block footer %}If you did not request a password reset, you can ignore this email.{% endblock %}",
        "Hi {{ full_name }},\n\nReset your password (single use, expires in {{ ttl_minutes }} minutes):\n"
        "{{ reset_url }}\n\nIf you did not request a password reset, you can ignore this email.\n",
    ),
    "2fa_enabled": (
        "Two-factor authentication enabled on your {{ app_name }} account",
        "{% extends 'layout.html' %}{% block body %}"
        "<p>Hi {{ full_name }},</p><p>Two-factor authentication is now enabled. "
        "Keep your recovery codes somewhere safe; each code works once.</p>"
        "{% endblock %}",
        "Hi {{ full_name }},\n\nTwo-factor authentication is now enabled. Keep your recovery codes "
        "somewhere safe; each code works once.\n\n{{ security_footer }}\n",
    ),
    "2fa_disabled": (
        "Two-factor authentication disabled on your {{ app_name }} account",
        "{% extends 'layout.html' %}{% block body %}"
        "<p>Hi {{ full_name }},</p><p>Two-factor authentication has been disabled and "
        "your recovery codes were deleted.</p>"
        "{% endblock %}",
        "Hi {{ full_name }},\n\nTwo-factor authentication has been disabled and your recovery codes "
        "were deleted.\n\n{{ security_footer }}\n",
    ),
    "password_changed": (
        "Your {{ app_name }} password was changed",
        "{% extends 'layout.html' %}{% block body %}"
        "<p>Hi {{ full_name }},</p><p>The password for your account was just changed.</p>"
        "{% endblock %}",
        "Hi {{ full_name }},\n\nThe password for your account was just changed.\n\n"
        "{{ security_footer }}\n",
    ),
}


class EmailTemplateRenderer:
    """Renders subject, HTML and plain-text bodies for a template key.

    HTML bodies are autoescaped and share one layout; subjects and text
    bodies are rendered without escaping.
    """

    def __init__(self, templates: dict[str, tuple[str, str, str]] | None = None) -> None:
        self._templates = templates or _DEFAULT_TEMPLATES
        self._html_env = Environment(
            loader=DictLoader({"layout.html": _LAYOUT}), autoescape=True
        )
        self._text_env = Environment(autoescape=False)
        for env in (self._html_env, self._text_env):
            env.globals["security_footer"] = _SECURITY_FOOTER
        self._compiled: dict[str, tuple[Template, Template, Template]] = {}
        for key, (subject, html, text) in self._templates.items():
            self._compiled[key] = (
                self._text_env.from_string(subject),
                self._html_env.from_string(html),
                self._text_env.from_string(text),
            )

    @property
    def keys(self) -> list[str]:
        return list(self._compiled)

    def render(self, template_key: str, **context: Any) -> tuple[str, str, str]:
        """Return (subject, html, text). Raises KeyError if key unknown."""
        if template_key not in self._compiled:
            raise KeyError(f"Unknown email template: {template_key}")
        subject_tpl, html_tpl, text_tpl = self._compiled[template_key]
        subject = subject_tpl.render(**context)
        html = html_tpl.render(subject=subject, **context)
        text = text_tpl.render(**context)
        return subject, html, text
