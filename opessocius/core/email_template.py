"""Branded HTML layout for outgoing email."""

from datetime import datetime

from jinja2 import Environment, select_autoescape
from markupsafe import Markup, escape

LAYOUT = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{{ title }}</title>
</head>
<body style="margin: 0; padding: 0; font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; background-color: #f5f5f5;">
    <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="100%" style="background-color: #f5f5f5; padding: 40px 0;">
        <tr>
            <td align="center">
                <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="600" style="background-color: #ffffff; border-radius: 8px; overflow: hidden;">
                    <tr>
                        <td style="background: linear-gradient(135deg, #1e3a8a 0%, #3b82f6 100%); padding: 40px 40px 30px 40px; text-align: center;">
                            <h1 style="margin: 0; color: #ffffff; font-size: 32px; font-weight: 600; letter-spacing: 1px;">OPESSOCIUS</h1>
                            <p style="margin: 8px 0 0 0; color: #e0e7ff; font-size: 14px; letter-spacing: 2px; text-transform: uppercase;">Wealth Partners</p>
                        </td>
                    </tr>
                    <tr>
                        <td style="padding: 40px;">
                            <div style="color: #1f2937; font-size: 16px; line-height: 1.6;">
                                {{ body|nl2br }}
                            </div>
                        </td>
                    </tr>
                    <tr>
                        <td style="padding: 30px 40px; background-color: #f9fafb; border-top: 1px solid #e5e7eb;">
                            <p style="margin: 0 0 12px 0; color: #374151; font-size: 14px; font-weight: 600;">Best regards,</p>
                            <p style="margin: 0 0 8px 0; color: #1f2937; font-size: 16px; font-weight: 600;">Opessocius Wealth Partners</p>
                            <p style="margin: 0 0 4px 0; color: #6b7280; font-size: 13px;">{{ contact }}</p>
                            <p style="margin: 8px 0 0 0; color: #9ca3af; font-size: 12px; line-height: 1.5;">Building the backbone of specialized market investing</p>
                        </td>
                    </tr>
                    <tr>
                        <td style="background-color: #1e3a8a; padding: 20px 40px; text-align: center;">
                            <p style="margin: 0; color: #e0e7ff; font-size: 11px; letter-spacing: 0.5px;">&copy; {{ year }} Opessocius. All rights reserved.</p>
                        </td>
                    </tr>
                </table>
                <p style="margin: 20px 0 0 0; color: #9ca3af; font-size: 11px;">This email was sent from Opessocius Wealth Partners</p>
            </td>
        </tr>
    </table>
</body>
</html>"""


def nl2br(value) -> Markup:
    """Escape user text and keep its line breaks."""
    return escape(value or "").replace("\n", Markup("<br>"))


env = Environment(autoescape=select_autoescape(default_for_string=True, default=True))
env.filters["nl2br"] = nl2br

layout_template = env.from_string(LAYOUT)


def render_email(message: str, subject: str = "", contact: str = "relations@opessocius.support", year=None) -> str:
    return layout_template.render(
        title=subject or "Opessocius",
        body=message,
        contact=contact,
        year=year or datetime.now().year,
    )


def is_full_document(html: str) -> bool:
    return "<html" in html or "<!DOCTYPE" in html
