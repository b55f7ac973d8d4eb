# vegbazar/core/email_templates.py
from dataclasses import dataclass
from datetime import datetime, timezone
from html import escape

SUPPORT_EMAIL = "info.vegbazar@gmail.com"


@dataclass(frozen=True)
class EmailContent:
    subject: str
    text: str
    html: str


def _layout(title: str, body_html: str) -> str:
    year = datetime.now(timezone.utc).year
    return f"""<!DOCTYPE html>
<html>
<body style="font-family: Arial, sans-serif; background-color: #f3f4f6; margin: 0; padding: 32px;">
  <div style="max-width: 600px; margin: 0 auto; background: #ffffff; border-radius: 8px; overflow: hidden;">
    <div style="background-color: #0e540b; color: #ffffff; text-align: center; padding: 24px;">
      <h1 style="margin: 0; font-size: 22px;">{escape(title)}</h1>
    </div>
    <div style="padding: 24px; color: #374151; font-size: 15px; line-height: 1.6;">
      {body_html}
      <p>Need assistance? Contact us at <a href="mailto:{SUPPORT_EMAIL}">{SUPPORT_EMAIL}</a></p>
    </div>
    <div style="background-color: #f9fafb; text-align: center; padding: 16px; color: #6b7280; font-size: 13px;">
      &copy; {year} VegBazar. All rights reserved.
    </div>
  </div>
</body>
</html>"""


def _button(url: str, label: str) -> str:
    return (
        f'<p style="text-align: center; margin: 24px 0;">'
        f'<a href="{escape(url, quote=True)}" style="background-color: #e24100; color: #ffffff; '
        f'text-decoration: none; font-weight: 600; padding: 12px 32px; border-radius: 4px;">'
        f"{escape(label)}</a></p>"
    )


def welcome_email(username: str) -> EmailContent:
    name = username or "there"
    text = (
        f"Welcome to VegBazar, {name}!\n\n"
        "Your account is ready. Fresh vegetables are a few taps away.\n\n"
        "VegBazar Team"
    )
    html = _layout(
        "Welcome to VegBazar",
        f"<p>Hello {escape(name)},</p>"
        "<p>Your account is ready. Fresh vegetables are a few taps away.</p>",
    )
    return EmailContent(subject="Welcome to VegBazar", text=text, html=html)


def password_reset_email(username: str, reset_url: str, expires_hours: int) -> EmailContent:
    name = username or "User"
    text = (
        "VegBazar - Password Reset Request\n\n"
        f"Hello {name},\n\n"
        "We received a request to reset your password for your VegBazar account.\n\n"
        f"Reset it here: {reset_url}\n\n"
        f"This link expires in {expires_hours} hours. "
        "If you didn't request this, please ignore this email.\n\n"
        "VegBazar Team"
    )
    html = _layout(
        "Password Reset",
        f"<p>Hello {escape(name)},</p>"
        "<p>We received a request to reset your password. "
        "Click the button below to create a new password:</p>"
        f"{_button(reset_url, 'Reset Password')}"
        f"<p>This link expires in {expires_hours} hours. "
        "If you didn't request this, please ignore this email.</p>",
    )
    return EmailContent(subject="Password Reset Request - VegBazar", text=text, html=html)


def verification_email(username: str, verify_url: str, expires_hours: int) -> EmailContent:
    name = username or "Admin"
    text = (
        "VegBazar - Verify Your Email\n\n"
        f"Hello {name},\n\n"
        f"Please verify your email address: {verify_url}\n\n"
        f"This link expires in {expires_hours} hours.\n\n"
        "VegBazar Team"
    )
    html = _layout(
        "Verify Your Email",
        f"<p>Hello {escape(name)},</p>"
        "<p>Please confirm this email address to activate your admin account.</p>"
        f"{_button(verify_url, 'Verify Email')}"
        f"<p>This link expires in {expires_hours} hours.</p>",
    )
    return EmailContent(subject="Verify Your Email - VegBazar", text=text, html=html)
