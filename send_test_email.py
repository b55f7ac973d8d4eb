# send_test_email.py
"""
Manual SMTP smoke test: renders the password-reset template and sends it
with the settings from .env.

    python send_test_email.py you@example.com
"""
import sys

from vegbazar.core.config import get_settings
from vegbazar.core.email_client import send_email
from vegbazar.core.email_templates import password_reset_email


def main():
    if len(sys.argv) != 2:
        print("usage: python send_test_email.py <recipient>")
        sys.exit(2)

    settings = get_settings()
    content = password_reset_email(
        "Test User",
        f"{settings.FRONTEND_URL.rstrip('/')}/reset-password?token=test",
        settings.PASSWORD_RESET_EXPIRE_HOURS,
    )

    print(f"Sending test email via {settings.SMTP_HOST}:{settings.SMTP_PORT}...")
    send_email(
        to_email=sys.argv[1],
        subject=f"[Test] {content.subject}",
        text_body=content.text,
        html_body=content.html,
    )
    print("If no errors: email sent! Check your inbox.")


if __name__ == "__main__":
    main()
