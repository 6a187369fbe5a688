"""
services/email_service.py - Transactional email via the Resend HTTP API.

Delivery is best-effort: every public function returns True/False and
logs failures instead of raising, so a mail outage never fails the request
that triggered it. Without RESEND_API_KEY the message is logged, not sent.

Raw tokens are never logged; only recipient and subject are.
"""

from __future__ import annotations

import logging
from html import escape

import resend
from flask import current_app

logger = logging.getLogger(__name__)


def send_email(to_email: str, subject: str, html_content: str) -> bool:
    """
    Sends one email. Single attempt, no retry.

    Returns:
        True if the API accepted the message (or it was logged in place of
        sending), False if the API call failed.
    """
    api_key = current_app.config.get("RESEND_API_KEY")
    if not api_key:
        logger.warning("RESEND_API_KEY not set - logging email instead of sending")
        logger.info("EMAIL TO: %s | SUBJECT: %s", to_email, subject)
        return True

    resend.api_key = api_key
    params = {
        "from": current_app.config["EMAIL_FROM"],
        "to": [to_email],
        "subject": subject,
        "html": html_content,
    }
    try:
        email = resend.Emails.send(params)
    except Exception as exc:
        logger.error("Failed to send email to %s: %s", to_email, exc)
        return False

    logger.info("Email sent to %s, id: %s", to_email, email.get("id"))
    return True


def send_reset_password_email(to_email: str, token: str) -> bool:
    """Sends the reset-password link. The link carries the token as ?token=."""
    reset_url = f"{current_app.config['RESET_PASSWORD_URL']}?token={token}"
    html_content = f"""
    <html>
    <body>
        <p>Dear user,</p>
        <p>To reset your password, click on this link:
           <a href="{escape(reset_url)}">{escape(reset_url)}</a></p>
        <p>If you did not request any password resets, then ignore this email.</p>
    </body>
    </html>
    """
    return send_email(to_email, "Reset password", html_content)


def send_school_welcome_email(to_email: str, school_name: str) -> bool:
    """Sent to the first admin of a newly registered school."""
    html_content = f"""
    <html>
    <body>
        <p>Hello,</p>
        <p>You have successfully registered <strong>{escape(school_name)}</strong>.
           We welcome you onboard the future of education through technology.
           Please log in and continue your setup.</p>
    </body>
    </html>
    """
    return send_email(to_email, "SIMS Registration", html_content)
