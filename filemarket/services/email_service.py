import logging
import requests
import re
from typing import List, Optional, Union

from filemarket.config import settings
from filemarket.models.user import User
from filemarket.utils.template import render_template

logger = logging.getLogger(__name__)

BREVO_API_URL = "https://api.brevo.com/v3/smtp/email"

def is_valid_email(email):
    if isinstance(email, list):
        return all(is_valid_email(e) for e in email)

    if not email:
        return False

    return re.match(r"[^@]+@[^@]+\.[^@]+", email) is not None


def send_email(
    to: Union[str, List[str]],
    subject: str,
    html: str,
) -> bool:
    """
    Send email via Brevo.

    Never raises: delivery problems are logged and reported as False.
    """

    if isinstance(to, list):
        valid_emails = [e for e in to if is_valid_email(e)]
    else:
        valid_emails = [to] if is_valid_email(to) else []

    if not valid_emails:
        logger.warning(f"No valid emails found: {to}")
        return False

    if not settings.brevo_api_key:
        logger.info(f"Email delivery disabled, skipping '{subject}' to {valid_emails}")
        return False

    payload = {
        "sender": {
            "email": settings.mail_from,
            "name": settings.store_name,
        },
        "to": [{"email": email} for email in valid_emails],
        "subject": subject,
        "htmlContent": html,
    }

    headers = {
        "api-key": settings.brevo_api_key,
        "Content-Type": "application/json",
    }

    try:
        response = requests.post(
            BREVO_API_URL,
            json=payload,
            headers=headers,
            timeout=10,
        )

        if response.status_code >= 400:
            logger.error(
                f"Brevo email failed ({response.status_code}): {response.text}"
            )
            return False

        logger.info(f"Brevo email sent to {valid_emails}")
        return True

    except requests.RequestException:
        logger.exception("Brevo email exception")
        return False


def send_password_reset(user: User, token: str) -> bool:
    reset_link = f"{settings.frontend_url}/reset-password?token={token}"
    html = render_template(
        "emails/reset_password.html",
        user=user,
        reset_link=reset_link,
        store_name=settings.store_name,
    )
    return send_email(to=user.email, subject="Reset your password", html=html)


def send_verification(user: User, token: str) -> bool:
    verify_link = f"{settings.frontend_url}/verify-email/{token}"
    html = render_template(
        "emails/verify_email.html",
        user=user,
        verify_link=verify_link,
        store_name=settings.store_name,
    )
    return send_email(to=user.email, subject="Verify your email", html=html)


def send_payment_result(user: User, file_title: str, status: str, amount: float) -> bool:
    html = render_template(
        "emails/payment_verified.html",
        user=user,
        file_title=file_title,
        status=status,
        amount=amount,
        store_name=settings.store_name,
        library_link=f"{settings.frontend_url}/dashboard",
    )
    return send_email(
        to=user.email,
        subject=f"Your payment for {file_title} is {status}",
        html=html,
    )
