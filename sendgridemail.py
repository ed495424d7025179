import logging
from urllib.parse import quote

import sendgrid
from sendgrid.helpers.mail import Mail

import config
import secretmanager
from domain.user import SignUpUser

logger = logging.getLogger('uvicorn.error')


def build_confirmation_email(user: SignUpUser, challenge: str) -> Mail:
    link = f"{config.SITE_URL}/sign-up/confirm?challenge={quote(challenge)}"
    return Mail(
        from_email=config.EMAIL_SENDER,
        to_emails=user.email,
        subject='Confirm your StartHub account',
        html_content=f'<strong>Hello {user.name},</strong><p>To finish creating your StartHub account, please click <a href="{link}">here</a>.</p>'
    )


def send_email(user: SignUpUser, challenge: str) -> bool:
    message = build_confirmation_email(user, challenge)
    try:
        sg = sendgrid.SendGridAPIClient(secretmanager.get_cached_secret(config.SENDGRID_SECRET_NAME))
        response = sg.send(message)
        logger.info(f"Confirmation email sent to {user.email}, status {response.status_code}")
        return True
    except Exception as e:
        logger.exception(f"Error sending confirmation email to {user.email}: {e}")
        return False
