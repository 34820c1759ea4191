import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from studyhub.core.config import settings
from studyhub.logging import get_logger
from studyhub.mycelery.app import celery_app

logger = get_logger("mail")


def _deliver(to_email: str, subject: str, html: str) -> dict:
    """Send through SMTP, or print the message when EMAIL_BACKEND is console."""
    if settings.EMAIL_BACKEND == "console":
        print("=== EMAIL ===")
        print(f"To: {to_email}")
        print(f"Subject: {subject}")
        print(html)
        print("=============")
        logger.info("Console email delivered", subject=subject)
        return {"sent": True, "backend": "console"}

    if not settings.SMTP_SERVER or not settings.SMTP_USERNAME or not settings.SMTP_PASSWORD:
        logger.error("SMTP credentials not configured", exc_info=False)
        return {"sent": False, "error": "SMTP credentials not configured"}

    from_email = settings.SMTP_FROM_EMAIL or settings.SMTP_USERNAME
    msg = MIMEMultipart()
    msg["From"] = f"{settings.SMTP_FROM_NAME} <{from_email}>"
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.attach(MIMEText(html, "html"))

    try:
        with smtplib.SMTP(
            settings.SMTP_SERVER,
            settings.SMTP_PORT,
            timeout=settings.SMTP_TIMEOUT_SECONDS,
        ) as server:
            server.starttls()
            server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
            server.sendmail(from_email, to_email, msg.as_string())
    except (smtplib.SMTPException, OSError) as e:
        logger.error("SMTP delivery failed", subject=subject, error=str(e))
        return {"sent": False, "error": str(e)}

    logger.info("Email sent", subject=subject)
    return {"sent": True, "backend": "smtp"}


@celery_app.task(name="send_password_reset_code")
def send_password_reset_code(email: str, code: str, ttl_minutes: int = settings.RESET_CODE_TTL_MINUTES):
    """Mail the one-time password reset code"""
    body = f"""
    <html>
        <body>
            <h2>Password Reset Request</h2>
            <p>We received a request to reset the password of your StudyHub account.</p>
            <p>Your verification code is: <strong>{code}</strong></p>
            <p>This code expires in {ttl_minutes} minutes.</p>
            <p>If you did not request a password reset, you can ignore this email.</p>
            <hr>
            <p><small>StudyHub - please do not reply to this email</small></p>
        </body>
    </html>
    """
    return _deliver(email, "Password Reset - StudyHub", body)


@celery_app.task(name="send_welcome_email")
def send_welcome_email(email: str, username: str):
    body = f"""
    <html>
        <body>
            <h2>Welcome to StudyHub, {username}!</h2>
            <p>Your account is ready. Share subjects, videos and reference links,
            and help others by answering their questions.</p>
            <hr>
            <p><small>StudyHub - please do not reply to this email</small></p>
        </body>
    </html>
    """
    return _deliver(email, "Welcome to StudyHub", body)
