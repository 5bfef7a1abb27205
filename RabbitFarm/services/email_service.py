# services/email_service.py
"""
Servicio de envío de emails usando SMTP (Gmail por defecto).
Si las credenciales no están configuradas, se registra en logs (modo desarrollo).
"""
import html
import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart

from config.settings import settings

logger = logging.getLogger(__name__)

_STYLE = """
    body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
    .container { max-width: 600px; margin: 0 auto; padding: 20px; }
    .header { background-color: #6b8e23; color: white; padding: 20px; text-align: center; }
    .content { padding: 30px; background-color: #f9f9f9; }
    .button {
        display: inline-block;
        padding: 12px 30px;
        background-color: #6b8e23;
        color: white;
        text-decoration: none;
        border-radius: 5px;
        margin: 20px 0;
    }
    .footer { padding: 20px; text-align: center; font-size: 12px; color: #666; }
    .warning { color: #d9534f; font-weight: bold; }
"""


def _layout(title: str, body: str) -> str:
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="utf-8">
        <style>{_STYLE}</style>
    </head>
    <body>
        <div class="container">
            <div class="header">
                <h1>{title}</h1>
            </div>
            <div class="content">
                {body}
            </div>
            <div class="footer">
                <p>This is an automated message, please do not reply.</p>
                <p>&copy; {settings.APP_NAME}</p>
            </div>
        </div>
    </body>
    </html>
    """


def send_email(to_email: str, subject: str, html_body: str) -> bool:
    """
    Envía un email usando SMTP con STARTTLS.

    Args:
        to_email: Email del destinatario
        subject: Asunto del email
        html_body: Cuerpo del email en HTML

    Returns:
        True si se envió correctamente, False si falló
    """
    # Sin configuración de email: solo registrar (desarrollo)
    if not settings.MAIL_USER or not settings.MAIL_PASS:
        logger.info("EMAIL (modo desarrollo, no se envió) para=%s asunto=%s", to_email, subject)
        logger.debug(html_body)
        return True

    try:
        msg = MIMEMultipart("alternative")
        msg["From"] = f"{settings.MAIL_FROM_NAME} <{settings.MAIL_FROM_EMAIL}>"
        msg["To"] = to_email
        msg["Subject"] = subject
        msg.attach(MIMEText(html_body, "html"))

        with smtplib.SMTP(settings.MAIL_HOST, settings.MAIL_PORT) as server:
            server.starttls()
            server.login(settings.MAIL_USER, settings.MAIL_PASS)
            server.send_message(msg)

        logger.info("Email enviado a %s", to_email)
        return True

    except (smtplib.SMTPException, OSError) as e:
        logger.error("Error al enviar email a %s: %s", to_email, e)
        return False


def send_verification_email(to_email: str, verify_link: str, user_name: str) -> bool:
    """Email con el link de verificación de cuenta."""
    subject = f"Verify your email - {settings.APP_NAME}"
    body = f"""
        <p>Hello <strong>{html.escape(user_name)}</strong>,</p>
        <p>Thanks for registering with {settings.APP_NAME}. Please confirm your email address
        so you can receive farm notifications.</p>
        <div style="text-align: center;">
            <a href="{verify_link}" class="button">Verify Email</a>
        </div>
        <p>Or paste this link in your browser:</p>
        <p style="word-break: break-all; background-color: #eee; padding: 10px;">{verify_link}</p>
        <p class="warning">This link expires in {settings.EMAIL_VERIFICATION_EXPIRE_HOURS} hours.</p>
    """
    return send_email(to_email, subject, _layout("Verify your email", body))


def send_password_reset_email(to_email: str, reset_link: str, user_name: str) -> bool:
    """
    Envía email de recuperación de contraseña.

    Args:
        to_email: Email del usuario
        reset_link: URL completo para resetear contraseña
        user_name: Nombre del usuario

    Returns:
        True si se envió correctamente
    """
    subject = f"Password reset - {settings.APP_NAME}"
    body = f"""
        <p>Hello <strong>{html.escape(user_name)}</strong>,</p>
        <p>We received a request to reset the password of your {settings.APP_NAME} account.</p>
        <div style="text-align: center;">
            <a href="{reset_link}" class="button">Reset Password</a>
        </div>
        <p>Or paste this link in your browser:</p>
        <p style="word-break: break-all; background-color: #eee; padding: 10px;">{reset_link}</p>
        <p class="warning">This link expires in {settings.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES} minutes.</p>
        <hr>
        <p>If you did not request this change you can safely ignore this email.</p>
    """
    return send_email(to_email, subject, _layout("Password Reset", body))


def send_alert_email(to_email: str, alert_name: str, message: str, severity: str) -> bool:
    """Notificación de una alerta de la granja."""
    subject = f"Rabbit Farming Alert: {alert_name}"
    body = f"""
        <p><strong>{html.escape(alert_name)}</strong></p>
        <p>{html.escape(message)}</p>
        <p>Severity: <strong>{html.escape(severity)}</strong></p>
    """
    return send_email(to_email, subject, _layout("Farm Alert", body))
