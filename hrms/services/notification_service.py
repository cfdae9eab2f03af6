"""알림 서비스 — 이메일 템플릿 렌더링 및 발송.

Notification Service — Renders the transactional email templates and hands
them to the injected sender. Called after the request transaction commits.
"""

from hrms.config import settings
from hrms.utils.email import EmailSender

_LAYOUT = """\
<!DOCTYPE html>
<html>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
  <div style="background: #1f4e79; padding: 16px; text-align: center;">
    <h1 style="color: white; margin: 0;">{title}</h1>
  </div>
  <div style="background-color: #f9f9f9; padding: 20px;">
    {body}
  </div>
  <p style="text-align: center; color: #888; font-size: 0.8em;">This is an automated message, please do not reply.</p>
</body>
</html>
"""


def _render(title: str, body: str) -> str:
    return _LAYOUT.format(title=title, body=body)


class NotificationService:
    """트랜잭션 이메일 발송 (Transactional email notifications)."""

    async def send_verification_email(self, mailer: EmailSender, to: str, code: str) -> None:
        body = (
            "<p>Thank you for signing up. Your verification code is:</p>"
            f'<p style="font-size: 32px; font-weight: bold; letter-spacing: 5px; text-align: center;">{code}</p>'
            f"<p>The code expires in {settings.VERIFICATION_CODE_EXPIRE_MINUTES} minutes.</p>"
        )
        await mailer.send(to, "Verify your email", _render("Verify Your Email", body))

    async def send_welcome_email(self, mailer: EmailSender, to: str, name: str) -> None:
        body = f"<p>Hello {name},</p><p>Your email is verified and your account is ready.</p>"
        await mailer.send(to, f"Welcome to {settings.APP_NAME}", _render("Welcome", body))

    async def send_login_alert_email(self, mailer: EmailSender, to: str, name: str, ip_address: str | None) -> None:
        where: str = f" from {ip_address}" if ip_address else ""
        body = (
            f"<p>Hello {name},</p>"
            f"<p>Your account was just signed in{where}.</p>"
            "<p>If this was not you, reset your password immediately.</p>"
        )
        await mailer.send(to, "New sign-in to your account", _render("New Sign-in", body))

    async def send_password_reset_email(self, mailer: EmailSender, to: str, token: str) -> None:
        reset_url = f"{settings.CLIENT_URL}/reset-password/{token}"
        body = (
            "<p>We received a request to reset your password.</p>"
            f'<p style="text-align: center;"><a href="{reset_url}">Reset Password</a></p>'
            f"<p>This link expires in {settings.PASSWORD_RESET_EXPIRE_HOURS} hour(s).</p>"
        )
        await mailer.send(to, "Reset your password", _render("Password Reset", body))

    async def send_reset_success_email(self, mailer: EmailSender, to: str) -> None:
        body = "<p>Your password has been reset successfully.</p><p>If you did not do this, contact support.</p>"
        await mailer.send(to, "Password Reset Successful", _render("Password Reset Successful", body))

    async def send_invitation_email(
        self,
        mailer: EmailSender,
        to: str,
        token: str,
        organization_name: str,
    ) -> None:
        accept_url = f"{settings.CLIENT_URL}/accept-invitation?token={token}"
        body = (
            f"<p>You have been invited to join <strong>{organization_name}</strong>.</p>"
            f'<p style="text-align: center;"><a href="{accept_url}">Accept Invitation</a></p>'
            f"<p>This invitation expires in {settings.INVITATION_EXPIRE_DAYS} days.</p>"
        )
        await mailer.send(to, f"Invitation to join {organization_name}", _render("You're Invited", body))


# 싱글턴 인스턴스 (Singleton instance)
notification_service: NotificationService = NotificationService()
