"""이메일 발송 유틸리티 — SMTP (aiosmtplib).

Outbound email over SMTP with aiosmtplib. The sender is constructed from
settings and injected through ``get_mailer`` so tests can swap in a fake.
"""

import logging
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import aiosmtplib

from hrms.config import settings
from hrms.utils.exceptions import NotificationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SMTPConfig:
    host: str
    port: int
    username: str
    password: str
    from_email: str
    from_name: str


class EmailSender:
    """SMTP 이메일 발송기.

    Sends multipart HTML mail. With no SMTP user configured the message is
    logged instead of sent (local development).
    """

    def __init__(self, config: SMTPConfig) -> None:
        self._config: SMTPConfig = config

    @property
    def is_configured(self) -> bool:
        return bool(self._config.username)

    async def send(self, to: str, subject: str, html: str, text: str | None = None) -> None:
        """이메일 발송.

        Args:
            to: 수신자 이메일 주소 (Recipient address)
            subject: 제목 (Subject line)
            html: HTML 본문 (HTML body)
            text: 플레인텍스트 본문, 선택 (Optional plain-text alternative)

        Raises:
            NotificationError: SMTP 전송 실패 (SMTP delivery failed)
        """
        if not self.is_configured:
            logger.info("SMTP not configured; skipping email to=%s subject=%s", to, subject)
            return

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self._config.from_name} <{self._config.from_email or self._config.username}>"
        msg["To"] = to

        if text:
            msg.attach(MIMEText(text, "plain", "utf-8"))
        msg.attach(MIMEText(html, "html", "utf-8"))

        try:
            await aiosmtplib.send(
                msg,
                hostname=self._config.host,
                port=self._config.port,
                username=self._config.username,
                password=self._config.password,
                start_tls=True,
            )
        except aiosmtplib.SMTPException as exc:
            logger.error("Email delivery failed to=%s subject=%s: %s", to, subject, exc)
            raise NotificationError(f"Error sending email: {exc}") from exc

        logger.info("Email sent to=%s subject=%s", to, subject)


def get_mailer() -> EmailSender:
    """설정 기반 발송기 의존성 (FastAPI dependency building the sender from settings)."""
    return EmailSender(
        SMTPConfig(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            from_email=settings.SMTP_FROM_EMAIL,
            from_name=settings.SMTP_FROM_NAME,
        )
    )
