# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Outgoing account e-mail (welcome, password reset)."""

from __future__ import annotations

import smtplib
from email.message import EmailMessage

from jinja2 import Environment, PackageLoader, select_autoescape
from markupsafe import Markup

from tourbook.application.interfaces import EmailDeliveryError, EmailSender
from tourbook.domain.users.entities import User
from tourbook.shared.config import EmailConfig
from tourbook.shared.logging import logger

_templates = Environment(
    loader=PackageLoader("tourbook", "templates/emails"),
    autoescape=select_autoescape(["html"]),
)


def first_name(user: User) -> str:
    return user.name.split(" ")[0] if user.name else ""


def render_message(template: str, *, user: User, url: str, subject: str) -> tuple[str, str]:
    context = {"first_name": first_name(user), "url": url, "subject": subject}
    html = _templates.get_template(f"{template}.html").render(**context)
    text = Markup(html).striptags()
    return html, text


class SmtpEmailSender(EmailSender):
    def __init__(self, config: EmailConfig) -> None:
        self._config = config

    def send_welcome(self, user: User, url: str) -> None:
        self._send(user, "welcome", "Welcome to the Tourbook family!", url)

    def send_password_reset(self, user: User, url: str) -> None:
        self._send(user, "password_reset", "Your password reset token (valid for only 10 minutes)", url)

    def _send(self, user: User, template: str, subject: str, url: str) -> None:
        html, text = render_message(template, user=user, url=url, subject=subject)
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self._config.sender
        message["To"] = user.email
        message.set_content(text)
        message.add_alternative(html, subtype="html")

        try:
            with smtplib.SMTP(
                self._config.smtp_host or "localhost",
                self._config.smtp_port,
                timeout=self._config.smtp_timeout,
            ) as smtp:
                if self._config.smtp_use_tls:
                    smtp.starttls()
                if self._config.smtp_username and self._config.smtp_password:
                    smtp.login(self._config.smtp_username, self._config.smtp_password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error(f"email.smtp: send failed template={template}: {exc}")
            raise EmailDeliveryError(str(exc)) from exc

        logger.info(f"email.smtp: sent template={template} user_id={user.id}")


class LoggingEmailSender(EmailSender):
    """Used when no SMTP host is configured; records messages instead of sending."""

    def __init__(self) -> None:
        self.outbox: list[tuple[str, str, str]] = []

    def send_welcome(self, user: User, url: str) -> None:
        self._record(user, "welcome", url)

    def send_password_reset(self, user: User, url: str) -> None:
        self._record(user, "password_reset", url)

    def _record(self, user: User, template: str, url: str) -> None:
        self.outbox.append((user.email, template, url))
        logger.info(f"email.log: template={template} to={user.email} url={url}")


def build_email_sender(config: EmailConfig) -> EmailSender:
    if config.smtp_host:
        return SmtpEmailSender(config)
    logger.warning("email: SMTP_HOST not set, messages are logged only")
    return LoggingEmailSender()


__all__ = ["LoggingEmailSender", "SmtpEmailSender", "build_email_sender", "render_message"]
