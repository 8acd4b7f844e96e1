'''
# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# Created Date: Thu Aug 07 2025
# SPDX-License-Identifier: MIT
'''

import logging
from html import escape

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail
from starlette.concurrency import run_in_threadpool

from volunteerhub.config import settings
from volunteerhub.db import models

logger = logging.getLogger(__name__)


class EmailService:
    def __init__(self):
        self.sg = SendGridAPIClient(settings.sendgrid_api_key)
        self.sender_email = settings.mail_sender_email
        self.sender_name = settings.mail_sender_name

    @property
    def enabled(self) -> bool:
        return bool(settings.sendgrid_api_key)

    async def send_notification_email(self, user: models.User, payload: dict):
        """
        Mirrors a push notification payload to the user's inbox.
        """
        title = escape(payload.get("title") or "VolunteerHub notification")
        body = escape(payload.get("body") or "")
        data = payload.get("data") or {}
        link = ""
        if data.get("url"):
            link = f'<p><a href="{escape(data["url"])}">Open in VolunteerHub</a></p>'

        html_content = f"""
        <html>
        <body>
            <p>Hi {escape(user.first_name)},</p>
            <h3>{title}</h3>
            <p>{body}</p>
            {link}
            <p>Best regards,</p>
            <p>{self.sender_name}</p>
        </body>
        </html>
        """
        await self._send_email(user.email, payload.get("title") or "VolunteerHub notification", html_content)

    async def _send_email(self, to_email: str, subject: str, html_content: str):
        """
        Internal helper to send an email using SendGrid.
        """
        message = Mail(
            from_email=(self.sender_email, self.sender_name),
            to_emails=to_email,
            subject=subject,
            html_content=html_content
        )
        try:
            response = await run_in_threadpool(self.sg.send, message)
            logger.info("Email sent to %s. Status Code: %s", to_email, response.status_code)
        except Exception as e:
            logger.error("Error sending email to %s: %s", to_email, e)
