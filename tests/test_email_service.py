'''
# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# Created Date: Mon Sep 01 2025
# SPDX-License-Identifier: MIT
'''

import asyncio
import unittest
from unittest import mock

from volunteerhub.db import models
from volunteerhub.services.email_service import EmailService


class TestEmailService(unittest.TestCase):
    """
    Test suite for the EmailService class.

    The EmailService instance is created within each test method, after the
    SendGrid client mock is in place.
    """

    user_data = models.User(
        id=1,
        email="jane.doe@example.com",
        first_name="Jane",
        last_name="Doe",
        role=models.Role.VOLUNTEER,
    )
    payload = {
        "title": "Registration approved",
        "body": 'You have been approved to take part in "Beach <Cleanup>"',
        "data": {"type": "REGISTRATION_STATUS_CHANGE", "eventId": 5, "url": "/volunteer/events/5"},
    }

    @mock.patch("volunteerhub.services.email_service.SendGridAPIClient")
    @mock.patch("volunteerhub.services.email_service.Mail")
    def test_send_email_success(self, mock_mail_class, mock_sendgrid_client):
        """
        Test that _send_email builds the message and hands it to SendGrid.
        """
        # Arrange
        email_service = EmailService()
        mock_sg_instance = mock_sendgrid_client.return_value
        mock_sg_instance.send.return_value = mock.MagicMock(status_code=202)

        # Act
        asyncio.run(email_service._send_email("test@example.com", "Test Subject", "Test HTML"))

        # Assert
        mock_mail_class.assert_called_once_with(
            from_email=(email_service.sender_email, email_service.sender_name),
            to_emails="test@example.com",
            subject="Test Subject",
            html_content="Test HTML"
        )
        mock_sg_instance.send.assert_called_once_with(mock_mail_class.return_value)

    @mock.patch("volunteerhub.services.email_service.SendGridAPIClient")
    def test_send_email_failure(self, mock_sendgrid_client):
        """
        Test that _send_email handles exceptions gracefully.
        """
        email_service = EmailService()
        mock_sg_instance = mock_sendgrid_client.return_value
        mock_sg_instance.send.side_effect = Exception("Test exception")

        # The error is logged, not raised
        asyncio.run(email_service._send_email("test@example.com", "Test Subject", "Test HTML"))
        mock_sg_instance.send.assert_called_once()

    @mock.patch("volunteerhub.services.email_service.EmailService._send_email")
    def test_send_notification_email(self, mock_send_email):
        """
        Test that send_notification_email mirrors the payload to the user,
        with the payload text escaped and the deep link included.
        """
        email_service = EmailService()

        asyncio.run(email_service.send_notification_email(self.user_data, self.payload))

        mock_send_email.assert_called_once()
        to_email, subject, html_content = mock_send_email.call_args[0]
        self.assertEqual(to_email, self.user_data.email)
        self.assertEqual(subject, "Registration approved")
        self.assertIn("Hi Jane", html_content)
        self.assertIn("Beach &lt;Cleanup&gt;", html_content)
        self.assertIn('href="/volunteer/events/5"', html_content)

    @mock.patch("volunteerhub.services.email_service.settings")
    def test_enabled_follows_api_key(self, mock_settings):
        mock_settings.sendgrid_api_key = ""
        self.assertFalse(EmailService().enabled)
        mock_settings.sendgrid_api_key = "SG.key"
        self.assertTrue(EmailService().enabled)
