"""
# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# Created Date: Tue Oct 14 2025
# SPDX-License-Identifier: MIT
"""

import enum
import json
import logging

from pywebpush import WebPushException, webpush
from requests.exceptions import RequestException

from volunteerhub.config import settings
from volunteerhub.db import models

logger = logging.getLogger(__name__)

# Push services answer 404/410 once a subscription has expired or been revoked.
GONE_STATUS_CODES = {404, 410}


class DeliveryResult(str, enum.Enum):
    DELIVERED = "delivered"
    PERMANENT_FAILURE = "permanent_failure"
    TRANSIENT_FAILURE = "transient_failure"


class PushService:
    def __init__(self):
        self.private_key = settings.vapid_private_key
        self.public_key = settings.vapid_public_key
        self.subject = settings.vapid_subject
        self.ttl = settings.push_ttl_seconds

    @property
    def is_configured(self) -> bool:
        return bool(self.private_key and self.public_key)

    def send(self, subscription: models.PushSubscription, payload: dict, urgency: str = "normal") -> DeliveryResult:
        """
        Delivers one payload to one subscription endpoint. Never raises.
        """
        subscription_info = {
            "endpoint": subscription.endpoint,
            "keys": {"p256dh": subscription.p256dh_key, "auth": subscription.auth_key},
        }
        try:
            webpush(
                subscription_info=subscription_info,
                data=json.dumps(payload),
                vapid_private_key=self.private_key,
                vapid_claims={"sub": self.subject},
                ttl=self.ttl,
                headers={"Urgency": urgency},
            )
            return DeliveryResult.DELIVERED
        except WebPushException as e:
            status_code = getattr(e.response, "status_code", None)
            if status_code in GONE_STATUS_CODES:
                logger.info("Push subscription %s is gone (HTTP %s)", subscription.id, status_code)
                return DeliveryResult.PERMANENT_FAILURE
            logger.warning("Failed to send notification to subscription %s: %s", subscription.id, e)
            return DeliveryResult.TRANSIENT_FAILURE
        except RequestException as e:
            logger.warning("Push service unreachable for subscription %s: %s", subscription.id, e)
            return DeliveryResult.TRANSIENT_FAILURE
