"""
EmailJS notifier: tells the sales inbox that someone unlocked the proforma.

Uses the EmailJS REST endpoint, which takes the same four values as the
browser SDK (service id, template id, public key, template params).
"""

import logging
from typing import Dict

import requests

import config as cfg

logger = logging.getLogger(__name__)


class NotificationError(RuntimeError):
    """The notification could not be delivered."""


def build_template_params(email: str) -> Dict[str, str]:
    return {
        "from_name": cfg.NOTIFY_FROM_NAME,
        "from_email": email,
        "to_name": cfg.NOTIFY_TO_NAME,
        "message": cfg.NOTIFY_MESSAGE.format(email=email),
        "reply_to": email,
    }


class EmailJSNotifier:
    """Send one templated email per call through EmailJS."""

    def __init__(
        self,
        service_id: str = cfg.EMAILJS_SERVICE_ID,
        template_id: str = cfg.EMAILJS_TEMPLATE_ID,
        public_key: str = cfg.EMAILJS_PUBLIC_KEY,
        url: str = cfg.EMAILJS_SEND_URL,
        timeout: float = cfg.EMAILJS_TIMEOUT,
    ):
        self.service_id = service_id
        self.template_id = template_id
        self.public_key = public_key
        self.url = url
        self.timeout = timeout

    def send(self, email: str) -> None:
        """Deliver the access-request notification for ``email``.

        Raises:
            NotificationError: on transport failure or a non-2xx reply.
        """
        payload = {
            "service_id": self.service_id,
            "template_id": self.template_id,
            "user_id": self.public_key,
            "template_params": build_template_params(email),
        }
        logger.debug(f"Sending EmailJS notification for {email}")
        try:
            response = requests.post(self.url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise NotificationError(f"EmailJS request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise NotificationError(
                f"EmailJS returned {response.status_code}: {response.text[:200]}"
            )
