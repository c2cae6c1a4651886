"""
Email gate in front of the revenue predictor.

A syntactically valid address unlocks the calculator. Submitting fires one
best-effort notification to sales in the background; whether it arrives or
not, the address is recorded and the caller is unlocked.
"""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass
from typing import Optional, Protocol

import config as cfg
from notifier import NotificationError
from storage import KeyValueStore

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")


class InvalidEmailError(ValueError):
    """The submitted text is not shaped like local@domain.tld."""


class Notifier(Protocol):
    def send(self, email: str) -> None: ...


@dataclass
class Unlock:
    """Outcome of a successful submission."""

    email: str
    delivery: Optional[threading.Thread] = None   # None when sent inline


def validate_email(email: str) -> bool:
    return bool(EMAIL_RE.fullmatch(email or ""))


class EmailGate:
    def __init__(
        self,
        store: KeyValueStore,
        notifier: Notifier,
        key: str = cfg.STORAGE_KEY,
        background: bool = True,
    ):
        self.store = store
        self.notifier = notifier
        self.key = key
        self.background = background

    def unlocked_email(self) -> Optional[str]:
        """Email recorded by an earlier submission, if any."""
        return self.store.get(self.key) or None

    @property
    def is_unlocked(self) -> bool:
        return self.unlocked_email() is not None

    def submit(self, email: str) -> Unlock:
        """Validate, record, notify (fire-and-forget) and unlock.

        Raises:
            InvalidEmailError: the address is malformed; nothing else happens.
        """
        email = (email or "").strip()
        if not validate_email(email):
            raise InvalidEmailError(cfg.INVALID_EMAIL_MESSAGE)

        # Persisted before any delivery attempt
        self.store.set(self.key, email)
        logger.info(f"Proforma unlocked for {email}")

        delivery = None
        if self.background:
            delivery = threading.Thread(
                target=self._deliver, args=(email,), name="gate-notify", daemon=True,
            )
            delivery.start()
        else:
            self._deliver(email)

        return Unlock(email=email, delivery=delivery)

    def _deliver(self, email: str) -> None:
        try:
            self.notifier.send(email)
        except NotificationError as e:
            # Unlock never depends on the notification channel
            logger.warning(f"Email send failed for {email}: {e}")
