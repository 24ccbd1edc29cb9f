# app/services/push_service.py
"""Firebase Cloud Messaging delivery for Kissangram notifications."""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from firebase_admin import exceptions as firebase_exceptions
from firebase_admin import messaging


@dataclass
class PushResult:
    """
    Outcome of one push attempt. Push is best-effort: callers inspect this
    instead of catching exceptions.
    """
    ok: bool
    message_id: Optional[str] = None
    error: Optional[str] = None
    # The device token is permanently invalid and should be dropped.
    unregistered: bool = False
    skipped: bool = False


class PushService:
    """
    Sends push messages to single devices.

    :param sender: callable taking a `messaging.Message` and returning a message id;
                   defaults to `firebase_admin.messaging.send`
    :param enabled: when False every send is skipped (PUSH_ENABLED)
    """

    def __init__(self, sender: Optional[Callable[[messaging.Message], str]] = None, enabled: bool = True):
        self._send = sender or messaging.send
        self.enabled = enabled
        self._lock = threading.Lock()
        self._stats = {'sent': 0, 'failed': 0, 'skipped': 0}

    @property
    def stats(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._stats)

    def _count(self, key: str) -> None:
        with self._lock:
            self._stats[key] += 1

    def _build_message(self, token: str, title: str, body: str, data: Optional[Dict[str, str]] = None,
                       image_url: Optional[str] = None) -> messaging.Message:
        """Message with Android and APNS (iOS) config."""
        android_config = messaging.AndroidConfig(
            priority='high',
            notification=messaging.AndroidNotification(
                title=title,
                body=body,
                sound='default',
                channel_id='kissangram_notifications',
                image=image_url,
            ),
        )
        apns_config = messaging.APNSConfig(
            payload=messaging.APNSPayload(
                aps=messaging.Aps(
                    alert=messaging.ApsAlert(title=title, body=body),
                    sound='default',
                    mutable_content=True,
                ),
            ),
        )
        return messaging.Message(
            notification=messaging.Notification(title=title, body=body, image=image_url),
            android=android_config,
            apns=apns_config,
            # FCM data payloads only accept string values.
            data={k: str(v) for k, v in (data or {}).items() if v is not None},
            token=token,
        )

    def send(self, token: str, title: str, body: str, data: Optional[Dict[str, str]] = None,
             image_url: Optional[str] = None) -> PushResult:
        if not self.enabled:
            self._count('skipped')
            return PushResult(ok=False, skipped=True, error='push disabled')

        try:
            message = self._build_message(token, title, body, data, image_url)
            message_id = self._send(message)
            self._count('sent')
            logging.info(f"FCM sent to token={token[:20]}...: message_id={message_id}")
            return PushResult(ok=True, message_id=message_id)

        except (messaging.UnregisteredError, messaging.SenderIdMismatchError) as e:
            self._count('failed')
            logging.warning(f"FCM token unregistered: {token[:20]}... ({e})")
            return PushResult(ok=False, error=str(e), unregistered=True)
        except firebase_exceptions.InvalidArgumentError as e:
            self._count('failed')
            logging.warning(f"FCM rejected token {token[:20]}... as invalid: {e}")
            return PushResult(ok=False, error=str(e), unregistered=True)
        except Exception as e:
            self._count('failed')
            logging.error(f"FCM send failed for token={token[:20]}...: {e}", exc_info=True)
            return PushResult(ok=False, error=str(e))
