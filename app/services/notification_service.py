# app/services/notification_service.py
import logging
from typing import Optional

from app.models.notification import Notification, NotificationType
from app.models.user import Actor, push_token
from app.services.push_service import PushService

SUMMARY_LENGTH = 50


class NotificationService:
    """
    Shared notification delivery used by the like and comment handlers.

    Writing the notification document is the durable side effect and its
    failures propagate. The push message that follows is best-effort: its
    failures are logged and never reach the caller.
    """
    def __init__(self, store, push_service: PushService):
        self.store = store
        self.push_service = push_service

    def notify(self, recipient_id: Optional[str], actor: Actor, n_type: NotificationType, post_id: str,
               comment_id: Optional[str] = None, post_image_url: Optional[str] = None,
               summary: Optional[str] = None, is_reply: bool = False,
               event_id: Optional[str] = None) -> Optional[Notification]:
        """
        Writes a notification for `recipient_id` and pushes it to their device.

        :param recipient_id: user receiving the notification
        :param actor: user who liked / commented
        :param n_type: NotificationType.LIKE or NotificationType.COMMENT
        :param post_id: post the notification points to
        :param comment_id: comment the notification points to (comments only)
        :param post_image_url: thumbnail shown next to the notification
        :param summary: comment text shown in the push body
        :param is_reply: the comment replies to the recipient's comment
        :param event_id: triggering event id; makes redelivery write the same document
        :return: the created notification, or None if suppressed or already delivered
        """
        if not recipient_id:
            return None
        if recipient_id == actor.id:
            return None  # no self-notifications

        collection = f"users/{recipient_id}/notifications"
        notification_id = event_id.replace('/', '_') if event_id else self.store.new_id(collection)
        notification = Notification(
            id=notification_id,
            type=n_type,
            actor=actor,
            post_id=post_id,
            comment_id=comment_id,
            post_image_url=post_image_url
        )

        created = self.store.create(f"{collection}/{notification_id}",
                                    notification.to_document(self.store.SERVER_TIMESTAMP))
        if not created:
            logging.info(f"Notification {notification_id} for {recipient_id} already exists, skipping push")
            return None
        logging.info(f"{n_type.value} notification created: {actor.id} -> {recipient_id} (post {post_id})")

        title, body = self._message_text(notification, summary, is_reply)
        self._push(recipient_id, notification, title, body)
        return notification

    def _message_text(self, notification: Notification, summary: Optional[str], is_reply: bool):
        name = notification.actor.display_name
        if notification.type is NotificationType.LIKE:
            return "New like", f"{name} liked your post"

        snippet = (summary or "")[:SUMMARY_LENGTH]
        if is_reply:
            body = f"{name} replied to your comment"
        else:
            body = f"{name} commented on your post"
        if snippet:
            body = f"{body}: {snippet}"
        return ("New reply" if is_reply else "New comment"), body

    def _push(self, recipient_id: str, notification: Notification, title: str, body: str) -> None:
        try:
            user_path = f"users/{recipient_id}"
            token = push_token(self.store.get(user_path))
            if token is None:
                logging.debug(f"No push for {recipient_id}: no token or notifications disabled")
                return

            data = {
                'type': notification.type.value,
                'postId': notification.post_id,
                'notificationId': notification.id,
                'commentId': notification.comment_id
            }
            result = self.push_service.send(token, title, body, data, image_url=notification.post_image_url)
            if result.unregistered:
                self.store.update(user_path, {'fcmToken': None})
                logging.info(f"Cleared unregistered FCM token for user {recipient_id}")
        except Exception as e:
            logging.error(f"Push delivery failed for user {recipient_id} "
                          f"(notification {notification.id}): {e}", exc_info=True)
