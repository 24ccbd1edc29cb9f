# app/api/likes/services.py
import logging
from typing import Optional

from app.core.exceptions import DocumentNotFound
from app.models.event import DocumentEvent
from app.models.notification import Notification, NotificationType
from app.models.post import first_media_url
from app.models.user import Actor
from app.services.notification_service import NotificationService


class LikeService:
    """
    Keeps posts/{postId}.likesCount paired with like documents and notifies
    the post author about new likes.

    Like documents are keyed by the liker's user id, so one user can only
    hold one like per post.
    """
    def __init__(self, store, notification_service: NotificationService):
        self.store = store
        self.notification_service = notification_service

    def on_like_create(self, event: DocumentEvent) -> Optional[Notification]:
        """Handler for documents created at posts/{postId}/likes/{userId}."""
        post_id = event.params.get('postId')
        user_id = event.params.get('userId')
        post_path = f"posts/{post_id}"

        try:
            self.store.increment(post_path, 'likesCount', 1, event_id=event.event_id)
        except DocumentNotFound:
            logging.warning(f"onLikeCreate: post {post_id} not found, like by {user_id} not counted")
            return None

        post_data = self.store.get(post_path)
        if post_data is None:
            logging.warning(f"onLikeCreate: post {post_id} not found after increment")
            return None

        author_id = post_data.get('authorId')
        if not author_id or author_id == user_id:
            return None  # self-like: counted, not notified

        actor = Actor.from_like(user_id, event.after or {})
        if not actor.name:
            user_data = self.store.get(f"users/{user_id}")
            if user_data:
                actor = Actor.from_user(user_id, user_data)

        return self.notification_service.notify(
            recipient_id=author_id,
            actor=actor,
            n_type=NotificationType.LIKE,
            post_id=post_id,
            post_image_url=first_media_url(post_data),
            event_id=event.event_id
        )

    def on_like_delete(self, event: DocumentEvent) -> None:
        """Handler for documents deleted at posts/{postId}/likes/{userId}. Notifications are not retracted."""
        post_id = event.params.get('postId')
        user_id = event.params.get('userId')
        try:
            self.store.increment(f"posts/{post_id}", 'likesCount', -1, event_id=event.event_id)
        except DocumentNotFound:
            logging.warning(f"onLikeDelete: post {post_id} not found, unlike by {user_id} not counted")
