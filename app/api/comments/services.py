# app/api/comments/services.py

import logging
from typing import List, Optional

from app.core.exceptions import DocumentNotFound
from app.models.comment import CommentRemoved, RemovalCause, is_active, parent_id
from app.models.event import DocumentEvent
from app.models.notification import Notification, NotificationType
from app.models.post import first_media_url
from app.models.user import Actor
from app.services.notification_service import NotificationService


class CommentService:
    """
    Comment counters and comment/reply notifications.

    - Top-level comments count in posts/{postId}.commentsCount.
    - Replies (parentCommentId set) count in the parent comment's repliesCount.
    - A comment stops counting once, when it is soft-deleted (isActive -> false)
      or hard-deleted while still active.
    """
    def __init__(self, store, notification_service: NotificationService, count_hard_deletes: bool = True):
        self.store = store
        self.notification_service = notification_service
        self.count_hard_deletes = count_hard_deletes

    def on_comment_create(self, event: DocumentEvent) -> List[Notification]:
        """Handler for documents created at posts/{postId}/comments/{commentId}."""
        post_id = event.params.get('postId')
        comment_id = event.params.get('commentId')
        comment = event.after or {}
        post_path = f"posts/{post_id}"

        if not is_active(comment):
            logging.info(f"onCommentCreate: comment {comment_id} created inactive, not counted")
            return []

        parent_comment_id = parent_id(comment)
        if parent_comment_id:
            try:
                self.store.increment(f"{post_path}/comments/{parent_comment_id}", 'repliesCount', 1,
                                     event_id=event.event_id)
            except DocumentNotFound:
                logging.warning(f"onCommentCreate: parent comment {parent_comment_id} of reply "
                                f"{comment_id} not found, reply not counted")
        else:
            try:
                self.store.increment(post_path, 'commentsCount', 1, event_id=event.event_id)
            except DocumentNotFound:
                logging.warning(f"onCommentCreate: post {post_id} not found, comment {comment_id} not counted")
                return []

        post_data = self.store.get(post_path)
        if post_data is None:
            logging.warning(f"onCommentCreate: post {post_id} not found")
            return []

        actor = Actor.from_comment(comment)
        commenter_id = actor.id
        post_author_id = post_data.get('authorId')
        post_image_url = first_media_url(post_data)
        summary = comment.get('text')
        notifications = []

        # Commenting on your own post notifies nobody about the post itself ...
        notified_post_author = False
        if post_author_id and post_author_id != commenter_id:
            notified_post_author = True
            created = self.notification_service.notify(
                recipient_id=post_author_id, actor=actor, n_type=NotificationType.COMMENT,
                post_id=post_id, comment_id=comment_id, post_image_url=post_image_url,
                summary=summary, event_id=event.event_id
            )
            if created:
                notifications.append(created)

        # ... but replying still notifies the parent comment's author.
        if parent_comment_id:
            parent_author_id = self._comment_author(post_id, parent_comment_id)
            already_notified = notified_post_author and parent_author_id == post_author_id
            if parent_author_id and parent_author_id != commenter_id and not already_notified:
                created = self.notification_service.notify(
                    recipient_id=parent_author_id, actor=actor, n_type=NotificationType.COMMENT,
                    post_id=post_id, comment_id=comment_id, post_image_url=post_image_url,
                    summary=summary, is_reply=True, event_id=event.event_id
                )
                if created:
                    notifications.append(created)

        return notifications

    def on_comment_update(self, event: DocumentEvent) -> Optional[CommentRemoved]:
        """Handler for updates at posts/{postId}/comments/{commentId}; only isActive true -> false counts."""
        if not (is_active(event.before) and not is_active(event.after)):
            return None

        removal = CommentRemoved(
            post_id=event.params.get('postId'),
            comment_id=event.params.get('commentId'),
            parent_comment_id=parent_id(event.after),
            cause=RemovalCause.SOFT
        )
        self.apply_removal(removal, event.event_id)
        return removal

    def on_comment_delete(self, event: DocumentEvent) -> Optional[CommentRemoved]:
        """
        Handler for deletes at posts/{postId}/comments/{commentId}.
        A comment already soft-deleted was decremented then, so only active ones count here.
        """
        comment_id = event.params.get('commentId')
        if not self.count_hard_deletes:
            logging.info(f"onCommentDelete: hard delete of {comment_id} ignored (counting disabled)")
            return None
        if not is_active(event.before):
            return None

        removal = CommentRemoved(
            post_id=event.params.get('postId'),
            comment_id=comment_id,
            parent_comment_id=parent_id(event.before),
            cause=RemovalCause.HARD
        )
        self.apply_removal(removal, event.event_id)
        return removal

    def apply_removal(self, removal: CommentRemoved, event_id: Optional[str] = None) -> bool:
        """Decrements the counter the removed comment was counted in."""
        post_path = f"posts/{removal.post_id}"
        if removal.was_reply:
            path, field = f"{post_path}/comments/{removal.parent_comment_id}", 'repliesCount'
        else:
            path, field = post_path, 'commentsCount'

        try:
            applied = self.store.increment(path, field, -1, event_id=event_id)
        except DocumentNotFound:
            logging.warning(f"Comment {removal.comment_id} removed ({removal.cause.value}) "
                            f"but {path} no longer exists")
            return False
        if applied:
            logging.info(f"Comment {removal.comment_id} removed ({removal.cause.value}): {field} -1 on {path}")
        return applied

    def _comment_author(self, post_id: str, comment_id: str) -> Optional[str]:
        comment = self.store.get(f"posts/{post_id}/comments/{comment_id}")
        if comment is None:
            return None
        return comment.get('authorId')
