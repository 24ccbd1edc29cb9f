# app/api/reconcile/services.py
import logging
from typing import Any, Dict, Optional

from app.core.exceptions import DocumentNotFound
from app.models.comment import is_active, parent_id
from app.utils.datetime_utils import DateTimeUtils


class ReconcileService:
    """
    Recomputes engagement counters from their source-of-truth subcollections.

    Backstop for increments lost to partial failures or skipped deliveries.
    Counters are overwritten with the recount, so an increment landing while
    a recount runs can be lost until the next reconcile.
    """
    def __init__(self, store):
        self.store = store

    def reconcile_post(self, post_id: str) -> Optional[Dict[str, Any]]:
        """
        Recounts likesCount and commentsCount on the post and repliesCount on
        each of its comments.

        :return: the recounted values, or None if the post does not exist
        """
        post_path = f"posts/{post_id}"
        post_data = self.store.get(post_path)
        if post_data is None:
            return None

        likes_count = self.store.count(f"{post_path}/likes")

        comments_count = 0
        replies_by_parent: Dict[str, int] = {}
        stored_replies: Dict[str, int] = {}
        for comment_id, comment in self.store.stream(f"{post_path}/comments"):
            stored_replies[comment_id] = comment.get('repliesCount', 0)
            if not is_active(comment):
                continue
            parent_comment_id = parent_id(comment)
            if parent_comment_id:
                replies_by_parent[parent_comment_id] = replies_by_parent.get(parent_comment_id, 0) + 1
            else:
                comments_count += 1

        self.store.update(post_path, {'likesCount': likes_count, 'commentsCount': comments_count})

        corrected_replies = {}
        for comment_id, stored in stored_replies.items():
            actual = replies_by_parent.get(comment_id, 0)
            if stored == actual:
                continue
            try:
                self.store.update(f"{post_path}/comments/{comment_id}", {'repliesCount': actual})
                corrected_replies[comment_id] = actual
            except DocumentNotFound:
                logging.warning(f"Reconcile: comment {comment_id} deleted during recount of post {post_id}")

        logging.info(f"Reconciled post {post_id}: likes {post_data.get('likesCount')} -> {likes_count}, "
                     f"comments {post_data.get('commentsCount')} -> {comments_count}, "
                     f"{len(corrected_replies)} reply counters corrected")
        return {
            'post_id': post_id,
            'likes_count': likes_count,
            'comments_count': comments_count,
            'corrected_replies': corrected_replies,
            'reconciled_at': DateTimeUtils.now()
        }

    def reconcile_user_posts(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Recounts users/{userId}.postsCount from posts authored by the user."""
        user_path = f"users/{user_id}"
        user_data = self.store.get(user_path)
        if user_data is None:
            return None

        posts_count = self.store.count('posts', where=[('authorId', '==', user_id)])
        self.store.update(user_path, {'postsCount': posts_count})
        logging.info(f"Reconciled user {user_id}: postsCount {user_data.get('postsCount')} -> {posts_count}")
        return {
            'user_id': user_id,
            'posts_count': posts_count,
            'reconciled_at': DateTimeUtils.now()
        }
