# app/api/posts/services.py
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional

from app.models.event import DocumentEvent
from app.models.post import FanoutResult, build_feed_entry


class FeedFanoutService:
    """
    Copies every new post into the author's feed and each follower's feed.

    Feed entries are written with full-document sets, so a redelivered event
    rewrites the same entries instead of duplicating them.
    """
    def __init__(self, store, batch_size: int = 500, max_concurrent_commits: int = 1):
        """
        :param store: document store (FirestoreStore or compatible)
        :param batch_size: recipients per batch, capped at the store's batch limit
        :param max_concurrent_commits: batch commits in flight; 1 commits sequentially
        """
        self.store = store
        self.batch_size = max(1, min(batch_size, store.MAX_BATCH_SIZE))
        self.max_concurrent_commits = max(1, max_concurrent_commits)

    def on_post_create(self, event: DocumentEvent) -> Optional[FanoutResult]:
        """Handler for documents created at posts/{postId}."""
        post_id = event.params.get('postId')
        post_data = event.after
        if post_data is None:
            logging.warning(f"onPostCreate: no data (event {event.event_id})")
            return None

        author_id = post_data.get('authorId')
        if not author_id:
            # Never valid; retrying cannot fix it.
            logging.warning(f"onPostCreate: post {post_id} missing authorId, skipping fan-out")
            return None

        try:
            self.store.increment(f"users/{author_id}", 'postsCount', 1, event_id=event.event_id)

            feed_entry = build_feed_entry(post_data, post_id)
            recipient_ids = self.get_recipient_ids(author_id)
            chunks = [recipient_ids[i:i + self.batch_size]
                      for i in range(0, len(recipient_ids), self.batch_size)]
            self._commit_chunks(post_id, feed_entry, chunks)

            logging.info(f"onPostCreate: fan-out complete (post {post_id}, author {author_id}, "
                         f"recipients {len(recipient_ids)}, batches {len(chunks)})")
            return FanoutResult(post_id=post_id, recipient_count=len(recipient_ids), batch_count=len(chunks))
        except Exception as e:
            logging.error(f"onPostCreate failed (post {post_id}, author {author_id}): {e}", exc_info=True)
            raise

    def get_recipient_ids(self, author_id: str) -> List[str]:
        """Follower ids in store order without duplicates, followed by the author."""
        seen = set()
        recipient_ids = []
        for follower_id in self.store.list_ids(f"users/{author_id}/followers"):
            if follower_id not in seen:
                seen.add(follower_id)
                recipient_ids.append(follower_id)
        if author_id not in seen:
            recipient_ids.append(author_id)
        return recipient_ids

    def _commit_chunk(self, post_id: str, feed_entry: Dict[str, Any], chunk: List[str]) -> None:
        self.store.batch_write([(f"users/{user_id}/feed/{post_id}", feed_entry) for user_id in chunk])

    def _commit_chunks(self, post_id: str, feed_entry: Dict[str, Any], chunks: List[List[str]]) -> None:
        if self.max_concurrent_commits == 1 or len(chunks) <= 1:
            for chunk in chunks:
                self._commit_chunk(post_id, feed_entry, chunk)
            return

        first_error = None
        workers = min(self.max_concurrent_commits, len(chunks))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix='fanout') as executor:
            futures = [executor.submit(self._commit_chunk, post_id, feed_entry, chunk) for chunk in chunks]
            for future in futures:
                try:
                    future.result()
                except Exception as e:
                    if first_error is None:
                        first_error = e
        if first_error is not None:
            raise first_error
