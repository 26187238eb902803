"""Farmer community forum: posts, likes and comments."""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from app.domain.exceptions import NotFoundError, ValidationError
from app.enums import PostCategory
from app.utils.persistent_store import KeyValueStore
from app.utils.time import Clock, coerce_datetime, to_utc_iso, utc_now

logger = logging.getLogger(__name__)

POSTS_KEY = "aquawise_community_posts"
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class CommunityService:
    def __init__(self, store: KeyValueStore, *, clock: Clock = utc_now) -> None:
        self._store = store
        self._clock = clock

    def _load_posts(self) -> List[Dict[str, Any]]:
        data = self._store.load(POSTS_KEY, [])
        if not isinstance(data, list):
            logger.warning("Ignoring malformed community posts document")
            return []
        return [p for p in data if isinstance(p, dict)]

    def create_post(
        self,
        *,
        farmer_id: str,
        farmer_name: str,
        location: str,
        title: str,
        content: str,
        category: str,
        tags: Optional[List[str]] = None,
        images: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        try:
            category = PostCategory(category).value
        except ValueError:
            raise ValidationError(f"Unknown post category: {category}") from None
        if not title.strip() or not content.strip():
            raise ValidationError("title and content are required")

        now = to_utc_iso(self._clock())
        post = {
            "id": uuid.uuid4().hex,
            "farmer_id": farmer_id,
            "farmer_name": farmer_name,
            "location": location,
            "title": title,
            "content": content,
            "category": category,
            "tags": list(tags or []),
            "images": list(images or []),
            "likes": 0,
            "comments": [],
            "created_at": now,
            "updated_at": now,
        }
        posts = self._load_posts()
        posts.insert(0, post)
        self._store.save(POSTS_KEY, posts)
        logger.debug("Community post %s created by %s", post["id"], farmer_id)
        return post

    def get_all_posts(self, category: Optional[str] = None, location: Optional[str] = None) -> List[Dict[str, Any]]:
        """Posts newest first; ``None`` or ``"all"`` disables a filter."""
        posts = self._load_posts()
        if category and category != "all":
            posts = [p for p in posts if p.get("category") == category]
        if location and location != "all":
            posts = [p for p in posts if p.get("location") == location]
        return sorted(posts, key=_created_at, reverse=True)

    def search_posts(self, query: str) -> List[Dict[str, Any]]:
        term = query.lower()
        return [
            p
            for p in self.get_all_posts()
            if term in p.get("title", "").lower()
            or term in p.get("content", "").lower()
            or term in p.get("farmer_name", "").lower()
            or any(term in tag.lower() for tag in p.get("tags", []))
        ]

    def get_post(self, post_id: str) -> Optional[Dict[str, Any]]:
        return next((p for p in self._load_posts() if p.get("id") == post_id), None)

    def like_post(self, post_id: str) -> Dict[str, Any]:
        return self._update_post(post_id, lambda post: post.update(likes=int(post.get("likes", 0)) + 1))

    def add_comment(self, post_id: str, *, farmer_id: str, farmer_name: str, content: str) -> Dict[str, Any]:
        if not content.strip():
            raise ValidationError("comment content is required")
        comment = {
            "id": uuid.uuid4().hex,
            "farmer_id": farmer_id,
            "farmer_name": farmer_name,
            "content": content,
            "likes": 0,
            "created_at": to_utc_iso(self._clock()),
        }
        self._update_post(post_id, lambda post: post.setdefault("comments", []).append(comment))
        return comment

    def _update_post(self, post_id: str, change) -> Dict[str, Any]:
        posts = self._load_posts()
        for post in posts:
            if post.get("id") == post_id:
                change(post)
                post["updated_at"] = to_utc_iso(self._clock())
                self._store.save(POSTS_KEY, posts)
                return post
        raise NotFoundError(f"Community post {post_id} not found")


def _created_at(post: Dict[str, Any]) -> datetime:
    return coerce_datetime(post.get("created_at")) or _EPOCH
