"""
Hashtag Set Service - custom hashtag sets saved from the hashtag generator
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..db.models import HashtagSet, User
from ..exceptions import NotFoundError

logger = logging.getLogger(__name__)

SET_FIELDS = ("name", "description", "hashtags", "platform", "category", "tags", "is_public")


def serialize_hashtag_set(hashtag_set: HashtagSet) -> Dict[str, Any]:
    return {
        "id": hashtag_set.id,
        "name": hashtag_set.name,
        "description": hashtag_set.description,
        "hashtags": list(hashtag_set.hashtags or []),
        "platform": hashtag_set.platform,
        "category": hashtag_set.category,
        "tags": list(hashtag_set.tags or []),
        "is_public": hashtag_set.is_public,
        "created_at": hashtag_set.created_at.isoformat() if hashtag_set.created_at else None,
        "updated_at": hashtag_set.updated_at.isoformat() if hashtag_set.updated_at else None,
    }


class HashtagSetService:
    def __init__(self, db: Session):
        self.db = db

    def _get(self, user: User, set_id: int) -> HashtagSet:
        hashtag_set = self.db.query(HashtagSet).filter(
            HashtagSet.id == set_id,
            HashtagSet.user_id == user.id,
        ).first()
        if hashtag_set is None:
            raise NotFoundError("Hashtag set not found")
        return hashtag_set

    def create_set(self, user: User, data: Dict[str, Any]) -> Dict[str, Any]:
        hashtag_set = HashtagSet(user_id=user.id, **{field: data.get(field) for field in SET_FIELDS})
        if hashtag_set.tags is None:
            hashtag_set.tags = []
        self.db.add(hashtag_set)
        self.db.commit()
        self.db.refresh(hashtag_set)

        logger.info(f"User {user.id} saved hashtag set {hashtag_set.id} ({len(hashtag_set.hashtags)} hashtags)")
        return serialize_hashtag_set(hashtag_set)

    def list_sets(
        self,
        user: User,
        category: Optional[str] = None,
        platform: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        """The user's sets, most recently updated first; "all" disables a filter"""
        query = self.db.query(HashtagSet).filter(HashtagSet.user_id == user.id)
        if category and category != "all":
            query = query.filter(HashtagSet.category == category)
        if platform and platform != "all":
            query = query.filter(HashtagSet.platform == platform)

        sets = (
            query.order_by(HashtagSet.updated_at.desc(), HashtagSet.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [serialize_hashtag_set(s) for s in sets]

    def get_set(self, user: User, set_id: int) -> Dict[str, Any]:
        return serialize_hashtag_set(self._get(user, set_id))

    def replace_set(self, user: User, set_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        hashtag_set = self._get(user, set_id)
        for field in SET_FIELDS:
            setattr(hashtag_set, field, data.get(field))
        if hashtag_set.tags is None:
            hashtag_set.tags = []
        hashtag_set.updated_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(hashtag_set)
        return serialize_hashtag_set(hashtag_set)

    def delete_set(self, user: User, set_id: int) -> None:
        hashtag_set = self._get(user, set_id)
        self.db.delete(hashtag_set)
        self.db.commit()
