"""
Cache facade over Redis.

Call sites use it explicitly instead of decorators, so every cache effect is
visible where it happens:
    get_or_load(id, loader)  read-through: hit returns, miss loads and populates
    put(id, value)           write-through after an update
    evict(id)                drop the entry after a delete

Key format: "{namespace}::{id}", e.g. "products::6630d1f0c2a4e91b2f3c4d5e".
Values are the JSON of a Pydantic model and expire after ttl_seconds.
"""

import logging
from typing import Callable, Generic, Optional, Type, TypeVar

import redis
from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class CacheFacade(Generic[ModelT]):
    """Read-through / write-through cache for one Pydantic model type."""

    def __init__(self, redis_client: redis.Redis, namespace: str, model: Type[ModelT], ttl_seconds: int = 600):
        self.redis = redis_client
        self.namespace = namespace
        self.model = model
        self.ttl_seconds = ttl_seconds

    def key(self, entry_id: str) -> str:
        return f"{self.namespace}::{entry_id}"

    def get(self, entry_id: str) -> Optional[ModelT]:
        cached = self.redis.get(self.key(entry_id))
        if cached is None:
            return None
        try:
            return self.model.model_validate_json(cached)
        except ValidationError:
            # Written by an older model shape; treat as a miss
            logger.warning(f"Dropping unreadable cache entry {self.key(entry_id)}")
            self.redis.delete(self.key(entry_id))
            return None

    def get_or_load(self, entry_id: str, loader: Callable[[], ModelT]) -> ModelT:
        cached = self.get(entry_id)
        if cached is not None:
            return cached
        logger.info(f"Cache miss for {self.key(entry_id)}")
        value = loader()
        self.put(entry_id, value)
        return value

    def put(self, entry_id: str, value: ModelT) -> None:
        self.redis.set(self.key(entry_id), value.model_dump_json(), ex=self.ttl_seconds)

    def evict(self, entry_id: str) -> None:
        self.redis.delete(self.key(entry_id))
