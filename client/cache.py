"""
Question cache.

The full, unfiltered question set is kept in a device-local key/value
store together with the time it was written. It is reused for as long as
the server's ``metadata/questions.lastUpdated`` marker is not newer than
that time; otherwise the set is refetched and the snapshot replaced
wholesale. When the network is unavailable the controller falls back to
the snapshot, then to the bundled sample questions.
"""
import json
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from pydantic import ValidationError as PydanticValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from core.exceptions import QuizError
from core.logger import logger
from data.sample_questions import sample_questions
from schemas.question import COMMON_SECTION, coerce_int, parse_question
from utils.timeutil import now_ms

QUESTIONS_META_KEY = "questions"


class MemorySnapshotStore:
    """Process-local store, used in tests and single-run tools."""

    def __init__(self):
        self._items = {}

    async def get(self, key: str) -> Optional[str]:
        return self._items.get(key)

    async def set(self, key: str, value: str) -> None:
        self._items[key] = value


class RedisSnapshotStore:
    def __init__(self, redis: Redis):
        self.redis = redis

    @classmethod
    def from_url(cls, url: str) -> "RedisSnapshotStore":
        return cls(Redis.from_url(url, decode_responses=True))

    async def close(self):
        await self.redis.aclose()

    async def get(self, key: str) -> Optional[str]:
        return await self.redis.get(key)

    async def set(self, key: str, value: str) -> None:
        await self.redis.set(key, value)


@dataclass
class Snapshot:
    data: list
    timestamp: int


@dataclass
class LoadResult:
    questions: list
    source: str  # remote, cache, snapshot, defaults
    # Set when a forced refresh could not reach the server
    degraded: bool = False
    last_updated: Optional[int] = field(default=None, repr=False)


def filter_for_section(questions: list, section: str) -> list:
    return [q for q in questions if q.section == section or q.section == COMMON_SECTION]


def renumber(questions: list) -> list:
    """Stable sort by stored order, then number 1..N. Returns copies."""
    ordered = sorted(questions, key=lambda q: q.order)
    return [q.model_copy(update={"order": i}) for i, q in enumerate(ordered, 1)]


def parse_items(items: list) -> list:
    questions = []
    for item in items or []:
        try:
            questions.append(parse_question(item))
        except PydanticValidationError as e:
            logger.warning("Skipping malformed question", question_id=(item or {}).get("id"), errors=e.error_count())
    return questions


def prepare(items: list, section: str) -> list:
    return renumber(filter_for_section(parse_items(items), section))


class QuestionCacheController:
    def __init__(
        self,
        api,
        store,
        cache_key: str = "cached_questions_v3",
        clock: Callable[[], int] = now_ms,
        defaults: Callable[[], list] = sample_questions,
    ):
        self.api = api
        self.store = store
        self.cache_key = cache_key
        self.clock = clock
        self.defaults = defaults

    async def read_snapshot(self) -> Optional[Snapshot]:
        try:
            raw = await self.store.get(self.cache_key)
        except (RedisError, OSError) as e:
            logger.warning("Question snapshot store unavailable", key=self.cache_key, error=str(e))
            return None
        if not raw:
            return None
        try:
            payload = json.loads(raw)
            return Snapshot(data=list(payload["data"]), timestamp=int(payload["timestamp"]))
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("Ignoring corrupt question snapshot", key=self.cache_key, error=str(e))
            return None

    async def write_snapshot(self, items: list) -> Optional[Snapshot]:
        snapshot = Snapshot(data=items, timestamp=self.clock())
        try:
            await self.store.set(self.cache_key, json.dumps({"data": snapshot.data, "timestamp": snapshot.timestamp}))
        except (RedisError, OSError) as e:
            logger.warning("Could not save question snapshot", key=self.cache_key, error=str(e))
            return None
        return snapshot

    async def fetch_last_updated(self) -> Optional[int]:
        """Server marker, or None when it cannot be read."""
        try:
            meta = await self.api.get_metadata(QUESTIONS_META_KEY)
        except (QuizError, ValueError) as e:
            logger.warning("Could not read questions metadata", error=str(e))
            return None
        if not isinstance(meta, dict) or meta.get("lastUpdated") is None:
            return None
        return coerce_int(meta["lastUpdated"])

    async def load(self, section: str, force_refresh: bool = False) -> LoadResult:
        # 1. Staleness marker
        last_updated = await self.fetch_last_updated()

        # 2. Cached snapshot, if still fresh
        snapshot = await self.read_snapshot()
        if not force_refresh and snapshot and (last_updated is None or last_updated <= snapshot.timestamp):
            logger.debug("Using cached questions", cached_at=snapshot.timestamp, last_updated=last_updated)
            return LoadResult(prepare(snapshot.data, section), source="cache", last_updated=last_updated)

        # 3. Refetch
        try:
            items = await self.api.get_questions()
        except (QuizError, ValueError) as e:
            return self._fallback(snapshot, section, force_refresh, e)

        if not items:
            # Not cached, so every load keeps falling through to the bundled set
            logger.info("No questions on the server, using bundled set")
            return LoadResult(prepare(self.defaults(), section), source="defaults", last_updated=last_updated)

        await self.write_snapshot(items)
        logger.info("Questions refreshed", count=len(items), section=section)
        return LoadResult(prepare(items, section), source="remote", last_updated=last_updated)

    def _fallback(self, snapshot: Optional[Snapshot], section: str, force_refresh: bool, error: Exception) -> LoadResult:
        # 4. Snapshot, then bundled defaults
        if force_refresh:
            logger.warning("Forced question refresh failed", error=str(error))
        else:
            logger.debug("Question fetch failed, falling back", error=str(error))

        if snapshot:
            return LoadResult(prepare(snapshot.data, section), source="snapshot", degraded=force_refresh)
        return LoadResult(prepare(self.defaults(), section), source="defaults", degraded=force_refresh)
