"""Named JSON records behind a synchronous get/set interface.

Read and write failures are logged and treated as "no record" / no-op so a
broken backend never takes the caller down with it.
"""

from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

import redis

from georoute.core.config import Settings, settings

logger = logging.getLogger(__name__)

PINNED_LOCATIONS = "pinned_locations"
SAVED_LOCATIONS = "saved_locations"
SAVED_ROUTES = "saved_routes"
SPEED_SETTINGS = "speed_settings"
COST_SETTINGS = "cost_settings"
MAP_STYLE = "map_style"

_RECORD_NAME_RE = re.compile(r"^[a-z0-9_-]+$")


class RecordStore(ABC):
    @abstractmethod
    def get(self, name: str, default: Any = None) -> Any:
        ...

    @abstractmethod
    def set(self, name: str, value: Any) -> bool:
        ...

    @abstractmethod
    def delete(self, name: str) -> bool:
        ...


class MemoryRecordStore(RecordStore):
    def __init__(self) -> None:
        self._records: Dict[str, str] = {}

    def get(self, name: str, default: Any = None) -> Any:
        raw = self._records.get(name)
        if raw is None:
            return default
        return json.loads(raw)

    def set(self, name: str, value: Any) -> bool:
        try:
            self._records[name] = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            logger.warning("Failed to serialise record %s: %s", name, exc)
            return False
        return True

    def delete(self, name: str) -> bool:
        return self._records.pop(name, None) is not None


class JsonFileRecordStore(RecordStore):
    """One ``<name>.json`` file per record inside ``directory``."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def _path(self, name: str) -> Path:
        if not _RECORD_NAME_RE.match(name):
            raise ValueError(f"Invalid record name: {name!r}")
        return self.directory / f"{name}.json"

    def get(self, name: str, default: Any = None) -> Any:
        path = self._path(name)
        if not path.exists():
            return default
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Failed to load record %s from %s: %s", name, path, exc)
            return default

    def set(self, name: str, value: Any) -> bool:
        path = self._path(name)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(value, ensure_ascii=False, indent=2), encoding="utf-8")
            tmp_path.replace(path)
        except (OSError, TypeError, ValueError) as exc:
            logger.warning("Failed to persist record %s to %s: %s", name, path, exc)
            return False
        return True

    def delete(self, name: str) -> bool:
        try:
            self._path(name).unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            logger.warning("Failed to delete record %s: %s", name, exc)
            return False
        return True


class RedisRecordStore(RecordStore):
    def __init__(self, url: str, prefix: str = "georoute:record:") -> None:
        self.url = url
        self.prefix = prefix
        self._redis: Optional[redis.Redis] = None

    def _get_client(self) -> redis.Redis:
        if self._redis is None:
            self._redis = redis.Redis.from_url(self.url, encoding="utf-8", decode_responses=True)
            logger.info("Record store connected to Redis")
        return self._redis

    def _key(self, name: str) -> str:
        return f"{self.prefix}{name}"

    def get(self, name: str, default: Any = None) -> Any:
        try:
            raw = self._get_client().get(self._key(name))
        except redis.RedisError as exc:
            logger.warning("Failed to load record %s: %s", name, exc)
            self._redis = None
            return default
        if not raw:
            return default
        try:
            return json.loads(raw)
        except ValueError as exc:
            logger.warning("Corrupt record %s in Redis: %s", name, exc)
            return default

    def set(self, name: str, value: Any) -> bool:
        try:
            payload = json.dumps(value, ensure_ascii=False)
            self._get_client().set(self._key(name), payload)
        except (TypeError, ValueError) as exc:
            logger.warning("Failed to serialise record %s: %s", name, exc)
            return False
        except redis.RedisError as exc:
            logger.warning("Failed to persist record %s: %s", name, exc)
            self._redis = None
            return False
        return True

    def delete(self, name: str) -> bool:
        try:
            return bool(self._get_client().delete(self._key(name)))
        except redis.RedisError as exc:
            logger.warning("Failed to delete record %s: %s", name, exc)
            self._redis = None
            return False


def build_record_store(config: Settings = settings) -> RecordStore:
    if config.STORAGE_BACKEND == "redis":
        return RedisRecordStore(config.REDIS_URL)
    if config.STORAGE_BACKEND == "memory":
        return MemoryRecordStore()
    return JsonFileRecordStore(config.STORAGE_DIR)


record_store = build_record_store()
