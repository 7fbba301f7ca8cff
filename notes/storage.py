"""Key-value storage for the notes mirror.

Backends are plain key/string stores that raise on failure. The
``StorageAdapter`` wraps one of them with JSON encoding and absorbs every
failure: reads degrade to ``None`` and writes to no-ops, so the notes
keep working when the store is missing, full, or holds garbage.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

import redis
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url

from notes.config import Settings
from notes.metrics import STORAGE_OPERATIONS

logger = logging.getLogger(__name__)

DEFAULT_REDIS_PREFIX = "notes:"

_CREATE_TABLE_STMT = (
    "CREATE TABLE IF NOT EXISTS kv_store ("
    "key VARCHAR(255) PRIMARY KEY, "
    "value TEXT NOT NULL)"
)
_SELECT_STMT = "SELECT value FROM kv_store WHERE key = :key"
_UPSERT_STMT = (
    "INSERT INTO kv_store (key, value) VALUES (:key, :value) "
    "ON CONFLICT (key) DO UPDATE SET value = excluded.value"
)
_DELETE_STMT = "DELETE FROM kv_store WHERE key = :key"


class StorageError(Exception):
    """Base class for backend failures."""


class StorageUnavailableError(StorageError):
    """The backend cannot be reached or was never connected."""


class StorageQuotaExceeded(StorageError):
    """The value does not fit in the backend's quota."""


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------


class KeyValueBackend(ABC):
    """String-keyed store of string values."""

    @property
    def available(self) -> bool:
        return True

    @abstractmethod
    def get(self, key: str) -> Optional[str]: ...

    @abstractmethod
    def set(self, key: str, value: str) -> None: ...

    @abstractmethod
    def delete(self, key: str) -> None: ...


class NullBackend(KeyValueBackend):
    """A store that is never there."""

    @property
    def available(self) -> bool:
        return False

    def get(self, key: str) -> Optional[str]:
        raise StorageUnavailableError("no storage configured")

    def set(self, key: str, value: str) -> None:
        raise StorageUnavailableError("no storage configured")

    def delete(self, key: str) -> None:
        raise StorageUnavailableError("no storage configured")


class MemoryBackend(KeyValueBackend):
    """In-process dict, optionally bounded to ``max_bytes`` of UTF-8 payload."""

    def __init__(self, max_bytes: Optional[int] = None) -> None:
        self._data: dict[str, str] = {}
        self._max_bytes = max_bytes

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self._max_bytes is not None:
            used = sum(
                len(v.encode("utf-8")) for k, v in self._data.items() if k != key
            )
            if used + len(value.encode("utf-8")) > self._max_bytes:
                raise StorageQuotaExceeded(
                    f"writing {key!r} would exceed {self._max_bytes} bytes"
                )
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class FileBackend(KeyValueBackend):
    """All keys in one JSON object on disk."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        data = json.loads(self._path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise StorageError(f"{self._path} does not hold a JSON object")
        return data

    def _dump(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_name(self._path.name + ".tmp")
        tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
        tmp.replace(self._path)

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        try:
            data = self._load()
        except (ValueError, StorageError) as exc:
            logger.warning("Unreadable store %s, starting fresh: %s", self._path, exc)
            data = {}
        data[key] = value
        self._dump(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._dump(data)


class RedisBackend(KeyValueBackend):
    """Redis strings under a key prefix. Non-fatal if Redis is unavailable."""

    def __init__(
        self,
        redis_url: str,
        prefix: str = DEFAULT_REDIS_PREFIX,
        client: Optional[redis.Redis] = None,
    ) -> None:
        self._redis_url = redis_url
        self._prefix = prefix
        self._client = client
        if client is None:
            self.connect()

    @property
    def available(self) -> bool:
        return self._client is not None

    def connect(self) -> None:
        """Connect and ping; leaves the backend unavailable on failure."""
        try:
            self._client = redis.Redis.from_url(self._redis_url, decode_responses=True)
            self._client.ping()
            logger.info("Redis storage connected: %s", self._redis_url)
        except Exception as e:
            logger.warning("Redis unavailable, storage disabled: %s", e)
            self._client = None

    def close(self) -> None:
        if self._client:
            self._client.close()
            self._client = None

    def _require_client(self) -> redis.Redis:
        if self._client is None:
            raise StorageUnavailableError(f"redis not connected: {self._redis_url}")
        return self._client

    def get(self, key: str) -> Optional[str]:
        return self._require_client().get(f"{self._prefix}{key}")

    def set(self, key: str, value: str) -> None:
        self._require_client().set(f"{self._prefix}{key}", value)

    def delete(self, key: str) -> None:
        self._require_client().delete(f"{self._prefix}{key}")


class SQLBackend(KeyValueBackend):
    """A ``kv_store`` table reached through SQLAlchemy.

    Non-fatal if the database is unavailable.
    """

    def __init__(self, database_url: str) -> None:
        self._url = database_url
        self._engine: Optional[Engine] = None
        self.connect()

    @property
    def available(self) -> bool:
        return self._engine is not None

    def connect(self) -> None:
        """Create the engine and the table."""
        try:
            url = make_url(self._url)
            if url.get_backend_name() == "sqlite" and url.database not in (
                None,
                "",
                ":memory:",
            ):
                Path(url.database).parent.mkdir(parents=True, exist_ok=True)
            self._engine = create_engine(url)
            with self._engine.begin() as conn:
                conn.execute(text(_CREATE_TABLE_STMT))
            logger.info("SQL storage ready: %s", url.render_as_string(hide_password=True))
        except Exception as e:
            logger.warning("SQL storage unavailable, storage disabled: %s", e)
            self._engine = None

    def close(self) -> None:
        """Dispose of the engine and connection pool."""
        if self._engine:
            self._engine.dispose()
            self._engine = None

    def _require_engine(self) -> Engine:
        if self._engine is None:
            raise StorageUnavailableError("database not connected")
        return self._engine

    def get(self, key: str) -> Optional[str]:
        with self._require_engine().connect() as conn:
            return conn.execute(text(_SELECT_STMT), {"key": key}).scalar_one_or_none()

    def set(self, key: str, value: str) -> None:
        with self._require_engine().begin() as conn:
            conn.execute(text(_UPSERT_STMT), {"key": key, "value": value})

    def delete(self, key: str) -> None:
        with self._require_engine().begin() as conn:
            conn.execute(text(_DELETE_STMT), {"key": key})


def build_backend(settings: Settings) -> KeyValueBackend:
    """Instantiate the backend named by ``settings.storage_backend``."""
    name = settings.storage_backend
    if name == "memory":
        return MemoryBackend()
    if name == "file":
        return FileBackend(settings.storage_path)
    if name == "redis":
        return RedisBackend(settings.redis_url, prefix=settings.redis_prefix)
    if name == "sql":
        return SQLBackend(settings.database_url)
    return NullBackend()


# ---------------------------------------------------------------------------
# Adapter
# ---------------------------------------------------------------------------


class StorageAdapter:
    """JSON read/write/remove over a backend that never raises."""

    def __init__(self, backend: Optional[KeyValueBackend] = None) -> None:
        self._backend = backend if backend is not None else NullBackend()

    @property
    def backend(self) -> KeyValueBackend:
        return self._backend

    @property
    def available(self) -> bool:
        """Whether the backend can currently be used."""
        return self._backend.available

    def read(self, key: str) -> Any:
        """Decoded value under ``key``, or None if absent, unreadable or corrupt."""
        if not self.available:
            STORAGE_OPERATIONS.labels(operation="read", status="unavailable").inc()
            return None

        try:
            raw = self._backend.get(key)
        except Exception as e:
            logger.warning("Storage read failed for %s: %s", key, e)
            STORAGE_OPERATIONS.labels(operation="read", status="error").inc()
            return None

        if raw is None:
            STORAGE_OPERATIONS.labels(operation="read", status="miss").inc()
            return None

        try:
            value = json.loads(raw)
        except (TypeError, ValueError, RecursionError) as e:
            logger.warning("Corrupt payload under %s: %s", key, e)
            STORAGE_OPERATIONS.labels(operation="read", status="corrupt").inc()
            return None

        STORAGE_OPERATIONS.labels(operation="read", status="ok").inc()
        return value

    def write(self, key: str, value: Any) -> None:
        """JSON-encode and store ``value``. No-op on any failure."""
        if not self.available:
            STORAGE_OPERATIONS.labels(operation="write", status="unavailable").inc()
            return

        try:
            payload = json.dumps(value)
        except (TypeError, ValueError, RecursionError) as e:
            logger.warning("Cannot serialise value for %s: %s", key, e)
            STORAGE_OPERATIONS.labels(operation="write", status="error").inc()
            return

        try:
            self._backend.set(key, payload)
        except Exception as e:
            logger.warning("Storage write failed for %s: %s", key, e)
            STORAGE_OPERATIONS.labels(operation="write", status="error").inc()
            return

        STORAGE_OPERATIONS.labels(operation="write", status="ok").inc()

    def remove(self, key: str) -> None:
        """Delete ``key``. No-op on any failure."""
        if not self.available:
            STORAGE_OPERATIONS.labels(operation="remove", status="unavailable").inc()
            return

        try:
            self._backend.delete(key)
        except Exception as e:
            logger.warning("Storage remove failed for %s: %s", key, e)
            STORAGE_OPERATIONS.labels(operation="remove", status="error").inc()
            return

        STORAGE_OPERATIONS.labels(operation="remove", status="ok").inc()
