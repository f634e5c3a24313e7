"""Durable storage backends for persisted client state."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol


class StateStorage(Protocol):
    def read(self, key: str) -> str | None:
        """Return the serialized record stored under `key`, if any."""

    def write(self, key: str, payload: str) -> None:
        """Replace the record stored under `key`."""


@dataclass
class InMemoryStateStorage:
    def __post_init__(self) -> None:
        self._records: dict[str, str] = {}

    def read(self, key: str) -> str | None:
        return self._records.get(key)

    def write(self, key: str, payload: str) -> None:
        self._records[key] = payload


@dataclass
class FileStateStorage:
    """One JSON document per key inside `directory`."""

    directory: str

    def _path_for(self, key: str) -> Path:
        return Path(self.directory) / f"persist-{key}.json"

    def read(self, key: str) -> str | None:
        path = self._path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, key: str, payload: str) -> None:
        path = self._path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = path.with_suffix(".tmp")
        temp_path.write_text(payload, encoding="utf-8")
        temp_path.replace(path)


@dataclass
class PostgresStateStorage:
    database_url: str

    def _connect(self) -> Any:
        import psycopg

        return psycopg.connect(self.database_url)

    def read(self, key: str) -> str | None:
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT payload
                    FROM persisted_state
                    WHERE key = %s
                    """,
                    (key,),
                )
                row = cur.fetchone()

        if row is None:
            return None
        (payload,) = row
        return payload if isinstance(payload, str) else json.dumps(payload)

    def write(self, key: str, payload: str) -> None:
        now = datetime.now(timezone.utc)
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO persisted_state (key, payload, updated_at)
                    VALUES (%s, %s::jsonb, %s)
                    ON CONFLICT (key) DO UPDATE
                    SET payload = EXCLUDED.payload, updated_at = EXCLUDED.updated_at
                    """,
                    (key, payload, now),
                )
            conn.commit()


def create_storage(database_url: str | None, storage_path: str | None) -> StateStorage:
    if database_url:
        return PostgresStateStorage(database_url=database_url)
    if storage_path:
        return FileStateStorage(directory=storage_path)
    return InMemoryStateStorage()
