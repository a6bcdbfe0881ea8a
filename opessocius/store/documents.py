"""
Collection/document storage on top of SQLite.

Documents are JSON objects addressed by (collection path, id). Nested
collections use slash paths such as ``users/<id>/dailyTrading``. Every
document lives in one table, queried with SQLite's JSON functions.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
import uuid
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from opessocius.store.timestamps import utcnow

logger = logging.getLogger(__name__)


class _ServerTimestamp:
    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


# placeholder replaced with the write time
SERVER_TIMESTAMP = _ServerTimestamp()


class DocumentNotFound(LookupError):
    def __init__(self, collection: str, doc_id: str):
        super().__init__(f"{collection}/{doc_id} does not exist")
        self.collection = collection
        self.doc_id = doc_id


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat(timespec="microseconds")
    if isinstance(value, date):
        return value.isoformat()
    raise TypeError(f"{type(value).__name__} is not JSON serializable")


def new_id() -> str:
    return uuid.uuid4().hex[:20]


class DocumentStore:
    def __init__(self, path: str = ":memory:") -> None:
        self.path = path
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._init_db()

    def _init_db(self) -> None:
        with self._lock:
            self._conn.execute(
                """
                create table if not exists documents (
                    collection text not null,
                    id text not null,
                    data text not null,
                    primary key (collection, id)
                )
                """
            )
            self._conn.commit()

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # ---------- writes ----------

    def _resolve(self, data: Dict[str, Any]) -> Dict[str, Any]:
        now = utcnow()
        return {key: (now if value is SERVER_TIMESTAMP else value) for key, value in data.items()}

    # callers of _fetch/_store hold self._lock

    def _fetch(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        row = self._conn.execute(
            "select data from documents where collection = ? and id = ?",
            (collection, doc_id),
        ).fetchone()
        if row is None:
            return None
        return json.loads(row["data"])

    def _store(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        self._conn.execute(
            """
            insert into documents (collection, id, data) values (?, ?, ?)
            on conflict (collection, id) do update set data = excluded.data
            """,
            (collection, doc_id, json.dumps(data, default=_encode)),
        )
        self._conn.commit()

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = new_id()
        resolved = self._resolve(data)
        with self._lock:
            self._store(collection, doc_id, resolved)
        logger.debug("Added %s/%s", collection, doc_id)
        return doc_id

    def set(self, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = False) -> None:
        resolved = self._resolve(data)
        with self._lock:
            if merge:
                existing = self._fetch(collection, doc_id) or {}
                existing.update(resolved)
                resolved = existing
            self._store(collection, doc_id, resolved)

    def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        resolved = self._resolve(data)
        with self._lock:
            existing = self._fetch(collection, doc_id)
            if existing is None:
                raise DocumentNotFound(collection, doc_id)
            existing.update(resolved)
            self._store(collection, doc_id, existing)

    def delete(self, collection: str, doc_id: str) -> None:
        with self._lock:
            self._conn.execute(
                "delete from documents where collection = ? and id = ?", (collection, doc_id)
            )
            self._conn.commit()

    # ---------- reads ----------

    def _read(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            return self._fetch(collection, doc_id)

    def exists(self, collection: str, doc_id: str) -> bool:
        return self._read(collection, doc_id) is not None

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        data = self._read(collection, doc_id)
        if data is None:
            return None
        return {"id": doc_id, **data}

    def query(
        self,
        collection: str,
        where: Iterable[Tuple[str, Any]] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Equality filters, one sort field and an optional limit."""
        sql = ["select id, data from documents where collection = ?"]
        params: List[Any] = [collection]

        for field_name, value in where:
            sql.append("and json_extract(data, ?) = ?")
            params.extend([f"$.{field_name}", value])

        if order_by:
            direction = "desc" if descending else "asc"
            sql.append(f"order by json_extract(data, ?) {direction}, rowid {direction}")
            params.append(f"$.{order_by}")
        else:
            sql.append("order by rowid")

        if limit is not None:
            sql.append("limit ?")
            params.append(int(limit))

        with self._lock:
            rows = self._conn.execute(" ".join(sql), params).fetchall()
        return [{"id": row["id"], **json.loads(row["data"])} for row in rows]
