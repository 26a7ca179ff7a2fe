import asyncio
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import aiosqlite

from .config import settings

logger = logging.getLogger(__name__)

FIRMS_UPDATES = "firms_updates"
WEATHER = "weather"
USER_ENTRIES = "user_entries"

CREATE_SQL = """
CREATE TABLE IF NOT EXISTS documents (
  id TEXT PRIMARY KEY,
  collection TEXT NOT NULL,
  body TEXT NOT NULL,
  created_at TEXT
);
CREATE INDEX IF NOT EXISTS idx_documents_collection ON documents (collection, created_at);
"""

RETRIES = 3


async def _prep(db: aiosqlite.Connection):
    await db.execute("PRAGMA journal_mode=WAL;")
    await db.execute("PRAGMA synchronous=NORMAL;")
    await db.execute("PRAGMA busy_timeout=7000;")  # 7s
    await db.commit()


async def init_db(db_path: Optional[str] = None):
    async with aiosqlite.connect(db_path or settings.DB_PATH, timeout=15) as db:
        await _prep(db)
        for stmt in CREATE_SQL.strip().split(";"):
            s = stmt.strip()
            if s:
                await db.execute(s)
        await db.commit()


def _json_default(o):
    if isinstance(o, datetime):
        return o.isoformat()
    raise TypeError(f"Type not serializable: {type(o)}")


async def add_document(collection: str, data: Dict[str, Any], db_path: Optional[str] = None) -> str:
    """Store one JSON document in ``collection`` and return its generated id."""
    doc_id = uuid.uuid4().hex
    body = json.dumps(data, default=_json_default)
    created_at = datetime.now(timezone.utc).isoformat()

    for attempt in range(RETRIES):
        try:
            async with aiosqlite.connect(db_path or settings.DB_PATH, timeout=15) as db:
                await _prep(db)
                await db.execute(
                    "INSERT INTO documents (id, collection, body, created_at) VALUES (?, ?, ?, ?)",
                    (doc_id, collection, body, created_at),
                )
                await db.commit()
            return doc_id
        except aiosqlite.OperationalError as e:
            logger.warning("[DB] write to %s failed (attempt %d/%d): %s",
                           collection, attempt + 1, RETRIES, e)
            if attempt == RETRIES - 1:
                raise
            await asyncio.sleep(0.2)


async def query_collection(collection: str, db_path: Optional[str] = None) -> List[Dict[str, Any]]:
    """All documents of ``collection`` in insertion order, each with its ``id`` merged in."""
    async with aiosqlite.connect(db_path or settings.DB_PATH, timeout=15) as db:
        await _prep(db)
        async with db.execute(
            "SELECT id, body FROM documents WHERE collection = ? ORDER BY created_at, rowid",
            (collection,),
        ) as cursor:
            rows = await cursor.fetchall()
    return [{"id": doc_id, **json.loads(body)} for doc_id, body in rows]
