# src/db/crud.py
# key/value access to device storage, the durable counterpart of browser localStorage
from __future__ import annotations

import json
from datetime import datetime
from typing import Any, List, Optional

from db.database import connect


async def get_item(key: str) -> Optional[str]:
    """Return the raw stored string for key, or None."""
    async with connect() as conn:
        cur = await conn.execute(
            "SELECT value FROM device_storage WHERE key = ?;", (key,)
        )
        row = await cur.fetchone()
        await cur.close()
    return row[0] if row else None


async def set_item(key: str, value: str, when: Optional[datetime] = None) -> None:
    """Insert or overwrite the value stored under key."""
    when = when or datetime.now()
    async with connect() as conn:
        await conn.execute(
            """
            INSERT INTO device_storage(key, value, updated_at) VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                           updated_at = excluded.updated_at;
            """,
            (key, value, when.isoformat()),
        )
        await conn.commit()


async def remove_item(key: str) -> None:
    """Delete key; missing keys are ignored."""
    async with connect() as conn:
        await conn.execute("DELETE FROM device_storage WHERE key = ?;", (key,))
        await conn.commit()


async def list_keys() -> List[str]:
    async with connect() as conn:
        cur = await conn.execute("SELECT key FROM device_storage ORDER BY key;")
        rows = await cur.fetchall()
        await cur.close()
    return [row[0] for row in rows]


# ---------------------------
# JSON helpers
# ---------------------------


async def get_json(key: str) -> Optional[Any]:
    """Decoded JSON stored under key; None when absent.

    Raises ValueError when the stored text is not valid JSON.
    """
    raw = await get_item(key)
    if raw is None:
        return None
    return json.loads(raw)


async def set_json(key: str, value: Any) -> None:
    await set_item(key, json.dumps(value))
