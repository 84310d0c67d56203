from md2slides.database import get_async_conn, init_db


class StorageService:
    """Local key/value persistence for editor drafts.

    Plays the part of the browser's local storage: a flat ``get``/``set``
    over string keys, backed by the ``drafts`` table.
    """

    def __init__(self, db_path: str | None = None) -> None:
        self.db_path = db_path
        self._ready = False

    async def _ensure_schema(self) -> None:
        if not self._ready:
            await init_db(self.db_path)
            self._ready = True

    async def get(self, key: str) -> str | None:
        await self._ensure_schema()
        conn = await get_async_conn(self.db_path)
        try:
            row = await conn.execute(
                "SELECT value FROM drafts WHERE key = ?", (key,)
            )
            found = await row.fetchone()
            return found["value"] if found else None
        finally:
            await conn.close()

    async def set(self, key: str, value: str) -> None:
        await self._ensure_schema()
        conn = await get_async_conn(self.db_path)
        try:
            await conn.execute(
                "INSERT INTO drafts (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value, "
                "updated_at = CURRENT_TIMESTAMP",
                (key, value),
            )
            await conn.commit()
        finally:
            await conn.close()
