import json
from typing import Any

from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from app.database.connection import get_connection, is_pool_ready
from app.database.exceptions import StorageError
from app.database.models import ScrapedRecord
from app.database.rest_client import SupabaseRestClient
from app.logging.logger import Log


def content_matches(record: ScrapedRecord, query: str) -> bool:
    """Substring match over string content or the serialised object."""
    needle = query.lower()
    if isinstance(record.content, str):
        return needle in record.content.lower()
    return needle in json.dumps(record.content, ensure_ascii=False).lower()


class ScrapedContentRepository:
    """Web-content extraction results stored in the scraped_content table."""

    def __init__(
        self,
        rest: SupabaseRestClient,
        *,
        table: str = "scraped_content",
        sql_fallback: bool = False,
    ) -> None:
        self._rest = rest
        self._table = table
        self._sql_fallback = sql_fallback

    def save(self, url: str, mode: str, content: str | dict[str, Any]) -> ScrapedRecord:
        row = {"url": url, "mode": mode, "content": content}
        Log.info(f"Saving scraped content for {url} ({mode})")
        try:
            stored = self._rest.insert(self._table, row)
        except StorageError as exc:
            Log.error(f"REST insert on {self._table} failed: {exc}")
            if not self._sql_fallback or not is_pool_ready():
                raise
            stored = [self._insert_sql(row)]
        if not stored:
            raise StorageError(f"Insert into {self._table} returned no row")
        return ScrapedRecord.from_row(stored[0])

    def list_all(self) -> list[ScrapedRecord]:
        """All records, newest first."""
        try:
            rows = self._rest.select(self._table, params={"order": "created_at.desc"})
        except StorageError as exc:
            Log.error(f"REST select on {self._table} failed: {exc}")
            if not self._sql_fallback or not is_pool_ready():
                raise
            rows = self._select_sql()
        return [ScrapedRecord.from_row(row) for row in rows]

    def query(self, text: str) -> list[ScrapedRecord]:
        return [record for record in self.list_all() if content_matches(record, text)]

    def _insert_sql(self, row: dict[str, Any]) -> dict[str, Any]:
        statement = sql.SQL(
            """
            INSERT INTO {table} (url, mode, content)
            VALUES (%s, %s, %s)
            RETURNING id, url, mode, content, created_at
            """
        ).format(table=sql.Identifier(self._table))
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(statement, (row["url"], row["mode"], Jsonb(row["content"])))
                inserted = cur.fetchone()
            conn.commit()
        if inserted is None:
            raise StorageError(f"Insert into {self._table} returned no row")
        return inserted

    def _select_sql(self) -> list[dict[str, Any]]:
        statement = sql.SQL(
            "SELECT id, url, mode, content, created_at FROM {table} ORDER BY created_at DESC"
        ).format(table=sql.Identifier(self._table))
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(statement)
                return list(cur.fetchall())
