from collections.abc import Iterator
from typing import Any

from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from app.database.connection import get_connection, is_pool_ready
from app.database.exceptions import RecordNotFoundError, StorageError, TableMissingError
from app.database.models import DocumentRecord
from app.database.rest_client import SupabaseRestClient
from app.database.samples import SAMPLE_DOCUMENTS
from app.extraction.models import ExtractionResult
from app.logging.logger import Log

CREATE_TABLE_SQL = """
CREATE EXTENSION IF NOT EXISTS "uuid-ossp";

CREATE TABLE IF NOT EXISTS {table} (
    id UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
    file_name TEXT NOT NULL,
    suid TEXT,
    extracted_data JSONB,
    status TEXT DEFAULT 'completed',
    created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
    updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS {file_name_idx} ON {table}(file_name);
CREATE INDEX IF NOT EXISTS {created_at_idx} ON {table}(created_at);
CREATE INDEX IF NOT EXISTS {suid_idx} ON {table}(suid);
"""


def build_document_row(result: ExtractionResult) -> dict[str, Any]:
    """Shape an extraction result as a documents row."""
    detailed = result.detailed_data or {}
    suid = result.entities.suid or detailed.get("SUID")
    return {
        "file_name": result.file_name,
        "suid": suid,
        "extracted_data": {
            "detailedData": detailed,
            "entities": result.entities.to_dict(),
            "text": result.text or "",
        },
        "status": "completed",
    }


def _leaf_values(value: Any) -> Iterator[str]:
    if isinstance(value, dict):
        for item in value.values():
            yield from _leaf_values(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from _leaf_values(item)
    elif value is not None:
        yield str(value)


def record_matches(record: DocumentRecord, query: str) -> bool:
    """Case-insensitive substring match on file name, SUID and extracted values."""
    needle = query.strip().lower()
    if not needle:
        return True
    haystack = " ".join(
        [
            record.file_name,
            record.suid or "",
            *_leaf_values(record.extracted_data),
        ]
    ).lower()
    return needle in haystack


class DocumentsRepository:
    """Extraction history stored in the platform's documents table.

    Every operation goes through the REST interface first. When it fails and
    direct database access is enabled, the same operation is retried as
    parameterised SQL over the fallback pool.
    """

    def __init__(
        self,
        rest: SupabaseRestClient,
        *,
        table: str = "documents",
        sql_fallback: bool = False,
    ) -> None:
        self._rest = rest
        self._table = table
        self._sql_fallback = sql_fallback

    def ensure_table_exists(self) -> None:
        """Raises:
        TableMissingError: if the documents table has not been created.
        """
        if not self._rest.table_exists(self._table):
            raise TableMissingError(
                f"The {self._table} table doesn't exist. "
                "Run the database setup before processing documents."
            )

    def save_result(self, result: ExtractionResult) -> str | None:
        """Persist one extraction result and return the new row id."""
        self.ensure_table_exists()
        row = build_document_row(result)
        Log.info(f"Saving {result.file_name!r} to {self._table} (suid={row['suid']!r})")
        try:
            stored = self._rest.insert(self._table, row)
        except StorageError as exc:
            self._check_fallback(exc, "insert")
            return self._insert_sql(row)
        return str(stored[0]["id"]) if stored else None

    def list_history(self) -> list[DocumentRecord]:
        """All rows, newest first."""
        try:
            rows = self._rest.select(self._table, params={"order": "created_at.desc"})
        except StorageError as exc:
            self._check_fallback(exc, "select")
            rows = self._select_sql()
        Log.info(f"Fetched {len(rows)} rows from {self._table}")
        return [DocumentRecord.from_row(row) for row in rows]

    def find_by_id(self, document_id: str) -> DocumentRecord:
        """Raises:
        RecordNotFoundError: if no row with this id exists.
        """
        try:
            rows = self._rest.select(self._table, params={"id": f"eq.{document_id}"})
        except StorageError as exc:
            self._check_fallback(exc, "select")
            rows = self._select_sql(document_id)
        if not rows:
            raise RecordNotFoundError(f"Document {document_id} not found")
        return DocumentRecord.from_row(rows[0])

    def delete(self, document_id: str) -> None:
        Log.info(f"Deleting document {document_id}")
        try:
            self._rest.delete(self._table, filters={"id": f"eq.{document_id}"})
        except StorageError as exc:
            self._check_fallback(exc, "delete")
            self._execute_sql(
                sql.SQL("DELETE FROM {table} WHERE id = %s").format(
                    table=sql.Identifier(self._table)
                ),
                (document_id,),
            )

    def clear_all(self) -> None:
        Log.info(f"Clearing all rows from {self._table}")
        try:
            self._rest.delete(self._table, filters={"id": "not.is.null"})
        except StorageError as exc:
            self._check_fallback(exc, "clear")
            self._execute_sql(
                sql.SQL("DELETE FROM {table}").format(table=sql.Identifier(self._table))
            )

    def search(self, query: str) -> list[DocumentRecord]:
        """Case-insensitive match over file name, SUID and extracted data."""
        return [record for record in self.list_history() if record_matches(record, query)]

    def create_table(self) -> None:
        """Create the documents table. Needs direct database access."""
        if not is_pool_ready():
            raise StorageError(
                "Creating tables needs direct database access (DB_FALLBACK_ENABLED=true)"
            )
        statement = sql.SQL(CREATE_TABLE_SQL).format(
            table=sql.Identifier(self._table),
            file_name_idx=sql.Identifier(f"idx_{self._table}_file_name"),
            created_at_idx=sql.Identifier(f"idx_{self._table}_created_at"),
            suid_idx=sql.Identifier(f"idx_{self._table}_suid"),
        )
        self._execute_sql(statement)
        Log.info(f"Ensured table {self._table} exists")

    def seed_samples(self) -> int:
        """Insert the sample documents, returning how many were stored."""
        try:
            stored = self._rest.insert(self._table, SAMPLE_DOCUMENTS)
            return len(stored) or len(SAMPLE_DOCUMENTS)
        except StorageError as exc:
            self._check_fallback(exc, "batch insert")
        for sample in SAMPLE_DOCUMENTS:
            self._insert_sql(sample)
        return len(SAMPLE_DOCUMENTS)

    def _check_fallback(self, exc: StorageError, operation: str) -> None:
        """Re-raise unless the SQL fallback can take over."""
        Log.error(f"REST {operation} on {self._table} failed: {exc}")
        if not self._sql_fallback or not is_pool_ready():
            raise exc
        Log.warning(f"Falling back to direct SQL for {operation} on {self._table}")

    def _insert_sql(self, row: dict[str, Any]) -> str | None:
        statement = sql.SQL(
            """
            INSERT INTO {table} (file_name, suid, extracted_data, status)
            VALUES (%s, %s, %s, %s)
            RETURNING id
            """
        ).format(table=sql.Identifier(self._table))
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    statement,
                    (
                        row["file_name"],
                        row.get("suid"),
                        Jsonb(row.get("extracted_data") or {}),
                        row.get("status", "completed"),
                    ),
                )
                inserted = cur.fetchone()
            conn.commit()
        return str(inserted[0]) if inserted else None

    def _select_sql(self, document_id: str | None = None) -> list[dict[str, Any]]:
        query = sql.SQL(
            "SELECT id, file_name, suid, extracted_data, status, created_at FROM {table}"
        ).format(table=sql.Identifier(self._table))
        params: tuple[Any, ...] = ()
        if document_id is not None:
            query = query + sql.SQL(" WHERE id = %s")
            params = (document_id,)
        query = query + sql.SQL(" ORDER BY created_at DESC")
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(query, params)
                return list(cur.fetchall())

    def _execute_sql(
        self, statement: sql.Composable, params: tuple[Any, ...] | None = None
    ) -> None:
        with get_connection() as conn:
            conn.execute(statement, params)
            conn.commit()
