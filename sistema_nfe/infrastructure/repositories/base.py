from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Sequence

from sistema_nfe.domain.contracts import SearchSuggestion
from sistema_nfe.errors import NotFoundError
from sistema_nfe.ui_strings import not_found_message


def escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def contains_pattern(term: str) -> str:
    """LIKE pattern for a substring match, compared through ``LOWER`` on both sides.

    SQLite connections replace the ASCII-only built-in ``LOWER`` with Python's
    ``str.lower`` (see ``DatabasePool.acquire``) so accented names fold the
    same way they do on postgres.
    """
    return f"%{escape_like(term)}%"


def _json_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


class BaseRepository:
    """Raw-SQL gateway for one cadastro table.

    Subclasses declare the resource key used in routes and messages, how the
    primary key is parsed (``"int"`` or ``"code"``) and the dataclass that
    parses request bodies.
    """

    resource: str = ""
    id_kind: str = "int"
    input_type: Any = None

    @classmethod
    def rows_to_dicts(cls, rows: Iterable[Any]) -> list[dict]:
        return [cls.row_to_dict(row) for row in rows]

    @staticmethod
    def row_to_dict(row: Any) -> dict | None:
        if row is None:
            return None
        return {key: _json_value(value) for key, value in dict(row).items()}

    @staticmethod
    def returned_id(cursor, column: str) -> Any:
        # drain the cursor so sqlite finishes the INSERT ... RETURNING statement
        row = cursor.fetchall()[0]
        return row[column] if isinstance(row, dict) else row[0]

    @staticmethod
    def exists(db, sql: str, params: Sequence[Any]) -> bool:
        return db.execute(sql, tuple(params)).fetchone() is not None

    @staticmethod
    def suggestions(rows: Iterable[Any], id_column: str, name_column: str, related_column: str | None) -> list:
        result = []
        for row in rows:
            item = dict(row)
            related = item.get(related_column) if related_column else None
            result.append(SearchSuggestion(id=item[id_column], name=item[name_column], related_name=related))
        return result

    def list_all(self, db) -> list[dict]:
        raise NotImplementedError

    def search(self, db, term: str, limit: int) -> list[SearchSuggestion]:
        raise NotImplementedError

    def get_by_id(self, db, record_id: Any) -> dict | None:
        raise NotImplementedError

    def create(self, db, data) -> dict:
        raise NotImplementedError

    def update(self, db, record_id: Any, data) -> dict:
        raise NotImplementedError

    def delete(self, db, record_id: Any) -> None:
        raise NotImplementedError

    def not_found(self, resource: str | None = None) -> NotFoundError:
        return NotFoundError(message=not_found_message(resource or self.resource))

    def require(self, record: dict | None, resource: str | None = None) -> dict:
        if record is None:
            raise self.not_found(resource)
        return record
