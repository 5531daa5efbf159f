"""Cadastros and contas baseline from sistema_nfe.db

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19 00:00:01
"""

from __future__ import annotations

import os
from typing import Iterable, Sequence, Union

from alembic import context, op
from sqlalchemy.engine import Connection

from sistema_nfe.db import TABLE_NAMES, _convert_qmark_to_pg, _init_db_postgres, _init_db_sqlite, _validated_schema


# revision identifiers, used by Alembic.
revision: str = "20261019_000001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


class _ResultAdapter:
    def __init__(self, result):
        self._result = result

    @staticmethod
    def _map_row(row):
        if row is None:
            return None
        if isinstance(row, dict):
            return row
        mapping = getattr(row, "_mapping", None)
        if mapping is not None:
            return dict(mapping)
        return row

    def fetchone(self):
        return self._map_row(self._result.fetchone())

    def fetchall(self):
        rows = self._result.fetchall()
        return [self._map_row(row) for row in rows]


class _AlembicDbAdapter:
    def __init__(self, connection: Connection, backend: str):
        self._connection = connection
        self.backend = backend

    def execute(self, sql: str, params: Iterable | None = None):
        statement = sql
        if params is None:
            result = self._connection.exec_driver_sql(statement)
            return _ResultAdapter(result)

        values = tuple(params)
        if self.backend == "postgres":
            statement = _convert_qmark_to_pg(statement)
        result = self._connection.exec_driver_sql(statement, values)
        return _ResultAdapter(result)

    def commit(self):
        # Alembic controla transacoes no contexto da migration.
        return None

    def close(self):
        return None


def _resolve_backend(connection: Connection) -> str:
    dialect = (connection.dialect.name or "").lower()
    if dialect.startswith("postgres"):
        return "postgres"
    return "sqlite"


def _schema() -> str:
    configured = context.config.attributes.get("db_schema") or os.environ.get("DB_SCHEMA")
    return _validated_schema(configured)


def upgrade() -> None:
    connection = op.get_bind()
    backend = _resolve_backend(connection)
    adapter = _AlembicDbAdapter(connection, backend)

    if backend == "postgres":
        _init_db_postgres(adapter, schema=_schema())
        return

    _init_db_sqlite(adapter)


def downgrade() -> None:
    connection = op.get_bind()
    backend = _resolve_backend(connection)

    if backend == "postgres":
        op.execute(f"SET search_path TO {_schema()}, public")

    for table in reversed(TABLE_NAMES):
        op.execute(f"DROP TABLE IF EXISTS {table}")
