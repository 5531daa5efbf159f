from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, Tuple

from sistema_nfe.db import UNSET
from sistema_nfe.domain.contracts import (
    CategoriaInput,
    FuncaoFuncionarioInput,
    MarcaInput,
    UnidadeMedidaInput,
    invalid,
)
from sistema_nfe.infrastructure.repositories.base import BaseRepository, contains_pattern


class _LookupRepository(BaseRepository):
    """Small named tables that products and employees point at.

    ``situacao`` holds the date a record was deactivated; sending it as null
    reactivates the record, so it is the one column not merged with COALESCE.
    """

    table = ""
    id_column = ""
    name_column = ""
    fields: Tuple[str, ...] = ()
    # column -> message key for case-insensitive unique columns
    unique_columns: Dict[str, str] = {}
    related_column: str | None = None
    # (table, column, message key) that blocks deletion
    referenced_by: Tuple[str, str, str] = ("", "", "")

    def _columns(self) -> str:
        return ", ".join((self.id_column, *self.fields, "data_criacao", "data_alteracao"))

    def list_all(self, db) -> list[dict]:
        rows = db.execute(f"SELECT {self._columns()} FROM {self.table} ORDER BY {self.name_column}").fetchall()
        return self.rows_to_dicts(rows)

    def search(self, db, term: str, limit: int) -> list:
        related = f", {self.related_column}" if self.related_column else ""
        rows = db.execute(
            f"""
            SELECT {self.id_column}, {self.name_column}{related}
            FROM {self.table}
            WHERE LOWER({self.name_column}) LIKE LOWER(?) ESCAPE '\\'
            ORDER BY {self.name_column}
            LIMIT ?
            """,
            (contains_pattern(term), int(limit)),
        ).fetchall()
        return self.suggestions(rows, self.id_column, self.name_column, self.related_column)

    def get_by_id(self, db, record_id: int) -> dict | None:
        row = db.execute(
            f"SELECT {self._columns()} FROM {self.table} WHERE {self.id_column} = ?",
            (record_id,),
        ).fetchone()
        return self.row_to_dict(row)

    def _check_unique(self, db, data, record_id: int | None = None) -> None:
        for column, message_key in self.unique_columns.items():
            value = getattr(data, column)
            if not value:
                continue
            sql = f"SELECT 1 FROM {self.table} WHERE LOWER({column}) = LOWER(?)"
            params: list[Any] = [value]
            if record_id is not None:
                sql += f" AND {self.id_column} <> ?"
                params.append(record_id)
            if self.exists(db, sql, params):
                raise invalid(message_key)

    def create(self, db, data) -> dict:
        data.require_complete()
        self._check_unique(db, data)
        placeholders = ", ".join("?" for _ in self.fields)
        cursor = db.execute(
            f"""
            INSERT INTO {self.table} ({", ".join(self.fields)})
            VALUES ({placeholders})
            RETURNING {self.id_column}
            """,
            tuple(getattr(data, name) for name in self.fields),
        )
        return self.require(self.get_by_id(db, self.returned_id(cursor, self.id_column)))

    def update(self, db, record_id: int, data) -> dict:
        self.require(self.get_by_id(db, record_id))
        self._check_unique(db, data, record_id)
        merged = [name for name in self.fields if name != "situacao"]
        assignments = [f"{name} = COALESCE(?, {name})" for name in merged]
        params: list[Any] = [getattr(data, name) for name in merged]
        if data.situacao is not UNSET:
            assignments.append("situacao = ?")
            params.append(data.situacao)
        db.execute(
            f"""
            UPDATE {self.table}
            SET {", ".join(assignments)}, data_alteracao = CURRENT_DATE
            WHERE {self.id_column} = ?
            """,
            (*params, record_id),
        )
        return self.require(self.get_by_id(db, record_id))

    def delete(self, db, record_id: int) -> None:
        self.require(self.get_by_id(db, record_id))
        table, column, message_key = self.referenced_by
        if self.exists(db, f"SELECT 1 FROM {table} WHERE {column} = ? LIMIT 1", (record_id,)):
            raise invalid(message_key)
        db.execute(f"DELETE FROM {self.table} WHERE {self.id_column} = ?", (record_id,))


class MarcaRepository(_LookupRepository):
    resource = "marcas"
    input_type = MarcaInput
    table = "marcas"
    id_column = "codmarca"
    name_column = "nome_marca"
    fields = ("nome_marca", "situacao")
    unique_columns = {"nome_marca": "marca_name_in_use"}
    referenced_by = ("produtos", "codmarca", "marca_has_produtos")


class CategoriaRepository(_LookupRepository):
    resource = "categorias"
    input_type = CategoriaInput
    table = "categorias"
    id_column = "codcategoria"
    name_column = "nome_categoria"
    fields = ("nome_categoria", "situacao")
    unique_columns = {"nome_categoria": "categoria_name_in_use"}
    referenced_by = ("produtos", "codcategoria", "categoria_has_produtos")


class UnidadeMedidaRepository(_LookupRepository):
    resource = "unidades-medida"
    input_type = UnidadeMedidaInput
    table = "unidades_medida"
    id_column = "codunidade"
    name_column = "nome_unidade"
    fields = ("nome_unidade", "sigla_unidade", "situacao")
    unique_columns = {"nome_unidade": "unidade_name_in_use", "sigla_unidade": "unidade_sigla_in_use"}
    related_column = "sigla_unidade"
    referenced_by = ("produtos", "codunidade", "unidade_has_produtos")


class FuncaoFuncionarioRepository(_LookupRepository):
    resource = "funcoes-funcionario"
    input_type = FuncaoFuncionarioInput
    table = "funcoes_funcionario"
    id_column = "codfuncao"
    name_column = "nome_funcao"
    fields = ("nome_funcao", "exige_cnh", "carga_horaria_semanal", "situacao")
    unique_columns = {"nome_funcao": "funcao_name_in_use"}
    referenced_by = ("funcionarios", "codfuncao_fk", "funcao_has_funcionarios")

    @staticmethod
    def row_to_dict(row: Any) -> dict | None:
        record = BaseRepository.row_to_dict(row)
        if record is not None:
            # sqlite hands booleans back as 0/1
            record["exige_cnh"] = bool(record["exige_cnh"])
        return record

    def create(self, db, data: FuncaoFuncionarioInput) -> dict:
        if data.exige_cnh is UNSET or data.exige_cnh is None:
            data = replace(data, exige_cnh=False)
        return super().create(db, data)
