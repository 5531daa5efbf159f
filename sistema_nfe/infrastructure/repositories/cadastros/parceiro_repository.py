from __future__ import annotations

from typing import Any

from sistema_nfe.domain.contracts import ParceiroInput, VeiculoInput, invalid
from sistema_nfe.errors import NotFoundError
from sistema_nfe.infrastructure.repositories.base import BaseRepository, contains_pattern


_PARCEIRO_FIELDS = (
    "nomerazao",
    "cnpj",
    "inscricaoestadual",
    "endereco",
    "numero",
    "complemento",
    "bairro",
    "cep",
    "codcid",
    "telefone",
    "email",
)


class _ParceiroRepository(BaseRepository):
    """Suppliers and carriers share columns; only the table and key differ."""

    input_type = ParceiroInput
    table = ""
    id_column = ""
    linked_message_key = ""

    def _select(self) -> str:
        columns = ", ".join(f"x.{name}" for name in _PARCEIRO_FIELDS)
        return f"""
            SELECT x.{self.id_column}, {columns}, c.nomecidade, c.codest, e.nomeestado, e.uf
            FROM {self.table} x
            LEFT JOIN cidades c ON c.codcid = x.codcid
            LEFT JOIN estados e ON e.codest = c.codest
        """

    def list_all(self, db) -> list[dict]:
        rows = db.execute(f"{self._select()} ORDER BY x.nomerazao").fetchall()
        return self.rows_to_dicts(rows)

    def search(self, db, term: str, limit: int) -> list:
        rows = db.execute(
            f"""
            SELECT x.{self.id_column}, x.nomerazao, c.nomecidade
            FROM {self.table} x
            LEFT JOIN cidades c ON c.codcid = x.codcid
            WHERE LOWER(x.nomerazao) LIKE LOWER(?) ESCAPE '\\'
            ORDER BY x.nomerazao
            LIMIT ?
            """,
            (contains_pattern(term), int(limit)),
        ).fetchall()
        return self.suggestions(rows, self.id_column, "nomerazao", "nomecidade")

    def get_by_id(self, db, record_id: int) -> dict | None:
        row = db.execute(f"{self._select()} WHERE x.{self.id_column} = ?", (record_id,)).fetchone()
        return self.row_to_dict(row)

    def _check_references(self, db, data: ParceiroInput, record_id: int | None = None) -> None:
        if data.cnpj:
            sql = f"SELECT 1 FROM {self.table} WHERE cnpj = ?"
            params: list[Any] = [data.cnpj]
            if record_id is not None:
                sql += f" AND {self.id_column} <> ?"
                params.append(record_id)
            if self.exists(db, sql, params):
                raise invalid("cnpj_in_use")
        if data.codcid:
            if not self.exists(db, "SELECT 1 FROM cidades WHERE codcid = ?", (data.codcid,)):
                raise self.not_found("cidades")

    def create(self, db, data: ParceiroInput) -> dict:
        data.require_complete()
        self._check_references(db, data)
        placeholders = ", ".join("?" for _ in _PARCEIRO_FIELDS)
        cursor = db.execute(
            f"""
            INSERT INTO {self.table} ({", ".join(_PARCEIRO_FIELDS)})
            VALUES ({placeholders})
            RETURNING {self.id_column}
            """,
            tuple(getattr(data, name) for name in _PARCEIRO_FIELDS),
        )
        record_id = self.returned_id(cursor, self.id_column)
        return self.require(self.get_by_id(db, record_id))

    def update(self, db, record_id: int, data: ParceiroInput) -> dict:
        self.require(self.get_by_id(db, record_id))
        self._check_references(db, data, record_id)
        assignments = ",\n                ".join(f"{name} = COALESCE(?, {name})" for name in _PARCEIRO_FIELDS)
        db.execute(
            f"""
            UPDATE {self.table}
            SET {assignments}
            WHERE {self.id_column} = ?
            """,
            (*(getattr(data, name) for name in _PARCEIRO_FIELDS), record_id),
        )
        return self.require(self.get_by_id(db, record_id))

    def _linked_sql(self) -> str:
        raise NotImplementedError

    def delete(self, db, record_id: int) -> None:
        self.require(self.get_by_id(db, record_id))
        if self.exists(db, self._linked_sql(), (record_id, record_id)):
            raise invalid(self.linked_message_key)
        db.execute(f"DELETE FROM {self.table} WHERE {self.id_column} = ?", (record_id,))


class FornecedorRepository(_ParceiroRepository):
    resource = "fornecedores"
    table = "fornecedores"
    id_column = "codforn"
    linked_message_key = "fornecedor_has_links"

    def _linked_sql(self) -> str:
        return """
            SELECT 1 FROM produto_forn WHERE codforn = ?
            UNION
            SELECT 1 FROM transp_forn WHERE codforn = ?
        """


class TransportadoraRepository(_ParceiroRepository):
    resource = "transportadoras"
    table = "transportadoras"
    id_column = "codtrans"
    linked_message_key = "transportadora_has_links"

    def _linked_sql(self) -> str:
        return """
            SELECT 1 FROM transp_forn WHERE codtrans = ?
            UNION
            SELECT 1 FROM veiculo_transportadora WHERE codtrans = ?
        """

    def get_by_id(self, db, record_id: int) -> dict | None:
        """Composed view: the carrier, its city/state names, suppliers and vehicles."""
        record = super().get_by_id(db, record_id)
        if record is None:
            return None
        fornecedores = db.execute(
            """
            SELECT f.codforn, f.nomerazao, f.cnpj
            FROM transp_forn tf
            JOIN fornecedores f ON f.codforn = tf.codforn
            WHERE tf.codtrans = ?
            ORDER BY f.nomerazao
            """,
            (record_id,),
        ).fetchall()
        veiculos = db.execute(
            """
            SELECT v.codveiculo, v.placa
            FROM veiculo_transportadora vt
            JOIN veiculos v ON v.codveiculo = vt.codveiculo
            WHERE vt.codtrans = ?
            ORDER BY v.placa
            """,
            (record_id,),
        ).fetchall()
        record["fornecedores"] = self.rows_to_dicts(fornecedores)
        record["veiculos"] = self.rows_to_dicts(veiculos)
        return record

    def link_fornecedor(self, db, record_id: int, codforn: int) -> dict:
        self.require(self.get_by_id(db, record_id))
        if not self.exists(db, "SELECT 1 FROM fornecedores WHERE codforn = ?", (codforn,)):
            raise self.not_found("fornecedores")
        if self.exists(db, "SELECT 1 FROM transp_forn WHERE codtrans = ? AND codforn = ?", (record_id, codforn)):
            raise invalid("link_already_exists")
        db.execute("INSERT INTO transp_forn (codtrans, codforn) VALUES (?, ?)", (record_id, codforn))
        return self.require(self.get_by_id(db, record_id))

    def unlink_fornecedor(self, db, record_id: int, codforn: int) -> None:
        self.require(self.get_by_id(db, record_id))
        if not self.exists(db, "SELECT 1 FROM transp_forn WHERE codtrans = ? AND codforn = ?", (record_id, codforn)):
            raise NotFoundError(message_key="link_not_found")
        db.execute("DELETE FROM transp_forn WHERE codtrans = ? AND codforn = ?", (record_id, codforn))

    def _resolve_vehicle(self, db, data: VeiculoInput) -> int:
        if data.codveiculo is not None:
            row = db.execute("SELECT codveiculo FROM veiculos WHERE codveiculo = ?", (data.codveiculo,)).fetchone()
            if row is None:
                raise self.not_found("veiculos")
            return row["codveiculo"]

        row = db.execute("SELECT codveiculo FROM veiculos WHERE placa = ?", (data.placa,)).fetchone()
        if row is not None:
            return row["codveiculo"]
        cursor = db.execute(
            "INSERT INTO veiculos (placa, modelo, descricao) VALUES (?, ?, ?) RETURNING codveiculo",
            (data.placa, data.modelo, data.descricao),
        )
        return self.returned_id(cursor, "codveiculo")

    def link_veiculo(self, db, record_id: int, data: VeiculoInput) -> dict:
        self.require(self.get_by_id(db, record_id))
        codveiculo = self._resolve_vehicle(db, data)
        if self.exists(
            db,
            "SELECT 1 FROM veiculo_transportadora WHERE codveiculo = ? AND codtrans = ?",
            (codveiculo, record_id),
        ):
            raise invalid("link_already_exists")
        db.execute(
            "INSERT INTO veiculo_transportadora (codveiculo, codtrans) VALUES (?, ?)",
            (codveiculo, record_id),
        )
        return self.require(self.get_by_id(db, record_id))

    def unlink_veiculo(self, db, record_id: int, codveiculo: int) -> None:
        self.require(self.get_by_id(db, record_id))
        if not self.exists(
            db,
            "SELECT 1 FROM veiculo_transportadora WHERE codveiculo = ? AND codtrans = ?",
            (codveiculo, record_id),
        ):
            raise NotFoundError(message_key="link_not_found")
        db.execute(
            "DELETE FROM veiculo_transportadora WHERE codveiculo = ? AND codtrans = ?",
            (codveiculo, record_id),
        )
