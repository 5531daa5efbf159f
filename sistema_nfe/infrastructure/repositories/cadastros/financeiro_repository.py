from __future__ import annotations

from typing import Any, Iterable

from sistema_nfe.domain.contracts import (
    CondicaoPagamentoInput,
    ContaKey,
    ContasCreateInput,
    ContasFilter,
    FormaPagamentoInput,
    PagamentoInput,
    ParcelaInput,
    invalid,
)
from sistema_nfe.infrastructure.repositories.base import BaseRepository, contains_pattern


def _require_formas(db, codes: Iterable[Any]) -> None:
    for code in sorted({code for code in codes if code is not None}):
        row = db.execute("SELECT 1 FROM formapgto WHERE codformapgto = ?", (code,)).fetchone()
        if row is None:
            raise invalid("forma_pagamento_missing", codformapgto=code)


class FormaPagamentoRepository(BaseRepository):
    resource = "formas-pagamento"
    input_type = FormaPagamentoInput

    def list_all(self, db) -> list[dict]:
        rows = db.execute("SELECT codformapgto, descricao FROM formapgto ORDER BY descricao").fetchall()
        return self.rows_to_dicts(rows)

    def search(self, db, term: str, limit: int) -> list:
        rows = db.execute(
            """
            SELECT codformapgto, descricao
            FROM formapgto
            WHERE LOWER(descricao) LIKE LOWER(?) ESCAPE '\\'
            ORDER BY descricao
            LIMIT ?
            """,
            (contains_pattern(term), int(limit)),
        ).fetchall()
        return self.suggestions(rows, "codformapgto", "descricao", None)

    def get_by_id(self, db, record_id: int) -> dict | None:
        row = db.execute(
            "SELECT codformapgto, descricao FROM formapgto WHERE codformapgto = ?",
            (record_id,),
        ).fetchone()
        return self.row_to_dict(row)

    def _check_unique(self, db, descricao, record_id: int | None = None) -> None:
        if not descricao:
            return
        sql = "SELECT 1 FROM formapgto WHERE UPPER(descricao) = UPPER(?)"
        params: list[Any] = [descricao]
        if record_id is not None:
            sql += " AND codformapgto <> ?"
            params.append(record_id)
        if self.exists(db, sql, params):
            raise invalid("forma_in_use")

    def create(self, db, data: FormaPagamentoInput) -> dict:
        data.require_complete()
        self._check_unique(db, data.descricao)
        cursor = db.execute(
            "INSERT INTO formapgto (descricao) VALUES (?) RETURNING codformapgto",
            (data.descricao,),
        )
        return self.require(self.get_by_id(db, self.returned_id(cursor, "codformapgto")))

    def update(self, db, record_id: int, data: FormaPagamentoInput) -> dict:
        self.require(self.get_by_id(db, record_id))
        self._check_unique(db, data.descricao, record_id)
        db.execute(
            "UPDATE formapgto SET descricao = COALESCE(?, descricao) WHERE codformapgto = ?",
            (data.descricao, record_id),
        )
        return self.require(self.get_by_id(db, record_id))

    def delete(self, db, record_id: int) -> None:
        self.require(self.get_by_id(db, record_id))
        linked = self.exists(
            db,
            """
            SELECT 1 FROM parcelas_contapgto WHERE codformapgto = ?
            UNION
            SELECT 1 FROM contas WHERE codformapgto = ?
            """,
            (record_id, record_id),
        )
        if linked:
            raise invalid("forma_has_links")
        db.execute("DELETE FROM formapgto WHERE codformapgto = ?", (record_id,))


class CondicaoPagamentoRepository(BaseRepository):
    resource = "condicoes-pagamento"
    input_type = CondicaoPagamentoInput

    _SELECT = "SELECT codcondpgto, descricao, juros_perc, multa_perc, desconto_perc FROM cond_pgto"

    def _parcelas_by_condicao(self, db, codcondpgto: int | None = None) -> dict[int, list[dict]]:
        sql = """
            SELECT p.codcondpgto, p.numparc, p.codformapgto, f.descricao AS descricao_forma,
                   p.dias, p.percentual
            FROM parcelas_contapgto p
            LEFT JOIN formapgto f ON f.codformapgto = p.codformapgto
        """
        params: tuple = ()
        if codcondpgto is not None:
            sql += " WHERE p.codcondpgto = ?"
            params = (codcondpgto,)
        rows = db.execute(f"{sql} ORDER BY p.codcondpgto, p.numparc", params).fetchall()

        grouped: dict[int, list[dict]] = {}
        for parcela in self.rows_to_dicts(rows):
            grouped.setdefault(parcela.pop("codcondpgto"), []).append(parcela)
        return grouped

    def list_all(self, db) -> list[dict]:
        condicoes = self.rows_to_dicts(db.execute(f"{self._SELECT} ORDER BY descricao").fetchall())
        parcelas = self._parcelas_by_condicao(db)
        for condicao in condicoes:
            condicao["parcelas"] = parcelas.get(condicao["codcondpgto"], [])
        return condicoes

    def search(self, db, term: str, limit: int) -> list:
        rows = db.execute(
            """
            SELECT codcondpgto, descricao
            FROM cond_pgto
            WHERE LOWER(descricao) LIKE LOWER(?) ESCAPE '\\'
            ORDER BY descricao
            LIMIT ?
            """,
            (contains_pattern(term), int(limit)),
        ).fetchall()
        return self.suggestions(rows, "codcondpgto", "descricao", None)

    def get_by_id(self, db, record_id: int) -> dict | None:
        condicao = self.row_to_dict(db.execute(f"{self._SELECT} WHERE codcondpgto = ?", (record_id,)).fetchone())
        if condicao is None:
            return None
        condicao["parcelas"] = self._parcelas_by_condicao(db, record_id).get(record_id, [])
        return condicao

    def _check_unique(self, db, descricao, record_id: int | None = None) -> None:
        if not descricao:
            return
        sql = "SELECT 1 FROM cond_pgto WHERE UPPER(descricao) = UPPER(?)"
        params: list[Any] = [descricao]
        if record_id is not None:
            sql += " AND codcondpgto <> ?"
            params.append(record_id)
        if self.exists(db, sql, params):
            raise invalid("condicao_description_in_use")

    def _insert_parcelas(self, db, codcondpgto: int, parcelas: list[ParcelaInput]) -> None:
        for parcela in parcelas:
            db.execute(
                """
                INSERT INTO parcelas_contapgto (codcondpgto, numparc, codformapgto, dias, percentual)
                VALUES (?, ?, ?, ?, ?)
                """,
                (codcondpgto, parcela.numparc, parcela.codformapgto, parcela.dias, parcela.percentual),
            )

    def create(self, db, data: CondicaoPagamentoInput) -> dict:
        data.require_complete()
        self._check_unique(db, data.descricao)
        _require_formas(db, (parcela.codformapgto for parcela in data.parcelas))
        cursor = db.execute(
            """
            INSERT INTO cond_pgto (descricao, juros_perc, multa_perc, desconto_perc)
            VALUES (?, COALESCE(?, 0), COALESCE(?, 0), COALESCE(?, 0))
            RETURNING codcondpgto
            """,
            (data.descricao, data.juros_perc, data.multa_perc, data.desconto_perc),
        )
        codcondpgto = self.returned_id(cursor, "codcondpgto")
        self._insert_parcelas(db, codcondpgto, data.parcelas)
        return self.require(self.get_by_id(db, codcondpgto))

    def update(self, db, record_id: int, data: CondicaoPagamentoInput) -> dict:
        self.require(self.get_by_id(db, record_id))
        self._check_unique(db, data.descricao, record_id)
        if data.parcelas:
            _require_formas(db, (parcela.codformapgto for parcela in data.parcelas))
        db.execute(
            """
            UPDATE cond_pgto
            SET descricao = COALESCE(?, descricao),
                juros_perc = COALESCE(?, juros_perc),
                multa_perc = COALESCE(?, multa_perc),
                desconto_perc = COALESCE(?, desconto_perc)
            WHERE codcondpgto = ?
            """,
            (data.descricao, data.juros_perc, data.multa_perc, data.desconto_perc, record_id),
        )
        if data.parcelas:
            # installments are replaced as a whole so the 100% total stays valid
            db.execute("DELETE FROM parcelas_contapgto WHERE codcondpgto = ?", (record_id,))
            self._insert_parcelas(db, record_id, data.parcelas)
        return self.require(self.get_by_id(db, record_id))

    def delete(self, db, record_id: int) -> None:
        self.require(self.get_by_id(db, record_id))
        if self.exists(db, "SELECT 1 FROM clientes WHERE codcondpgto = ? LIMIT 1", (record_id,)):
            raise invalid("condicao_has_clientes")
        db.execute("DELETE FROM parcelas_contapgto WHERE codcondpgto = ?", (record_id,))
        db.execute("DELETE FROM cond_pgto WHERE codcondpgto = ?", (record_id,))


class ContaRepository(BaseRepository):
    """Payable (``P``) and receivable (``R``) installments of an invoice."""

    resource = "contas"

    _SELECT = """
        SELECT c.modelo, c.serie, c.numnfe, c.codparc, c.numparc, c.datavencimento, c.valorparcela,
               c.datapagamento, c.valorpago, c.codformapgto, c.tipo,
               c.juros_valor, c.multa_valor, c.desconto_valor,
               f.descricao AS forma_pagamento,
               CASE
                   WHEN c.datapagamento IS NOT NULL THEN 'PAGO'
                   WHEN c.datavencimento < CURRENT_DATE THEN 'VENCIDO'
                   ELSE 'ABERTO'
               END AS status
        FROM contas c
        LEFT JOIN formapgto f ON f.codformapgto = c.codformapgto
    """

    _KEY_CLAUSE = "c.modelo = ? AND c.serie = ? AND c.numnfe = ? AND c.codparc = ? AND c.numparc = ?"

    def list_filtered(self, db, filters: ContasFilter) -> list[dict]:
        clauses: list[str] = []
        params: list[Any] = []
        if filters.tipo:
            clauses.append("c.tipo = ?")
            params.append(filters.tipo)
        if filters.status == "PAGO":
            clauses.append("c.datapagamento IS NOT NULL")
        elif filters.status == "ABERTO":
            clauses.append("c.datapagamento IS NULL")
        elif filters.status == "VENCIDO":
            clauses.append("c.datapagamento IS NULL AND c.datavencimento < CURRENT_DATE")
        if filters.modelo is not None:
            clauses.append("c.modelo = ? AND c.serie = ? AND c.numnfe = ?")
            params.extend([filters.modelo, filters.serie, filters.numnfe])

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        rows = db.execute(
            f"""
            {self._SELECT}
            {where}
            ORDER BY
                CASE WHEN c.datapagamento IS NULL THEN 0 ELSE 1 END,
                c.datavencimento, c.modelo, c.serie, c.numnfe, c.codparc, c.numparc
            """,
            tuple(params),
        ).fetchall()
        return self.rows_to_dicts(rows)

    def get_by_key(self, db, key: ContaKey) -> dict | None:
        row = db.execute(f"{self._SELECT} WHERE {self._KEY_CLAUSE}", key.as_params()).fetchone()
        return self.row_to_dict(row)

    def create_installments(self, db, data: ContasCreateInput) -> list[dict]:
        invoice = (data.modelo, data.serie, data.numnfe)
        if self.exists(db, "SELECT 1 FROM contas WHERE modelo = ? AND serie = ? AND numnfe = ?", invoice):
            raise invalid("contas_already_exist")
        _require_formas(db, (parcela.codformapgto for parcela in data.parcelas))
        for parcela in data.parcelas:
            db.execute(
                """
                INSERT INTO contas (
                    modelo, serie, numnfe, codparc, numparc,
                    datavencimento, valorparcela, codformapgto, tipo
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    *invoice,
                    parcela.codparc,
                    parcela.numparc,
                    parcela.datavencimento,
                    parcela.valorparcela,
                    parcela.codformapgto,
                    data.tipo,
                ),
            )
        return self.list_filtered(db, ContasFilter(modelo=data.modelo, serie=data.serie, numnfe=data.numnfe))

    def register_payment(self, db, data: PagamentoInput) -> dict:
        conta = self.require(self.get_by_key(db, data.key))
        if conta["datapagamento"]:
            raise invalid("conta_already_paid")
        if data.codformapgto:
            _require_formas(db, [data.codformapgto])
        db.execute(
            """
            UPDATE contas
            SET datapagamento = ?,
                valorpago = ?,
                codformapgto = COALESCE(?, codformapgto),
                juros_valor = ?,
                multa_valor = ?,
                desconto_valor = ?
            WHERE modelo = ? AND serie = ? AND numnfe = ? AND codparc = ? AND numparc = ?
            """,
            (
                data.datapagamento,
                data.valorpago,
                data.codformapgto,
                data.juros_valor,
                data.multa_valor,
                data.desconto_valor,
                *data.key.as_params(),
            ),
        )
        return self.require(self.get_by_key(db, data.key))

    def delete_unpaid(self, db, key: ContaKey) -> None:
        conta = self.require(self.get_by_key(db, key))
        if conta["datapagamento"]:
            raise invalid("conta_paid_cannot_delete")
        db.execute(
            "DELETE FROM contas WHERE modelo = ? AND serie = ? AND numnfe = ? AND codparc = ? AND numparc = ?",
            key.as_params(),
        )
