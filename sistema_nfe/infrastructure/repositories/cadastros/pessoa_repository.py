from __future__ import annotations

from typing import Any

from sistema_nfe.domain.contracts import CPF_CNPJ_LENGTH, ClienteInput, FuncionarioInput, PessoaInput, invalid
from sistema_nfe.infrastructure.repositories.base import BaseRepository, contains_pattern


_PESSOA_FIELDS = (
    "tipopessoa",
    "nomerazao",
    "nomefantasia",
    "cpfcnpj",
    "rg_inscricaoestadual",
    "endereco",
    "numero",
    "complemento",
    "bairro",
    "cep",
    "codcid",
    "telefone",
    "email",
)

_PESSOA_COLUMNS = ", ".join(f"p.{name}" for name in (*_PESSOA_FIELDS, "datacadastro"))

_LOCALIDADE_JOINS = """
    LEFT JOIN cidades cid ON cid.codcid = p.codcid
    LEFT JOIN estados est ON est.codest = cid.codest
    LEFT JOIN paises pais ON pais.codpais = est.codpais
"""


class _PessoaRepository(BaseRepository):
    """Customers and employees each own one ``pessoa`` row.

    Writes touch both tables, so they rely on the service running them in a
    single transaction.
    """

    def _pessoa_id(self, record: dict) -> int:
        raise NotImplementedError

    def _check_pessoa(self, db, data: PessoaInput, current: dict | None = None) -> None:
        tipo = data.tipopessoa or (current or {}).get("tipopessoa")
        cpfcnpj = data.cpfcnpj or (current or {}).get("cpfcnpj")
        if tipo and cpfcnpj and len(cpfcnpj) != CPF_CNPJ_LENGTH[tipo]:
            raise invalid("cpfcnpj_invalid")
        if data.cpfcnpj:
            sql = "SELECT 1 FROM pessoa WHERE cpfcnpj = ?"
            params: list[Any] = [data.cpfcnpj]
            if current is not None:
                sql += " AND codigo <> ?"
                params.append(self._pessoa_id(current))
            if self.exists(db, sql, params):
                raise invalid("cpfcnpj_in_use")
        if data.codcid and not self.exists(db, "SELECT 1 FROM cidades WHERE codcid = ?", (data.codcid,)):
            raise self.not_found("cidades")

    def _insert_pessoa(self, db, data: PessoaInput) -> int:
        placeholders = ", ".join("?" for _ in _PESSOA_FIELDS)
        cursor = db.execute(
            f"""
            INSERT INTO pessoa ({", ".join(_PESSOA_FIELDS)})
            VALUES ({placeholders})
            RETURNING codigo
            """,
            tuple(getattr(data, name) for name in _PESSOA_FIELDS),
        )
        return self.returned_id(cursor, "codigo")

    def _update_pessoa(self, db, codigo: int, data: PessoaInput) -> None:
        assignments = ",\n                ".join(f"{name} = COALESCE(?, {name})" for name in _PESSOA_FIELDS)
        db.execute(
            f"""
            UPDATE pessoa
            SET {assignments}
            WHERE codigo = ?
            """,
            (*(getattr(data, name) for name in _PESSOA_FIELDS), codigo),
        )


class ClienteRepository(_PessoaRepository):
    resource = "clientes"
    input_type = ClienteInput

    _SELECT = f"""
        SELECT c.codcli, c.codcondpgto, {_PESSOA_COLUMNS},
               cid.nomecidade, est.nomeestado, pais.nomepais,
               cp.descricao AS condicao_pagamento
        FROM clientes c
        JOIN pessoa p ON p.codigo = c.codcli
        {_LOCALIDADE_JOINS}
        LEFT JOIN cond_pgto cp ON cp.codcondpgto = c.codcondpgto
    """

    def _pessoa_id(self, record: dict) -> int:
        return record["codcli"]

    def list_all(self, db) -> list[dict]:
        return self.rows_to_dicts(db.execute(f"{self._SELECT} ORDER BY p.nomerazao").fetchall())

    def search(self, db, term: str, limit: int) -> list:
        rows = db.execute(
            """
            SELECT c.codcli, p.nomerazao, cid.nomecidade
            FROM clientes c
            JOIN pessoa p ON p.codigo = c.codcli
            LEFT JOIN cidades cid ON cid.codcid = p.codcid
            WHERE LOWER(p.nomerazao) LIKE LOWER(?) ESCAPE '\\'
            ORDER BY p.nomerazao
            LIMIT ?
            """,
            (contains_pattern(term), int(limit)),
        ).fetchall()
        return self.suggestions(rows, "codcli", "nomerazao", "nomecidade")

    def get_by_id(self, db, record_id: int) -> dict | None:
        return self.row_to_dict(db.execute(f"{self._SELECT} WHERE c.codcli = ?", (record_id,)).fetchone())

    def _check_condicao(self, db, codcondpgto) -> None:
        if codcondpgto and not self.exists(db, "SELECT 1 FROM cond_pgto WHERE codcondpgto = ?", (codcondpgto,)):
            raise self.not_found("condicoes-pagamento")

    def create(self, db, data: ClienteInput) -> dict:
        data.require_complete()
        self._check_pessoa(db, data.pessoa)
        self._check_condicao(db, data.codcondpgto)
        codigo = self._insert_pessoa(db, data.pessoa)
        db.execute("INSERT INTO clientes (codcli, codcondpgto) VALUES (?, ?)", (codigo, data.codcondpgto))
        return self.require(self.get_by_id(db, codigo))

    def update(self, db, record_id: int, data: ClienteInput) -> dict:
        current = self.require(self.get_by_id(db, record_id))
        self._check_pessoa(db, data.pessoa, current)
        self._check_condicao(db, data.codcondpgto)
        self._update_pessoa(db, record_id, data.pessoa)
        db.execute(
            "UPDATE clientes SET codcondpgto = COALESCE(?, codcondpgto) WHERE codcli = ?",
            (data.codcondpgto, record_id),
        )
        return self.require(self.get_by_id(db, record_id))

    def delete(self, db, record_id: int) -> None:
        self.require(self.get_by_id(db, record_id))
        db.execute("DELETE FROM clientes WHERE codcli = ?", (record_id,))
        db.execute("DELETE FROM pessoa WHERE codigo = ?", (record_id,))


class FuncionarioRepository(_PessoaRepository):
    resource = "funcionarios"
    input_type = FuncionarioInput

    _FIELDS = ("codfuncao_fk", "cargo", "departamento", "data_admissao", "salario", "status")

    _SELECT = f"""
        SELECT f.codfunc, f.codpessoa, f.codfuncao_fk, f.cargo, f.departamento, f.data_admissao,
               f.salario, f.status, {_PESSOA_COLUMNS},
               ff.nome_funcao, cid.nomecidade, est.nomeestado, pais.nomepais
        FROM funcionarios f
        JOIN pessoa p ON p.codigo = f.codpessoa
        LEFT JOIN funcoes_funcionario ff ON ff.codfuncao = f.codfuncao_fk
        {_LOCALIDADE_JOINS}
    """

    def _pessoa_id(self, record: dict) -> int:
        return record["codpessoa"]

    def list_all(self, db) -> list[dict]:
        return self.rows_to_dicts(db.execute(f"{self._SELECT} ORDER BY p.nomerazao").fetchall())

    def search(self, db, term: str, limit: int) -> list:
        rows = db.execute(
            """
            SELECT f.codfunc, p.nomerazao, ff.nome_funcao
            FROM funcionarios f
            JOIN pessoa p ON p.codigo = f.codpessoa
            LEFT JOIN funcoes_funcionario ff ON ff.codfuncao = f.codfuncao_fk
            WHERE LOWER(p.nomerazao) LIKE LOWER(?) ESCAPE '\\'
            ORDER BY p.nomerazao
            LIMIT ?
            """,
            (contains_pattern(term), int(limit)),
        ).fetchall()
        return self.suggestions(rows, "codfunc", "nomerazao", "nome_funcao")

    def get_by_id(self, db, record_id: int) -> dict | None:
        return self.row_to_dict(db.execute(f"{self._SELECT} WHERE f.codfunc = ?", (record_id,)).fetchone())

    def _check_funcao(self, db, codfuncao) -> None:
        if codfuncao and not self.exists(
            db, "SELECT 1 FROM funcoes_funcionario WHERE codfuncao = ?", (codfuncao,)
        ):
            raise self.not_found("funcoes-funcionario")

    def create(self, db, data: FuncionarioInput) -> dict:
        data.require_complete()
        self._check_pessoa(db, data.pessoa)
        self._check_funcao(db, data.codfuncao_fk)
        codpessoa = self._insert_pessoa(db, data.pessoa)
        cursor = db.execute(
            """
            INSERT INTO funcionarios (codpessoa, codfuncao_fk, cargo, departamento, data_admissao, salario, status)
            VALUES (?, ?, ?, ?, ?, ?, COALESCE(?, 'Ativo'))
            RETURNING codfunc
            """,
            (codpessoa, *(getattr(data, name) for name in self._FIELDS)),
        )
        return self.require(self.get_by_id(db, self.returned_id(cursor, "codfunc")))

    def update(self, db, record_id: int, data: FuncionarioInput) -> dict:
        current = self.require(self.get_by_id(db, record_id))
        self._check_pessoa(db, data.pessoa, current)
        self._check_funcao(db, data.codfuncao_fk)
        self._update_pessoa(db, current["codpessoa"], data.pessoa)
        assignments = ", ".join(f"{name} = COALESCE(?, {name})" for name in self._FIELDS)
        db.execute(
            f"UPDATE funcionarios SET {assignments} WHERE codfunc = ?",
            (*(getattr(data, name) for name in self._FIELDS), record_id),
        )
        return self.require(self.get_by_id(db, record_id))

    def delete(self, db, record_id: int) -> None:
        current = self.require(self.get_by_id(db, record_id))
        db.execute("DELETE FROM funcionarios WHERE codfunc = ?", (record_id,))
        db.execute("DELETE FROM pessoa WHERE codigo = ?", (current["codpessoa"],))
