from __future__ import annotations

from sistema_nfe.domain.contracts import ProdutoFornecedorInput, ProdutoInput, invalid
from sistema_nfe.errors import NotFoundError
from sistema_nfe.infrastructure.repositories.base import BaseRepository, contains_pattern


_FIELDS = (
    "nome",
    "ncm",
    "cfop",
    "unidade",
    "codunidade",
    "codcategoria",
    "codmarca",
    "valorunitario",
    "datacadastro",
    "aliq_icms",
    "aliq_ipi",
    "aliq_pis",
    "aliq_cofins",
)

# lookup column -> (table, resource)
_LOOKUPS = {
    "codunidade": ("unidades_medida", "unidades-medida"),
    "codcategoria": ("categorias", "categorias"),
    "codmarca": ("marcas", "marcas"),
}


class ProdutoRepository(BaseRepository):
    resource = "produtos"
    input_type = ProdutoInput

    _SELECT = """
        SELECT p.codprod, p.nome, p.ncm, p.cfop, p.unidade, p.codunidade, p.codcategoria, p.codmarca,
               p.valorunitario, p.datacadastro, p.aliq_icms, p.aliq_ipi, p.aliq_pis, p.aliq_cofins,
               um.sigla_unidade, c.nome_categoria, m.nome_marca
        FROM produtos p
        LEFT JOIN unidades_medida um ON um.codunidade = p.codunidade
        LEFT JOIN categorias c ON c.codcategoria = p.codcategoria
        LEFT JOIN marcas m ON m.codmarca = p.codmarca
    """

    def list_all(self, db) -> list[dict]:
        rows = db.execute(f"{self._SELECT} ORDER BY p.nome").fetchall()
        return self.rows_to_dicts(rows)

    def search(self, db, term: str, limit: int) -> list:
        # products have no parent table; the unit of measure is shown beside the name
        rows = db.execute(
            """
            SELECT p.codprod, p.nome, COALESCE(um.sigla_unidade, p.unidade) AS unidade
            FROM produtos p
            LEFT JOIN unidades_medida um ON um.codunidade = p.codunidade
            WHERE LOWER(p.nome) LIKE LOWER(?) ESCAPE '\\'
            ORDER BY p.nome
            LIMIT ?
            """,
            (contains_pattern(term), int(limit)),
        ).fetchall()
        return self.suggestions(rows, "codprod", "nome", "unidade")

    def get_by_id(self, db, record_id: int) -> dict | None:
        row = db.execute(f"{self._SELECT} WHERE p.codprod = ?", (record_id,)).fetchone()
        return self.row_to_dict(row)

    def _check_lookups(self, db, data: ProdutoInput) -> None:
        for column, (table, resource) in _LOOKUPS.items():
            value = getattr(data, column)
            if value and not self.exists(db, f"SELECT 1 FROM {table} WHERE {column} = ?", (value,)):
                raise self.not_found(resource)

    def create(self, db, data: ProdutoInput) -> dict:
        data.require_complete()
        self._check_lookups(db, data)
        cursor = db.execute(
            """
            INSERT INTO produtos (
                nome, ncm, cfop, unidade, codunidade, codcategoria, codmarca, valorunitario, datacadastro,
                aliq_icms, aliq_ipi, aliq_pis, aliq_cofins
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, COALESCE(?, 0), COALESCE(?, CURRENT_DATE),
                    COALESCE(?, 0), COALESCE(?, 0), COALESCE(?, 0), COALESCE(?, 0))
            RETURNING codprod
            """,
            tuple(getattr(data, name) for name in _FIELDS),
        )
        codprod = self.returned_id(cursor, "codprod")
        return self.require(self.get_by_id(db, codprod))

    def update(self, db, record_id: int, data: ProdutoInput) -> dict:
        self.require(self.get_by_id(db, record_id))
        self._check_lookups(db, data)
        assignments = ",\n                ".join(f"{name} = COALESCE(?, {name})" for name in _FIELDS)
        db.execute(
            f"""
            UPDATE produtos
            SET {assignments}
            WHERE codprod = ?
            """,
            (*(getattr(data, name) for name in _FIELDS), record_id),
        )
        return self.require(self.get_by_id(db, record_id))

    def delete(self, db, record_id: int) -> None:
        self.require(self.get_by_id(db, record_id))
        if self.exists(db, "SELECT 1 FROM produto_forn WHERE codprod = ? LIMIT 1", (record_id,)):
            raise invalid("produto_has_suppliers")
        db.execute("DELETE FROM produtos WHERE codprod = ?", (record_id,))

    def list_fornecedores(self, db, record_id: int) -> list[dict]:
        self.require(self.get_by_id(db, record_id))
        rows = db.execute(
            """
            SELECT pf.codprod, pf.codforn, pf.valor_custo, f.nomerazao, f.cnpj
            FROM produto_forn pf
            JOIN fornecedores f ON f.codforn = pf.codforn
            WHERE pf.codprod = ?
            ORDER BY f.nomerazao
            """,
            (record_id,),
        ).fetchall()
        return self.rows_to_dicts(rows)

    def link_fornecedor(self, db, record_id: int, data: ProdutoFornecedorInput) -> dict:
        self.require(self.get_by_id(db, record_id))
        if not self.exists(db, "SELECT 1 FROM fornecedores WHERE codforn = ?", (data.codforn,)):
            raise self.not_found("fornecedores")
        if self.exists(
            db,
            "SELECT 1 FROM produto_forn WHERE codprod = ? AND codforn = ?",
            (record_id, data.codforn),
        ):
            raise invalid("link_already_exists")
        db.execute(
            "INSERT INTO produto_forn (codprod, codforn, valor_custo) VALUES (?, ?, ?)",
            (record_id, data.codforn, data.valor_custo),
        )
        links = self.list_fornecedores(db, record_id)
        return next(link for link in links if link["codforn"] == data.codforn)

    def unlink_fornecedor(self, db, record_id: int, codforn: int) -> None:
        self.require(self.get_by_id(db, record_id))
        if not self.exists(
            db,
            "SELECT 1 FROM produto_forn WHERE codprod = ? AND codforn = ?",
            (record_id, codforn),
        ):
            raise NotFoundError(message_key="link_not_found")
        db.execute(
            "DELETE FROM produto_forn WHERE codprod = ? AND codforn = ?",
            (record_id, codforn),
        )
