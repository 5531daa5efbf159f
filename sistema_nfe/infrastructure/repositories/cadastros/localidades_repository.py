from __future__ import annotations

from sistema_nfe.domain.contracts import CidadeInput, EstadoInput, PaisInput, invalid
from sistema_nfe.infrastructure.repositories.base import BaseRepository, contains_pattern


class PaisRepository(BaseRepository):
    resource = "paises"
    id_kind = "code"
    input_type = PaisInput

    def list_all(self, db) -> list[dict]:
        rows = db.execute("SELECT codpais, nomepais FROM paises ORDER BY nomepais").fetchall()
        return self.rows_to_dicts(rows)

    def search(self, db, term: str, limit: int) -> list:
        # countries have no parent entity, relatedName stays null
        rows = db.execute(
            """
            SELECT codpais, nomepais
            FROM paises
            WHERE LOWER(nomepais) LIKE LOWER(?) ESCAPE '\\'
            ORDER BY nomepais
            LIMIT ?
            """,
            (contains_pattern(term), int(limit)),
        ).fetchall()
        return self.suggestions(rows, "codpais", "nomepais", None)

    def get_by_id(self, db, record_id: str) -> dict | None:
        row = db.execute(
            "SELECT codpais, nomepais FROM paises WHERE codpais = ?",
            (record_id,),
        ).fetchone()
        return self.row_to_dict(row)

    def create(self, db, data: PaisInput) -> dict:
        data.require_complete()
        if self.get_by_id(db, data.codpais) is not None:
            raise invalid("pais_code_in_use")
        db.execute(
            "INSERT INTO paises (codpais, nomepais) VALUES (?, ?)",
            (data.codpais, data.nomepais),
        )
        return self.require(self.get_by_id(db, data.codpais))

    def update(self, db, record_id: str, data: PaisInput) -> dict:
        self.require(self.get_by_id(db, record_id))
        db.execute(
            "UPDATE paises SET nomepais = COALESCE(?, nomepais) WHERE codpais = ?",
            (data.nomepais, record_id),
        )
        return self.require(self.get_by_id(db, record_id))

    def delete(self, db, record_id: str) -> None:
        self.require(self.get_by_id(db, record_id))
        if self.exists(db, "SELECT 1 FROM estados WHERE codpais = ? LIMIT 1", (record_id,)):
            raise invalid("pais_has_states")
        db.execute("DELETE FROM paises WHERE codpais = ?", (record_id,))


class EstadoRepository(BaseRepository):
    resource = "estados"
    input_type = EstadoInput

    _SELECT = """
        SELECT e.codest, e.nomeestado, e.uf, e.codpais, p.nomepais
        FROM estados e
        LEFT JOIN paises p ON p.codpais = e.codpais
    """

    def list_all(self, db) -> list[dict]:
        rows = db.execute(f"{self._SELECT} ORDER BY e.nomeestado").fetchall()
        return self.rows_to_dicts(rows)

    def search(self, db, term: str, limit: int) -> list:
        rows = db.execute(
            """
            SELECT e.codest, e.nomeestado, p.nomepais
            FROM estados e
            JOIN paises p ON p.codpais = e.codpais
            WHERE LOWER(e.nomeestado) LIKE LOWER(?) ESCAPE '\\'
            ORDER BY e.nomeestado
            LIMIT ?
            """,
            (contains_pattern(term), int(limit)),
        ).fetchall()
        return self.suggestions(rows, "codest", "nomeestado", "nomepais")

    def get_by_id(self, db, record_id: int) -> dict | None:
        row = db.execute(f"{self._SELECT} WHERE e.codest = ?", (record_id,)).fetchone()
        return self.row_to_dict(row)

    def _require_country(self, db, codpais) -> None:
        if codpais is None:
            return
        if not self.exists(db, "SELECT 1 FROM paises WHERE codpais = ?", (codpais,)):
            raise self.not_found("paises")

    def create(self, db, data: EstadoInput) -> dict:
        data.require_complete()
        self._require_country(db, data.codpais)
        cursor = db.execute(
            "INSERT INTO estados (nomeestado, uf, codpais) VALUES (?, ?, ?) RETURNING codest",
            (data.nomeestado, data.uf, data.codpais),
        )
        codest = self.returned_id(cursor, "codest")
        return self.require(self.get_by_id(db, codest))

    def update(self, db, record_id: int, data: EstadoInput) -> dict:
        self.require(self.get_by_id(db, record_id))
        self._require_country(db, data.codpais or None)
        db.execute(
            """
            UPDATE estados
            SET nomeestado = COALESCE(?, nomeestado),
                uf = COALESCE(?, uf),
                codpais = COALESCE(?, codpais)
            WHERE codest = ?
            """,
            (data.nomeestado, data.uf, data.codpais, record_id),
        )
        return self.require(self.get_by_id(db, record_id))

    def delete(self, db, record_id: int) -> None:
        self.require(self.get_by_id(db, record_id))
        if self.exists(db, "SELECT 1 FROM cidades WHERE codest = ? LIMIT 1", (record_id,)):
            raise invalid("estado_has_cities")
        db.execute("DELETE FROM estados WHERE codest = ?", (record_id,))

    def list_cidades(self, db, record_id: int) -> list[dict]:
        self.require(self.get_by_id(db, record_id))
        rows = db.execute(
            """
            SELECT c.codcid, c.nomecidade, c.codest
            FROM cidades c
            WHERE c.codest = ?
            ORDER BY c.nomecidade
            """,
            (record_id,),
        ).fetchall()
        return self.rows_to_dicts(rows)


class CidadeRepository(BaseRepository):
    resource = "cidades"
    input_type = CidadeInput

    _SELECT = """
        SELECT c.codcid, c.nomecidade, c.codest, e.nomeestado, e.uf
        FROM cidades c
        LEFT JOIN estados e ON e.codest = c.codest
    """

    def list_all(self, db) -> list[dict]:
        rows = db.execute(f"{self._SELECT} ORDER BY c.nomecidade").fetchall()
        return self.rows_to_dicts(rows)

    def search(self, db, term: str, limit: int) -> list:
        rows = db.execute(
            """
            SELECT c.codcid, c.nomecidade, e.nomeestado
            FROM cidades c
            JOIN estados e ON e.codest = c.codest
            WHERE LOWER(c.nomecidade) LIKE LOWER(?) ESCAPE '\\'
            ORDER BY c.nomecidade
            LIMIT ?
            """,
            (contains_pattern(term), int(limit)),
        ).fetchall()
        return self.suggestions(rows, "codcid", "nomecidade", "nomeestado")

    def get_by_id(self, db, record_id: int) -> dict | None:
        row = db.execute(f"{self._SELECT} WHERE c.codcid = ?", (record_id,)).fetchone()
        return self.row_to_dict(row)

    def _require_state(self, db, codest) -> None:
        if codest is None:
            return
        if not self.exists(db, "SELECT 1 FROM estados WHERE codest = ?", (codest,)):
            raise self.not_found("estados")

    def create(self, db, data: CidadeInput) -> dict:
        data.require_complete()
        self._require_state(db, data.codest)
        cursor = db.execute(
            "INSERT INTO cidades (nomecidade, codest) VALUES (?, ?) RETURNING codcid",
            (data.nomecidade, data.codest),
        )
        codcid = self.returned_id(cursor, "codcid")
        return self.require(self.get_by_id(db, codcid))

    def update(self, db, record_id: int, data: CidadeInput) -> dict:
        self.require(self.get_by_id(db, record_id))
        self._require_state(db, data.codest or None)
        db.execute(
            """
            UPDATE cidades
            SET nomecidade = COALESCE(?, nomecidade),
                codest = COALESCE(?, codest)
            WHERE codcid = ?
            """,
            (data.nomecidade, data.codest, record_id),
        )
        return self.require(self.get_by_id(db, record_id))

    def delete(self, db, record_id: int) -> None:
        self.require(self.get_by_id(db, record_id))
        linked = self.exists(
            db,
            """
            SELECT 1 FROM fornecedores WHERE codcid = ?
            UNION
            SELECT 1 FROM transportadoras WHERE codcid = ?
            UNION
            SELECT 1 FROM pessoa WHERE codcid = ?
            """,
            (record_id, record_id, record_id),
        )
        if linked:
            raise invalid("cidade_has_links")
        db.execute("DELETE FROM cidades WHERE codcid = ?", (record_id,))
