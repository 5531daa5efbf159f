import sqlite3
import unittest
from unittest.mock import MagicMock

from sistema_nfe.application.cadastro_service import CadastroService
from sistema_nfe.db import Database, _init_db_sqlite
from sistema_nfe.domain.contracts import QueryResult, ResultKind


def _memory_db() -> Database:
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    db = Database("sqlite", conn)
    _init_db_sqlite(db)
    return db


class _CountingProvider:
    def __init__(self, db=None, error: Exception | None = None) -> None:
        self.db = db
        self.error = error
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.db


class CadastroServiceValidationTest(unittest.TestCase):
    def setUp(self) -> None:
        self.provider = _CountingProvider(error=AssertionError("store should not be reached"))
        self.service = CadastroService(db_provider=self.provider)

    def test_blank_search_term(self) -> None:
        for term in (None, "", "   "):
            result = self.service.search("cidades", term)
            self.assertIs(result.kind, ResultKind.VALIDATION_ERROR)
            self.assertEqual(result.status_code, 400)
            self.assertEqual(result.payload, {"error": "Parâmetro de busca não fornecido"})
        self.assertEqual(self.provider.calls, 0)

    def test_blank_and_malformed_ids(self) -> None:
        blank = self.service.get_record("produtos", " ")
        self.assertEqual(blank.payload, {"error": "Código do produto é obrigatório"})
        malformed = self.service.delete_record("estados", "sp")
        self.assertEqual(malformed.payload, {"error": "Código do estado inválido"})
        self.assertEqual(self.provider.calls, 0)

    def test_invalid_bodies(self) -> None:
        self.assertIs(self.service.create_record("paises", None).kind, ResultKind.VALIDATION_ERROR)
        result = self.service.create_contas({"modelo": 55, "serie": 1, "numnfe": 1, "tipo": "P", "parcelas": []})
        self.assertEqual(result.payload, {"error": "Dados obrigatórios não fornecidos"})
        result = self.service.list_contas({"tipo": "Z"})
        self.assertEqual(result.status_code, 400)
        self.assertEqual(self.provider.calls, 0)


class CadastroServiceStoreTest(unittest.TestCase):
    def test_store_failure_is_logged_and_reported(self) -> None:
        provider = _CountingProvider(error=ConnectionError("connection refused"))
        service = CadastroService(db_provider=provider)

        with self.assertLogs("sistema_nfe.application.cadastro_service", level="ERROR") as captured:
            result = service.search("cidades", "sao")

        self.assertEqual(provider.calls, 1)
        self.assertIs(result.kind, ResultKind.STORE_ERROR)
        self.assertFalse(result.ok)
        self.assertEqual(result.status_code, 500)
        self.assertEqual(result.payload, {"error": "Erro ao buscar cidades"})
        self.assertEqual(captured.records[0].getMessage(), "Erro ao buscar cidades")
        self.assertEqual(captured.records[0].operation, "search")

    def test_round_trip_on_memory_store(self) -> None:
        db = _memory_db()
        self.addCleanup(db.close)
        service = CadastroService(db_provider=_CountingProvider(db=db), search_page_size=2)

        created = service.create_record("paises", {"codpais": "br", "nomepais": "Brasil"})
        self.assertTrue(created.ok)
        self.assertEqual(created.status_code, 201)
        self.assertFalse(db.connection.in_transaction)

        estado = service.create_record("estados", {"nomeestado": "Sao Paulo", "uf": "SP", "codpais": "BR"}).payload
        for nome in ("Sao Carlos", "Sao Jose", "Sao Paulo"):
            service.create_record("cidades", {"nomecidade": nome, "codest": estado["codest"]})

        found = service.search("cidades", "sao")
        self.assertEqual([item["name"] for item in found.payload], ["Sao Carlos", "Sao Jose"])
        self.assertEqual(found.payload[0]["relatedName"], "Sao Paulo")

        missing = service.get_record("cidades", "999")
        self.assertIs(missing.kind, ResultKind.NOT_FOUND)
        self.assertEqual(missing.payload, {"error": "Cidade não encontrada"})

        deleted = service.delete_record("paises", "BR")
        self.assertIs(deleted.kind, ResultKind.VALIDATION_ERROR)


class _FailingInsertDatabase(Database):
    """Raises on the n-th insert into one table, after the earlier rows were written."""

    def __init__(self, connection, table: str, fail_on: int) -> None:
        super().__init__("sqlite", connection)
        self.table = table
        self.fail_on = fail_on
        self.inserts = 0

    def execute(self, sql, params=None):
        if f"INSERT INTO {self.table}" in sql:
            self.inserts += 1
            if self.inserts == self.fail_on:
                raise sqlite3.OperationalError("disk I/O error")
        return super().execute(sql, params)


class CadastroServiceTransactionTest(unittest.TestCase):
    def _contas_body(self) -> dict:
        return {
            "modelo": 55,
            "serie": 1,
            "numnfe": 10,
            "tipo": "P",
            "parcelas": [
                {"codparc": 1, "numparc": 1, "datavencimento": "2026-01-10", "valorparcela": 100},
                {"codparc": 1, "numparc": 2, "datavencimento": "2026-02-10", "valorparcela": 100},
            ],
        }

    def test_failed_write_leaves_nothing_for_the_next_commit(self) -> None:
        conn = sqlite3.connect(":memory:")
        conn.row_factory = sqlite3.Row
        db = _FailingInsertDatabase(conn, "contas", fail_on=2)
        _init_db_sqlite(db)
        self.addCleanup(db.close)
        service = CadastroService(db_provider=_CountingProvider(db=db))

        with self.assertLogs("sistema_nfe.application.cadastro_service", level="ERROR"):
            failed = service.create_contas(self._contas_body())
        self.assertIs(failed.kind, ResultKind.STORE_ERROR)
        self.assertEqual(failed.payload, {"error": "Erro ao gerar parcelas da conta"})
        self.assertFalse(conn.in_transaction)

        created = service.create_record("paises", {"codpais": "BR", "nomepais": "Brasil"})
        self.assertTrue(created.ok)
        self.assertEqual(conn.execute("SELECT COUNT(*) FROM contas").fetchone()[0], 0)
        self.assertEqual(conn.execute("SELECT COUNT(*) FROM paises").fetchone()[0], 1)

    def test_failed_update_keeps_previous_installments(self) -> None:
        conn = sqlite3.connect(":memory:")
        conn.row_factory = sqlite3.Row
        db = _FailingInsertDatabase(conn, "parcelas_contapgto", fail_on=3)
        _init_db_sqlite(db)
        self.addCleanup(db.close)
        service = CadastroService(db_provider=_CountingProvider(db=db))
        pix = service.create_record("formas-pagamento", {"descricao": "PIX"}).payload["codformapgto"]
        condicao = service.create_record(
            "condicoes-pagamento",
            {
                "descricao": "30/60",
                "parcelas": [
                    {"numparc": 1, "codformapgto": pix, "dias": 30, "percentual": 50},
                    {"numparc": 2, "codformapgto": pix, "dias": 60, "percentual": 50},
                ],
            },
        ).payload

        with self.assertLogs("sistema_nfe.application.cadastro_service", level="ERROR"):
            failed = service.update_record(
                "condicoes-pagamento",
                condicao["codcondpgto"],
                {"descricao": "A vista", "parcelas": [{"numparc": 1, "codformapgto": pix, "dias": 0, "percentual": 100}]},
            )

        self.assertEqual(failed.status_code, 500)
        current = service.get_record("condicoes-pagamento", condicao["codcondpgto"]).payload
        self.assertEqual(current["descricao"], "30/60")
        self.assertEqual([parcela["dias"] for parcela in current["parcelas"]], [30, 60])

    def test_non_finite_numbers_never_reach_the_store(self) -> None:
        provider = _CountingProvider(error=AssertionError("store should not be reached"))
        service = CadastroService(db_provider=provider)
        body = self._contas_body()

        for value in ("nan", "NaN", "inf", "-Infinity", float("nan"), float("inf")):
            body["parcelas"][1]["valorparcela"] = value
            result = service.create_contas(body)
            self.assertIs(result.kind, ResultKind.VALIDATION_ERROR, value)
            self.assertEqual(result.payload, {"error": "Valor inválido"})
        self.assertEqual(provider.calls, 0)


class PostgresTransactionTest(unittest.TestCase):
    def test_write_runs_inside_one_transaction(self) -> None:
        conn = MagicMock()
        conn.autocommit = True
        states = []
        db = Database("postgres", conn)
        service = CadastroService(db_provider=_CountingProvider(db=db))

        def action(db, _prepared):
            states.append(conn.autocommit)
            return {"ok": True}

        result = service._run("paises", "create", action, commit=True)

        self.assertTrue(result.ok)
        self.assertEqual(states, [False])
        conn.commit.assert_called_once_with()
        self.assertTrue(conn.autocommit)

    def test_failed_write_is_rolled_back_and_autocommit_restored(self) -> None:
        conn = MagicMock()
        conn.autocommit = True
        db = Database("postgres", conn)
        service = CadastroService(db_provider=_CountingProvider(db=db))

        def action(db, _prepared):
            raise RuntimeError("server closed the connection")

        with self.assertLogs("sistema_nfe.application.cadastro_service", level="ERROR"):
            result = service._run("contas", "installments", action, commit=True)

        self.assertEqual(result.status_code, 500)
        conn.rollback.assert_called_once_with()
        conn.commit.assert_not_called()
        self.assertTrue(conn.autocommit)

    def test_reads_keep_autocommit(self) -> None:
        conn = MagicMock()
        conn.autocommit = True
        states = []
        service = CadastroService(db_provider=_CountingProvider(db=Database("postgres", conn)))

        service._run("paises", "list", lambda db, _: states.append(conn.autocommit) or [])

        self.assertEqual(states, [True])
        conn.commit.assert_not_called()


class QueryResultTest(unittest.TestCase):
    def test_constructors(self) -> None:
        self.assertEqual(QueryResult.success([1]).status_code, 200)
        self.assertEqual(QueryResult.validation("x").payload, {"error": "x"})
        self.assertEqual(QueryResult.not_found("y").status_code, 404)
        failure = QueryResult.store_failure("z")
        self.assertIs(failure.kind, ResultKind.STORE_ERROR)
        self.assertEqual(failure.status_code, 500)


if __name__ == "__main__":
    unittest.main()
