import re
import sqlite3
import threading
from typing import Iterable, List

import psycopg2
import psycopg2.extras
import psycopg2.pool
from flask import current_app, g


POOL_EXTENSION_KEY = "sistema_nfe.db"
DEFAULT_SCHEMA = "sistema_nfe"

_SCHEMA_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class _Unset:
    """Marker for a value the caller did not send (distinct from an explicit null)."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset()


def _bind_params(params: Iterable | None) -> list:
    return [None if value is UNSET else value for value in (params or ())]


class Database:
    def __init__(self, backend: str, connection):
        self.backend = backend
        self._conn = connection

    @property
    def connection(self):
        return self._conn

    def execute(self, sql: str, params: Iterable | None = None):
        values = _bind_params(params)
        if self.backend == "postgres":
            cursor = self._conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor)
            if values:
                cursor.execute(_convert_qmark_to_pg(sql), values)
            else:
                cursor.execute(sql)
            return cursor
        return self._conn.execute(sql, values)

    def begin(self):
        """Group the following statements into one transaction.

        Postgres connections leave the pool in autocommit mode, so a write
        spanning several statements must switch it off until ``commit`` or
        ``rollback``. SQLite opens its transaction implicitly on the first write.
        """
        if self.backend == "postgres":
            self._conn.autocommit = False

    def commit(self):
        self._conn.commit()
        self._restore_autocommit()

    def rollback(self):
        self._conn.rollback()
        self._restore_autocommit()

    def _restore_autocommit(self):
        if self.backend == "postgres":
            self._conn.autocommit = True

    def close(self):
        self._conn.close()


def _convert_qmark_to_pg(sql: str) -> str:
    return sql.replace("?", "%s")


def is_postgres_url(db_path: str) -> bool:
    return str(db_path or "").strip().lower().startswith("postgres")


def _sqlite_file_path(db_path: str) -> str:
    raw = str(db_path or "").strip()
    for prefix in ("sqlite+pysqlite:///", "sqlite:///"):
        if raw.startswith(prefix):
            return raw[len(prefix) :]
    return raw


def _sql_lower(value):
    if value is None:
        return None
    return str(value).lower()


def _validated_schema(schema: str | None) -> str:
    value = str(schema or DEFAULT_SCHEMA).strip()
    if not _SCHEMA_NAME_PATTERN.match(value):
        raise RuntimeError(f"Nome de schema invalido: {value!r}")
    return value


class DatabasePool:
    """Process-wide database handle shared by every request.

    Postgres connections come from a ``ThreadedConnectionPool`` created on
    first use; every connection is opened with a fixed client encoding and a
    search path pointing at the configured schema. SQLite (tests and local
    development) opens one connection per checkout.
    """

    def __init__(
        self,
        db_path: str,
        *,
        schema: str | None = None,
        client_encoding: str = "UTF8",
        min_connections: int = 1,
        max_connections: int = 10,
    ) -> None:
        raw = str(db_path or "").strip()
        if not raw:
            raise RuntimeError("Configurações do banco de dados não encontradas")
        self.db_path = raw
        self.backend = "postgres" if is_postgres_url(raw) else "sqlite"
        self.schema = _validated_schema(schema)
        self.client_encoding = client_encoding
        self.min_connections = max(1, int(min_connections))
        self.max_connections = max(self.min_connections, int(max_connections))
        self._pg_pool = None
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config) -> "DatabasePool":
        return cls(
            config["DB_PATH"],
            schema=config.get("DB_SCHEMA"),
            client_encoding=config.get("DB_CLIENT_ENCODING") or "UTF8",
            min_connections=config.get("DB_POOL_MIN") or 1,
            max_connections=config.get("DB_POOL_MAX") or 10,
        )

    def _postgres_pool(self):
        with self._lock:
            if self._pg_pool is None:
                self._pg_pool = psycopg2.pool.ThreadedConnectionPool(
                    self.min_connections,
                    self.max_connections,
                    dsn=self.db_path,
                    options=f"-c client_encoding={self.client_encoding} -c search_path={self.schema},public",
                )
            return self._pg_pool

    def acquire(self) -> Database:
        if self.backend == "postgres":
            conn = self._postgres_pool().getconn()
            conn.autocommit = True
            return Database("postgres", conn)

        conn = sqlite3.connect(_sqlite_file_path(self.db_path))
        conn.row_factory = sqlite3.Row
        # the built-in LOWER only folds ASCII; match postgres for accented names
        conn.create_function("LOWER", 1, _sql_lower, deterministic=True)
        conn.execute("PRAGMA foreign_keys = ON")
        return Database("sqlite", conn)

    def release(self, db: Database) -> None:
        if db.backend == "postgres" and self._pg_pool is not None:
            self._pg_pool.putconn(db.connection, close=bool(db.connection.closed))
            return
        db.close()


def current_pool() -> DatabasePool:
    return current_app.extensions[POOL_EXTENSION_KEY]


def get_db() -> Database:
    if "db" not in g:
        g.db = current_pool().acquire()
    return g.db


def close_db(_error=None):
    db = g.pop("db", None)
    if db is not None:
        current_pool().release(db)


def init_db():
    db = get_db()
    if db.backend == "postgres":
        _init_db_postgres(db, schema=current_app.config.get("DB_SCHEMA"))
        return

    _init_db_sqlite(db)


_TABLES: List[tuple[str, str]] = [
    (
        "paises",
        """
        CREATE TABLE IF NOT EXISTS paises (
            codpais TEXT PRIMARY KEY CHECK (length(codpais) = 2),
            nomepais TEXT NOT NULL
        )
        """,
    ),
    (
        "estados",
        """
        CREATE TABLE IF NOT EXISTS estados (
            codest {pk},
            nomeestado TEXT NOT NULL,
            uf TEXT NOT NULL CHECK (length(uf) = 2),
            codpais TEXT NOT NULL REFERENCES paises (codpais)
        )
        """,
    ),
    (
        "cidades",
        """
        CREATE TABLE IF NOT EXISTS cidades (
            codcid {pk},
            nomecidade TEXT NOT NULL,
            codest INTEGER NOT NULL REFERENCES estados (codest)
        )
        """,
    ),
    (
        "marcas",
        """
        CREATE TABLE IF NOT EXISTS marcas (
            codmarca {pk},
            nome_marca TEXT NOT NULL,
            situacao {date},
            data_criacao {date} DEFAULT CURRENT_DATE,
            data_alteracao {date}
        )
        """,
    ),
    (
        "categorias",
        """
        CREATE TABLE IF NOT EXISTS categorias (
            codcategoria {pk},
            nome_categoria TEXT NOT NULL,
            situacao {date},
            data_criacao {date} DEFAULT CURRENT_DATE,
            data_alteracao {date}
        )
        """,
    ),
    (
        "unidades_medida",
        """
        CREATE TABLE IF NOT EXISTS unidades_medida (
            codunidade {pk},
            nome_unidade TEXT NOT NULL,
            sigla_unidade TEXT NOT NULL,
            situacao {date},
            data_criacao {date} DEFAULT CURRENT_DATE,
            data_alteracao {date}
        )
        """,
    ),
    (
        "produtos",
        """
        CREATE TABLE IF NOT EXISTS produtos (
            codprod {pk},
            nome TEXT NOT NULL,
            ncm TEXT,
            cfop TEXT,
            unidade TEXT,
            codunidade INTEGER REFERENCES unidades_medida (codunidade),
            codcategoria INTEGER REFERENCES categorias (codcategoria),
            codmarca INTEGER REFERENCES marcas (codmarca),
            valorunitario NUMERIC(15, 2) NOT NULL DEFAULT 0 CHECK (valorunitario >= 0),
            datacadastro {date} DEFAULT CURRENT_DATE,
            aliq_icms NUMERIC(5, 2) NOT NULL DEFAULT 0,
            aliq_ipi NUMERIC(5, 2) NOT NULL DEFAULT 0,
            aliq_pis NUMERIC(5, 2) NOT NULL DEFAULT 0,
            aliq_cofins NUMERIC(5, 2) NOT NULL DEFAULT 0
        )
        """,
    ),
    (
        "fornecedores",
        """
        CREATE TABLE IF NOT EXISTS fornecedores (
            codforn {pk},
            nomerazao TEXT NOT NULL,
            cnpj TEXT NOT NULL UNIQUE,
            inscricaoestadual TEXT,
            endereco TEXT,
            numero TEXT,
            complemento TEXT,
            bairro TEXT,
            cep TEXT,
            codcid INTEGER REFERENCES cidades (codcid),
            telefone TEXT,
            email TEXT
        )
        """,
    ),
    (
        "transportadoras",
        """
        CREATE TABLE IF NOT EXISTS transportadoras (
            codtrans {pk},
            nomerazao TEXT NOT NULL,
            cnpj TEXT NOT NULL UNIQUE,
            inscricaoestadual TEXT,
            endereco TEXT,
            numero TEXT,
            complemento TEXT,
            bairro TEXT,
            cep TEXT,
            codcid INTEGER REFERENCES cidades (codcid),
            telefone TEXT,
            email TEXT
        )
        """,
    ),
    (
        "veiculos",
        """
        CREATE TABLE IF NOT EXISTS veiculos (
            codveiculo {pk},
            placa TEXT NOT NULL UNIQUE,
            modelo TEXT,
            descricao TEXT
        )
        """,
    ),
    (
        "veiculo_transportadora",
        """
        CREATE TABLE IF NOT EXISTS veiculo_transportadora (
            codveiculo INTEGER NOT NULL REFERENCES veiculos (codveiculo),
            codtrans INTEGER NOT NULL REFERENCES transportadoras (codtrans),
            PRIMARY KEY (codveiculo, codtrans)
        )
        """,
    ),
    (
        "transp_forn",
        """
        CREATE TABLE IF NOT EXISTS transp_forn (
            codtrans INTEGER NOT NULL REFERENCES transportadoras (codtrans),
            codforn INTEGER NOT NULL REFERENCES fornecedores (codforn),
            PRIMARY KEY (codtrans, codforn)
        )
        """,
    ),
    (
        "produto_forn",
        """
        CREATE TABLE IF NOT EXISTS produto_forn (
            codprod INTEGER NOT NULL REFERENCES produtos (codprod),
            codforn INTEGER NOT NULL REFERENCES fornecedores (codforn),
            valor_custo NUMERIC(15, 2),
            PRIMARY KEY (codprod, codforn)
        )
        """,
    ),
    (
        "formapgto",
        """
        CREATE TABLE IF NOT EXISTS formapgto (
            codformapgto {pk},
            descricao TEXT NOT NULL UNIQUE
        )
        """,
    ),
    (
        "cond_pgto",
        """
        CREATE TABLE IF NOT EXISTS cond_pgto (
            codcondpgto {pk},
            descricao TEXT NOT NULL UNIQUE,
            juros_perc NUMERIC(5, 2) NOT NULL DEFAULT 0,
            multa_perc NUMERIC(5, 2) NOT NULL DEFAULT 0,
            desconto_perc NUMERIC(5, 2) NOT NULL DEFAULT 0
        )
        """,
    ),
    (
        "parcelas_contapgto",
        """
        CREATE TABLE IF NOT EXISTS parcelas_contapgto (
            codcondpgto INTEGER NOT NULL REFERENCES cond_pgto (codcondpgto),
            numparc INTEGER NOT NULL,
            codformapgto INTEGER NOT NULL REFERENCES formapgto (codformapgto),
            dias INTEGER NOT NULL,
            percentual NUMERIC(5, 2) NOT NULL,
            PRIMARY KEY (codcondpgto, numparc)
        )
        """,
    ),
    (
        "contas",
        """
        CREATE TABLE IF NOT EXISTS contas (
            modelo INTEGER NOT NULL,
            serie INTEGER NOT NULL,
            numnfe INTEGER NOT NULL,
            codparc INTEGER NOT NULL,
            numparc INTEGER NOT NULL,
            datavencimento {date} NOT NULL,
            valorparcela NUMERIC(15, 2) NOT NULL,
            datapagamento {date},
            valorpago NUMERIC(15, 2),
            codformapgto INTEGER REFERENCES formapgto (codformapgto),
            tipo TEXT NOT NULL CHECK (tipo IN ('P', 'R')),
            juros_valor NUMERIC(15, 2) NOT NULL DEFAULT 0,
            multa_valor NUMERIC(15, 2) NOT NULL DEFAULT 0,
            desconto_valor NUMERIC(15, 2) NOT NULL DEFAULT 0,
            PRIMARY KEY (modelo, serie, numnfe, codparc, numparc)
        )
        """,
    ),
    (
        "pessoa",
        """
        CREATE TABLE IF NOT EXISTS pessoa (
            codigo {pk},
            tipopessoa TEXT NOT NULL CHECK (tipopessoa IN ('F', 'J')),
            nomerazao TEXT NOT NULL,
            nomefantasia TEXT,
            cpfcnpj TEXT UNIQUE,
            rg_inscricaoestadual TEXT,
            endereco TEXT,
            numero TEXT,
            complemento TEXT,
            bairro TEXT,
            cep TEXT,
            codcid INTEGER REFERENCES cidades (codcid),
            telefone TEXT,
            email TEXT,
            datacadastro {date} DEFAULT CURRENT_DATE
        )
        """,
    ),
    (
        "clientes",
        """
        CREATE TABLE IF NOT EXISTS clientes (
            codcli INTEGER PRIMARY KEY REFERENCES pessoa (codigo),
            codcondpgto INTEGER REFERENCES cond_pgto (codcondpgto)
        )
        """,
    ),
    (
        "funcoes_funcionario",
        """
        CREATE TABLE IF NOT EXISTS funcoes_funcionario (
            codfuncao {pk},
            nome_funcao TEXT NOT NULL,
            exige_cnh BOOLEAN NOT NULL DEFAULT FALSE,
            carga_horaria_semanal NUMERIC(5, 2),
            situacao {date},
            data_criacao {date} DEFAULT CURRENT_DATE,
            data_alteracao {date}
        )
        """,
    ),
    (
        "funcionarios",
        """
        CREATE TABLE IF NOT EXISTS funcionarios (
            codfunc {pk},
            codpessoa INTEGER NOT NULL UNIQUE REFERENCES pessoa (codigo),
            codfuncao_fk INTEGER REFERENCES funcoes_funcionario (codfuncao),
            cargo TEXT,
            departamento TEXT,
            data_admissao {date},
            salario NUMERIC(15, 2),
            status TEXT NOT NULL DEFAULT 'Ativo'
        )
        """,
    ),
]

_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_estados_codpais ON estados (codpais)",
    "CREATE INDEX IF NOT EXISTS idx_cidades_codest ON cidades (codest)",
    "CREATE INDEX IF NOT EXISTS idx_fornecedores_codcid ON fornecedores (codcid)",
    "CREATE INDEX IF NOT EXISTS idx_transportadoras_codcid ON transportadoras (codcid)",
    "CREATE INDEX IF NOT EXISTS idx_contas_tipo_vencimento ON contas (tipo, datavencimento)",
    "CREATE INDEX IF NOT EXISTS idx_produtos_codmarca ON produtos (codmarca)",
    "CREATE INDEX IF NOT EXISTS idx_pessoa_codcid ON pessoa (codcid)",
    "CREATE INDEX IF NOT EXISTS idx_funcionarios_codfuncao ON funcionarios (codfuncao_fk)",
]

TABLE_NAMES = [name for name, _ddl in _TABLES]


def _init_db_sqlite(db: Database):
    for _name, ddl in _TABLES:
        db.execute(ddl.format(pk="INTEGER PRIMARY KEY AUTOINCREMENT", date="TEXT"))
    for statement in _INDEXES:
        db.execute(statement)
    db.commit()


def _init_db_postgres(db: Database, schema: str | None = None):
    schema_name = _validated_schema(schema)
    db.execute(f"CREATE SCHEMA IF NOT EXISTS {schema_name}")
    db.execute(f"SET search_path TO {schema_name}, public")
    for _name, ddl in _TABLES:
        db.execute(ddl.format(pk="SERIAL PRIMARY KEY", date="DATE"))
    for statement in _INDEXES:
        db.execute(statement)
    db.commit()
