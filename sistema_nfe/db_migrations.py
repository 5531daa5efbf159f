from __future__ import annotations

from pathlib import Path

import click
import psycopg2
from alembic import command
from alembic.config import Config as AlembicConfig
from flask import Flask

from sistema_nfe.db import DEFAULT_SCHEMA, init_db


def _project_root() -> Path:
    return Path(__file__).resolve().parents[1]


def _normalize_postgres_url(url: str) -> str:
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://") :]
    return url


def to_sqlalchemy_url(raw_db_path: str) -> str:
    raw = (raw_db_path or "").strip()
    if not raw:
        raise RuntimeError("DB_PATH indefinido para migrations.")

    normalized = _normalize_postgres_url(raw)
    if normalized.startswith(("postgresql://", "postgresql+")):
        return normalized
    if normalized.startswith(("sqlite://", "sqlite+pysqlite://")):
        return normalized

    sqlite_path = Path(normalized).expanduser().resolve()
    return f"sqlite:///{sqlite_path.as_posix()}"


def build_alembic_config(app: Flask) -> AlembicConfig:
    root = _project_root()
    alembic_ini = root / "alembic.ini"
    if not alembic_ini.exists():
        raise RuntimeError("alembic.ini nao encontrado na raiz do projeto.")

    alembic_cfg = AlembicConfig(str(alembic_ini))
    alembic_cfg.set_main_option("script_location", str((root / "migrations").as_posix()))
    alembic_cfg.set_main_option("sqlalchemy.url", to_sqlalchemy_url(app.config["DB_PATH"]))
    # read by migrations/env.py so the baseline creates tables in the configured schema
    alembic_cfg.attributes["db_schema"] = app.config.get("DB_SCHEMA") or DEFAULT_SCHEMA
    # keep the JSON handler installed by create_app instead of alembic.ini's console logger
    alembic_cfg.attributes["skip_logging_config"] = bool(app.config.get("LOG_JSON", True))
    return alembic_cfg


def create_database(config) -> bool:
    """Create DB_NAME on the configured server; returns False when it already exists."""
    db_name = config["DB_NAME"]
    conn = psycopg2.connect(
        host=config["DB_HOST"],
        port=int(config["DB_PORT"]),
        user=config["DB_USER"],
        password=config["DB_PASSWORD"],
        dbname="postgres",
        client_encoding=config.get("DB_CLIENT_ENCODING") or "UTF8",
    )
    conn.autocommit = True
    try:
        with conn.cursor() as cur:
            cur.execute("SELECT 1 FROM pg_database WHERE datname = %s", (db_name,))
            if cur.fetchone():
                return False
            cur.execute(f"CREATE DATABASE \"{db_name}\" ENCODING 'UTF8'")
            return True
    finally:
        conn.close()


def register_db_cli(app: Flask) -> None:
    @app.cli.group("db")
    def db_group() -> None:
        """Comandos de migration (Alembic)."""

    @db_group.command("upgrade")
    @click.argument("revision", required=False, default="head")
    def db_upgrade(revision: str) -> None:
        cfg = build_alembic_config(app)
        command.upgrade(cfg, revision)
        click.echo(f"Migration aplicada ate {revision}.")

    @db_group.command("downgrade")
    @click.argument("revision", required=False, default="-1")
    def db_downgrade(revision: str) -> None:
        cfg = build_alembic_config(app)
        command.downgrade(cfg, revision)
        click.echo(f"Rollback aplicado ate {revision}.")

    @db_group.command("current")
    def db_current() -> None:
        cfg = build_alembic_config(app)
        command.current(cfg, verbose=True)

    @db_group.command("init")
    def db_init() -> None:
        with app.app_context():
            init_db()
        click.echo(f"Schema inicializado ({app.config['DB_SCHEMA']}).")

    @db_group.command("create")
    def db_create() -> None:
        try:
            created = create_database(app.config)
        except psycopg2.Error as exc:
            raise click.ClickException(f"Erro ao criar database: {exc}") from exc
        if created:
            click.echo(f"Database '{app.config['DB_NAME']}' criado.")
        else:
            click.echo(f"Database '{app.config['DB_NAME']}' ja existe.")
