from __future__ import annotations

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from sistema_nfe.db_migrations import to_sqlalchemy_url


config = context.config

if config.config_file_name is not None and not config.attributes.get("skip_logging_config"):
    fileConfig(config.config_file_name, disable_existing_loggers=False)


def _database_url() -> str:
    # `flask db` always sets sqlalchemy.url; DATABASE_URL serves plain `alembic` runs
    return to_sqlalchemy_url(config.get_main_option("sqlalchemy.url") or os.environ.get("DATABASE_URL", ""))


# the schema is raw DDL shared with sistema_nfe.db, so there is no metadata to autogenerate from
if context.is_offline_mode():
    context.configure(url=_database_url(), target_metadata=None, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()
else:
    engine = create_engine(_database_url(), poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=None)
        with context.begin_transaction():
            context.run_migrations()
