# Nombre de archivo: env.py
# Ubicación de archivo: db/alembic/env.py
# Descripción: Script de arranque para ejecutar migraciones Alembic de la API de coordinación

from __future__ import annotations

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from core.config import get_settings
from db.base import Base
import db.models.coordinacion  # noqa: F401  registra las tablas en Base.metadata


config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# DATABASE_URL / POSTGRES_* tienen prioridad sobre alembic.ini
config.set_main_option("sqlalchemy.url", get_settings().database.url)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
