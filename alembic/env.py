"""Alembic environment for the media_asset schema."""

from __future__ import annotations

import sys
from logging.config import fileConfig
from pathlib import Path

from dotenv import load_dotenv
from alembic import context
from sqlalchemy import engine_from_config, pool

# env.py lives in ./alembic/; the project root holds the src package
BASE_DIR = Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))

from src.medialib.db.db_models import Base  # noqa: E402
from src.medialib.settings import MediaSettings  # noqa: E402

load_dotenv(".env.local")
load_dotenv(".env", override=False)

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _database_url() -> str:
    """Prefer an explicit ``-x url=...``, then ``MEDIA_DATABASE_URL`` via settings."""
    override = context.get_x_argument(as_dictionary=True).get("url")
    if override:
        return override
    return MediaSettings().database_url


def _configure(**kwargs) -> None:
    url = kwargs.pop("url", None) or _database_url()
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        # SQLite cannot ALTER most column properties in place
        render_as_batch=url.startswith("sqlite"),
        url=url if "connection" not in kwargs else None,
        **kwargs,
    )


def run_migrations_offline() -> None:
    _configure(literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    url = _database_url()
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = url
    connectable = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)

    with connectable.connect() as connection:
        _configure(connection=connection, url=url)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
