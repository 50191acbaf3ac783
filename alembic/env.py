import os
from logging.config import fileConfig
from sqlalchemy import create_engine, pool
from alembic import context

# --- 1. Import your Base and Models ---
from hapa.db.base import Base
from hapa.models.user import User  # noqa: F401
from hapa.models.category import Category  # noqa: F401
from hapa.models.media import Media  # noqa: F401
from hapa.models.post import Post  # noqa: F401
from hapa.models.media_content_submission import MediaContentSubmission  # noqa: F401
from hapa.models.form_media import FormMedia  # noqa: F401
from hapa.models.contact_submission import ContactSubmission  # noqa: F401
from hapa.models.feedback import Feedback  # noqa: F401

# this is the Alembic Config object
config = context.config

# --- 2. Fetch and Set Database URL from ENV ---
database_url = os.getenv("DATABASE_URL")
if not database_url:
    raise RuntimeError("DATABASE_URL environment variable not set")

config.set_main_option("sqlalchemy.url", database_url)

# Interpret the config file for Python logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
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
    """Run migrations in 'online' mode."""
    connectable = create_engine(config.get_main_option("sqlalchemy.url"), poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=connection.dialect.name == "sqlite",
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
