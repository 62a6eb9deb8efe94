"""Idempotent schema migrations, applied at startup."""

import logging

from .connection import transaction

logger = logging.getLogger(__name__)

MIGRATIONS = [
    'CREATE EXTENSION IF NOT EXISTS "pgcrypto"',
    # Users are owned by the auth service; the catalog only needs the key.
    """
    CREATE TABLE IF NOT EXISTS users (
        id uuid PRIMARY KEY DEFAULT gen_random_uuid(),
        email text,
        name text,
        role text NOT NULL DEFAULT 'USER',
        created_at timestamptz NOT NULL DEFAULT now()
    )
    """,
    # One media asset = one post
    """
    CREATE TABLE IF NOT EXISTS posts (
        id uuid PRIMARY KEY DEFAULT gen_random_uuid(),
        user_id uuid NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        media_type text NOT NULL,
        media_url text NOT NULL,
        cloudinary_public_id text,
        folder text,
        text text,
        country text,
        city text,
        lat double precision,
        lng double precision,
        created_at timestamptz NOT NULL DEFAULT now()
    )
    """,
    """
    DO $$
    BEGIN
        IF NOT EXISTS (
            SELECT 1 FROM pg_constraint WHERE conname = 'posts_media_type_check'
        ) THEN
            ALTER TABLE posts
            ADD CONSTRAINT posts_media_type_check
            CHECK (media_type IN ('PHOTO', 'VIDEO', 'AUDIO'));
        END IF;
    END $$;
    """,
    # Partial: locally created posts have no public id and must not collide
    """
    CREATE UNIQUE INDEX IF NOT EXISTS posts_cloudinary_public_id_unique
    ON posts (cloudinary_public_id)
    WHERE cloudinary_public_id IS NOT NULL
    """,
    "CREATE INDEX IF NOT EXISTS posts_created_at_id_idx ON posts (created_at, id)",
    "CREATE INDEX IF NOT EXISTS posts_country_city_idx ON posts (country, city)",
    "CREATE INDEX IF NOT EXISTS posts_user_id_idx ON posts (user_id)",
]


async def run_migrations() -> None:
    """Apply all migrations in one transaction so a failure never half-migrates."""
    async with transaction() as conn:
        for statement in MIGRATIONS:
            await conn.execute(statement)
    logger.info("Applied %d schema statements", len(MIGRATIONS))
