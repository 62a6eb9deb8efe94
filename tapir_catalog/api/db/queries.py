"""SQL queries for the catalog."""

POST_COLUMNS = """
    id, user_id, media_type, media_url, cloudinary_public_id, folder,
    text, country, city, lat, lng, created_at
"""

# Post queries
INSERT_POST = f"""
INSERT INTO posts (
    user_id, media_type, media_url, cloudinary_public_id, folder,
    text, country, city, lat, lng, created_at
) VALUES (
    $1, $2, $3, $4, $5, $6, $7, $8, $9, $10, COALESCE($11, NOW())
)
RETURNING {POST_COLUMNS};
"""

# The conflict target repeats the partial index predicate so Postgres can
# infer posts_cloudinary_public_id_unique as the arbiter.
UPSERT_IMPORTED_POST = """
INSERT INTO posts (
    user_id, media_type, media_url, cloudinary_public_id, folder,
    country, city, lat, lng, created_at
) VALUES (
    $1, $2, $3, $4, $5, $6, $7, $8, $9, $10
)
ON CONFLICT (cloudinary_public_id) WHERE cloudinary_public_id IS NOT NULL
DO NOTHING
RETURNING id;
"""

GET_POST_BY_ID = f"""
SELECT {POST_COLUMNS} FROM posts WHERE id = $1;
"""

UPDATE_POST = f"""
UPDATE posts
SET text = COALESCE($2, text),
    country = COALESCE($3, country),
    city = COALESCE($4, city),
    lat = COALESCE($5, lat),
    lng = COALESCE($6, lng),
    created_at = COALESCE($7, created_at)
WHERE id = $1
RETURNING {POST_COLUMNS};
"""

DELETE_POST = f"""
DELETE FROM posts WHERE id = $1
RETURNING {POST_COLUMNS};
"""

# Feed queries. The WHERE clause is assembled by the feed store; every
# variant orders by the composite (created_at, id) key.
FEED_PAGE = f"""
SELECT {POST_COLUMNS}
FROM posts
{{where_clause}}
ORDER BY created_at {{direction}}, id {{direction}}
LIMIT ${{limit_idx}};
"""

UNKNOWN_PLACE_CONDITION = (
    "(NULLIF(TRIM(country), '') IS NULL OR NULLIF(TRIM(city), '') IS NULL)"
)

# Places queries
GET_PLACES = """
SELECT
    NULLIF(TRIM(country), '') AS country,
    NULLIF(TRIM(city), '') AS city,
    COUNT(*)::int AS count
FROM posts
GROUP BY 1, 2
ORDER BY 1 NULLS LAST, 2 NULLS LAST;
"""
