import os


def _pg_dsn() -> str | None:
    """Build a PostgreSQL URL from ``DB_*`` variables when ``DB_HOST`` is set."""
    host = os.environ.get("DB_HOST")
    if not host:
        return None
    port = os.environ.get("DB_PORT", "5432")
    user = os.environ.get("DB_USER", "postgres")
    password = os.environ.get("DB_PASSWORD", "")
    dbname = os.environ.get("DB_NAME", "postgres")
    return f"postgresql+psycopg2://{user}:{password}@{host}:{port}/{dbname}"


def _flag(name: str) -> bool:
    return os.environ.get(name, "").lower() in ("1", "true", "yes")


DATABASE_URL = os.environ.get("DATABASE_URL") or _pg_dsn() or "sqlite:///./bandset.db"

# Sliding session lifetime in seconds (default one week)
SESSION_DURATION = int(os.environ.get("SESSION_DURATION", 7 * 24 * 3600))

# Add the ``Secure`` flag to the session cookie
SESSION_COOKIE_SECURE = _flag("SESSION_COOKIE_SECURE")

INVITATION_TTL_DAYS = int(os.environ.get("INVITATION_TTL_DAYS", 7))

# Maximum allowed size for HTTP request bodies (default 1 MB)
MAX_REQUEST_SIZE = int(os.environ.get("MAX_REQUEST_SIZE", 1 * 1024 * 1024))

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
