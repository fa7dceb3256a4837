import os
from pathlib import Path


def _get_version() -> str:
    """Get version from VERSION file or environment variable."""
    env_version = os.getenv("APP_VERSION")
    if env_version:
        return env_version.strip()

    version_paths = [
        Path(__file__).parent.parent / "VERSION",  # ../VERSION from backend/
        Path(__file__).parent / "VERSION",          # VERSION in backend/
    ]

    for version_path in version_paths:
        if version_path.exists():
            return version_path.read_text().strip()

    return "0.0.0-dev"


def _get_database_url() -> str:
    """DATABASE_URL wins; otherwise build one from the DB_* variables."""
    url = os.getenv("DATABASE_URL")
    if url:
        return url

    host = os.getenv("DB_HOST", "localhost")
    port = os.getenv("DB_PORT", "5432")
    user = os.getenv("DB_USERNAME", "cookbook")
    password = os.getenv("DB_PASSWORD", "cookbook")
    name = os.getenv("DB_NAME", "cookbook")
    return f"postgresql://{user}:{password}@{host}:{port}/{name}"


class Settings:
    def __init__(self):
        self.version: str = _get_version()

        # PostgreSQL database settings
        self.database_url: str = _get_database_url()
        self.db_pool_min_size: int = int(os.getenv("DB_POOL_MIN_SIZE", "2"))
        self.db_pool_max_size: int = int(os.getenv("DB_POOL_MAX_SIZE", "20"))

        # JWT_SECRET must be set in production - generate with: openssl rand -base64 32
        jwt_secret = os.getenv("JWT_SECRET")
        if not jwt_secret:
            import warnings
            warnings.warn(
                "JWT_SECRET not set! Using insecure default. "
                "Set JWT_SECRET environment variable in production.",
                RuntimeWarning
            )
            jwt_secret = "INSECURE_DEFAULT_CHANGE_ME_IN_PRODUCTION"
        self.jwt_secret: str = jwt_secret
        self.jwt_algorithm: str = "HS256"
        self.jwt_expire_days: int = int(os.getenv("JWT_EXPIRE_DAYS", "7"))

        self.cors_origins: str = os.getenv("CORS_ORIGINS", "http://localhost:5173")
        self.port: int = int(os.getenv("PORT", "3001"))

        # External recipe search (Forkify)
        self.forkify_base_url: str = os.getenv(
            "FORKIFY_BASE_URL", "https://forkify-api.herokuapp.com/api"
        ).rstrip("/")
        self.external_search_timeout: float = float(os.getenv("EXTERNAL_SEARCH_TIMEOUT", "4.0"))

        # Pagination - client supplied limits are clamped to max_page_limit
        self.default_page_limit: int = int(os.getenv("DEFAULT_PAGE_LIMIT", "10"))
        self.max_page_limit: int = int(os.getenv("MAX_PAGE_LIMIT", "100"))
        self.local_search_limit: int = int(os.getenv("LOCAL_SEARCH_LIMIT", "50"))

        # Debug Settings (default false for security, set DEBUG_MODE=true for development)
        self.debug_mode: bool = os.getenv("DEBUG_MODE", "false").lower() == "true"
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO")
        self.debug_log_db_queries: bool = os.getenv("DEBUG_LOG_DB_QUERIES", "false").lower() == "true"
        self.debug_log_auth: bool = os.getenv("DEBUG_LOG_AUTH", "true").lower() == "true"

    def get_debug_config(self) -> dict:
        """Get all debug-related configuration for diagnostics."""
        return {
            "debug_mode": self.debug_mode,
            "log_level": self.log_level,
            "debug_log_db_queries": self.debug_log_db_queries,
            "debug_log_auth": self.debug_log_auth,
        }

settings = Settings()
