# snipvault/config.py
from pathlib import Path
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # Storage: every operation is confined beneath DATA_ROOT
    DATA_ROOT: Path = Path("./data")
    MAX_PATH_LENGTH: int = 1000
    MAX_FILE_SIZE: int = 10 * 1024 * 1024

    # Create the "Start Here" snippets and default board on first load
    SEED_DEFAULTS: bool = True

    # Security event log (kept outside DATA_ROOT)
    AUDIT_DIR: Path = Path("./.audit")
    AUDIT_MAX_BYTES: int = 1_000_000  # rotate when file exceeds this size

    # Request rate limiting (per caller identity)
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_MAX_REQUESTS: int = 100
    RATE_LIMIT_WINDOW_SEC: float = 60.0
    RATE_LIMIT_MAX_KEYS: int = 10_000
    RATE_LIMIT_SWEEP_EVERY: int = 1_000

    # Redis (optional) - shared rate-limit windows across processes
    REDIS_URL: str | None = None

    # HTTP MCP transport
    MCP_HTTP_ENABLED: bool = True
    MCP_HTTP_HOST: str = "127.0.0.1"
    MCP_HTTP_PORT: int = 8080
    MCP_HTTP_PATH: str = "/mcp"

    # Security: Bearer token and allowed origins
    MCP_HTTP_BEARER_TOKEN: str = "change-me"         # set in .env for prod
    MCP_HTTP_ALLOWED_ORIGINS: str = "http://localhost, http://127.0.0.1"
    MCP_HTTP_ALLOW_NO_ORIGIN: bool = True            # allow non-browser clients

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
