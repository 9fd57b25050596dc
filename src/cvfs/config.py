from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    host: str = "127.0.0.1"
    port: int = 5000
    debug: bool = False
    log_level: str | None = None  # Overrides the level implied by debug, e.g. "WARNING"
    cors_origins: list[str] = []
    data_path: str = "data"  # Directory holding users.json and shares.json
    vfs_root_path: str = "data/vfs"  # Every user's sandbox root is a subdirectory named by user id
    session_ttl_seconds: int = 300  # Sliding inactivity window of a session
    session_sweep_interval_seconds: float = 60  # How often expired sessions are purged
    broadcast_interval_seconds: float = 1.0  # Listing refresh period of each subscribed connection
    bcrypt_rounds: int = 12

    model_config = {
        "env_file": [".env"],
        "env_prefix": "CVFS_",
        "extra": "ignore",
    }
