from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    data_dir: Path = Path.home() / ".recallbook" / "data"
    sqlite_filename: str = "recallbook.db"
    host: str = "127.0.0.1"
    port: int = 0  # 0 = pick a free port
    log_level: str = "info"
    user_header: str = "X-User-Id"  # set by the upstream identity proxy
    due_limit_default: int = 50
    cors_origins: list[str] = ["*"]

    model_config = {"env_prefix": "RECALLBOOK_"}


settings = Settings()
