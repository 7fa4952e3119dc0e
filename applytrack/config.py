from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Paths
    base_dir: Path = Path(__file__).resolve().parent.parent
    data_dir: Path = base_dir / "data"
    db_path: str = str(data_dir / "applications.duckdb")  # ":memory:" for throwaway runs

    # Server
    host: str = "127.0.0.1"
    port: int = 8765
    log_level: str = "INFO"

    # Identity is resolved upstream; we only read the trusted header
    user_header: str = "X-User-Id"

    model_config = {"env_prefix": "APPLYTRACK_"}


settings = Settings()
