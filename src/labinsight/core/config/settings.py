"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """LabInsight server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Default to loopback; lab data should not be served to the LAN by accident.
    labinsight_host: str = "127.0.0.1"
    labinsight_port: int = 8001
    labinsight_log_level: str = "info"
    # There is no auth layer, so non-loopback binds need an explicit opt-in.
    labinsight_allow_insecure_bind: bool = False

    # Catalogs (empty = bundled data under domains/health/)
    catalog_dir: str = ""
    rules_path: str = ""

    # Prediction
    top_n_diseases: int = 5
    child_age_threshold: int = 18


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
