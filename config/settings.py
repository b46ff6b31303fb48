"""Configuration settings for certweb."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # UI -> execution service
    api_url: str = "http://localhost:8084"
    submit_timeout_seconds: float = 3600.0
    log_poll_interval: float = 1.0

    # Classification data (empty = packaged table)
    classification_path: str = ""

    # Execution backend
    certsuite_config_path: str = "config/certsuite_config.yml"
    certsuite_command: str = "certsuite run"
    output_folder: str = "results"
    api_host: str = "0.0.0.0"
    api_port: int = 8084

    # Tracing Configuration
    tracing_enabled: bool = True
    log_level: str = "INFO"
    trace_max_events: int = 500

    model_config = {
        "env_prefix": "CERTWEB_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()
