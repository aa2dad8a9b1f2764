from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    data_dir: Path = Path.home() / ".studydeck" / "data"
    sqlite_filename: str = "studydeck.db"
    max_interval_hours: int = 24 * 365 * 10  # ten years
    grammar_category_name: str = "grammar"
    translation_base_url: str = "https://lingva.ml/api/v1"
    translation_source_lang: str = "ja"
    translation_pivot_lang: str = "en"
    translation_timeout_seconds: float = 10.0
    cors_origins: list[str] = ["*"]
    log_level: str = "warning"

    model_config = {"env_prefix": "STUDYDECK_"}


settings = Settings()
