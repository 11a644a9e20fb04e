import os
from functools import lru_cache
from pathlib import Path
from typing import List, Literal, Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings

PACKAGE_STATIC_DIR = Path(__file__).resolve().parent / "static"

DEFAULT_STATIC_ALIASES = [
    "/index.html",
    "/trivia",
    "/Trivia",
    "/TRIVIA",
    "/triva",
    "/trivai",
    "/game",
    "/Game",
]


class Settings(BaseSettings):
    base_url: str = Field(..., min_length=1, alias="BASE_URL")
    bearer_token: Optional[str] = Field(None, alias="SF_BEARER_TOKEN")
    company_id: Optional[str] = Field(None, alias="COMPANY_ID")
    default_locale: str = Field("en-US", alias="DEFAULT_LOCALE")
    external_code_source: Literal["userId", "username"] = Field("userId", alias="EXTERNAL_CODE_SOURCE")
    score_entity: str = Field("cust_TriviaScore", min_length=1, alias="SCORE_ENTITY")
    score_streak_enabled: bool = Field(True, alias="SCORE_STREAK_ENABLED")
    odata_path: str = Field("/odata/v2", alias="ODATA_PATH")
    upstream_timeout_seconds: float = Field(30.0, gt=0, alias="UPSTREAM_TIMEOUT_SECONDS")
    lookup_timeout_seconds: float = Field(15.0, gt=0, alias="LOOKUP_TIMEOUT_SECONDS")
    static_dir: Path = Field(PACKAGE_STATIC_DIR, alias="STATIC_DIR")
    static_aliases: List[str] = Field(default_factory=lambda: list(DEFAULT_STATIC_ALIASES), alias="STATIC_ALIASES")
    host: str = Field("0.0.0.0", alias="HOST")
    port: int = Field(3000, alias="PORT")

    class Config:
        env_file = os.getenv("ENV_FILE", ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"

    @property
    def service_root(self) -> str:
        return f"{self.base_url.rstrip('/')}/{self.odata_path.strip('/')}"


@lru_cache
def get_settings() -> Settings:
    try:
        return Settings()  # type: ignore[call-arg]
    except ValidationError as exc:
        raise RuntimeError(f"Invalid backend configuration: {exc}") from exc
