from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_STATIC_DIR = Path(__file__).resolve().parents[2] / "public"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        protected_namespaces=(),
    )

    env: Literal["local", "prod", "test"] = Field(default="local", alias="ENV")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    aws_region: str = Field(default="ap-southeast-2", alias="AWS_REGION")

    s3_endpoint: HttpUrl | None = Field(default=None, alias="S3_ENDPOINT_URL")
    s3_access_key: str | None = Field(default=None, alias="S3_ACCESS_KEY")
    s3_secret_key: str | None = Field(default=None, alias="S3_SECRET_KEY")
    upload_bucket: str = Field(default="", alias="UPLOAD_BUCKET")
    upload_prefix: str = Field(default="chat_uploads/", alias="UPLOAD_PREFIX")
    upload_url_ttl: int = Field(default=60, gt=0, alias="UPLOAD_URL_TTL")
    default_user_id: str = Field(
        default="demo",
        pattern=r"^[A-Za-z0-9_-]+$",
        alias="DEFAULT_USER_ID",
    )

    bedrock_agent_id: str = Field(default="", alias="BEDROCK_AGENT_ID")
    bedrock_agent_alias_id: str = Field(default="", alias="BEDROCK_AGENT_ALIAS")
    default_session_id: str = Field(default="demo-session", alias="DEFAULT_SESSION_ID")
    demo_identity: str = Field(default="demo-user", alias="DEMO_IDENTITY")
    force_demo_identity: bool = Field(default=True, alias="FORCE_DEMO_IDENTITY")

    static_dir: Path = Field(default=DEFAULT_STATIC_DIR, alias="STATIC_DIR")
    max_body_bytes: int = Field(default=2 * 1024 * 1024, gt=0, alias="MAX_BODY_BYTES")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3000, alias="PORT")
    strict_startup: bool = Field(default=False, alias="STRICT_STARTUP")

    @property
    def agent_configured(self) -> bool:
        return bool(self.bedrock_agent_id and self.bedrock_agent_alias_id)

    @property
    def bucket_configured(self) -> bool:
        return bool(self.upload_bucket)

    def missing_required(self) -> list[str]:
        """Environment variables that must be set before the relay can serve traffic."""
        required = {
            "BEDROCK_AGENT_ID": self.bedrock_agent_id,
            "BEDROCK_AGENT_ALIAS": self.bedrock_agent_alias_id,
            "UPLOAD_BUCKET": self.upload_bucket,
        }
        return [name for name, value in required.items() if not value]


@lru_cache
def get_settings() -> Settings:
    return Settings()
