"""SubDB client settings models"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, Field, field_validator

from subdb.protocol import build_user_agent
from subdb.utils import get_version

DEFAULT_BASE_URL = "http://api.thesubdb.com/"


def validate_http_url(v: Any) -> str:
    if isinstance(v, str):
        if not v.lower().startswith(("http://", "https://")):
            raise ValueError("Must be a valid http(s) URL")
        return v
    raise ValueError("Must be a string")


HttpUrl = Annotated[str, BeforeValidator(validate_http_url)]


class SubDBSettings(BaseModel):
    base_url: HttpUrl = Field(
        default=DEFAULT_BASE_URL, description="SubDB API base URL"
    )
    client_name: str = Field(
        default="subdb-python", description="Client name sent in the User-Agent"
    )
    client_version: str = Field(
        default_factory=get_version, description="Client version sent in the User-Agent"
    )
    client_url: str = Field(
        default="https://github.com/subdb/subdb-python",
        description="Client homepage sent in the User-Agent",
    )
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
    retries: int = Field(
        default=2, ge=0, description="Retries for 429/5xx responses and network errors"
    )
    backoff_factor: float = Field(default=0.3, ge=0, description="Retry backoff factor")
    enable_network_tracing: bool = Field(
        default=False, description="Log every request and response at NETWORK level"
    )
    log_level: Literal[
        "TRACE", "NETWORK", "DEBUG", "INFO", "SUBDB", "WARNING", "ERROR", "CRITICAL"
    ] = Field(default="INFO", description="Log level applied by configure_logging")

    @field_validator("client_name", "client_version")
    def require_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Must not be empty")
        return v

    @field_validator("log_level", mode="before")
    def normalize_log_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper() or "INFO"
        return v

    @property
    def user_agent(self) -> str:
        return build_user_agent(self.client_name, self.client_version, self.client_url)
