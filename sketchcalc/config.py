import os
from typing import List, Optional

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_MODEL_ID = "amazon.nova-lite-v1:0"
DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"
DEFAULT_RELAY_URL = "http://127.0.0.1:8000/api/analyzeImage"


class AWSCredentials(BaseModel):
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[str] = None
    AWS_SESSION_TOKEN: Optional[str] = None
    AWS_REGION: str = "us-east-1"


class Settings(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    credentials: AWSCredentials = Field(default_factory=AWSCredentials)
    model_id: str = DEFAULT_MODEL_ID
    temperature: float = Field(0.3, ge=0.0, le=1.0)
    cors_origins: List[str] = Field(default_factory=lambda: DEFAULT_CORS_ORIGINS.split(","))
    relay_url: str = DEFAULT_RELAY_URL
    http_timeout: Optional[float] = Field(None, gt=0)
    history_depth: Optional[int] = Field(None, ge=1)
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = Field(8000, ge=1, le=65535)

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_origins(cls, value):
        if isinstance(value, str):
            return [o.strip() for o in value.split(",") if o.strip()]
        return value

    @field_validator("log_level")
    @classmethod
    def check_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level {value!r}")
        return value


# Environment variable -> Settings field
_ENV_FIELDS = {
    "SKETCHCALC_MODEL_ID": "model_id",
    "SKETCHCALC_TEMPERATURE": "temperature",
    "SKETCHCALC_CORS_ORIGINS": "cors_origins",
    "SKETCHCALC_RELAY_URL": "relay_url",
    "SKETCHCALC_HTTP_TIMEOUT": "http_timeout",
    "SKETCHCALC_HISTORY_DEPTH": "history_depth",
    "SKETCHCALC_LOG_LEVEL": "log_level",
    "SKETCHCALC_HOST": "host",
    "SKETCHCALC_PORT": "port",
}

_CREDENTIAL_FIELDS = ("AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY", "AWS_SESSION_TOKEN", "AWS_REGION")


def load_settings(environ=None, dotenv: bool = True) -> Settings:
    """Build settings from the environment, after loading ``.env`` if present.

    Empty variables count as unset. Bad values raise ``pydantic.ValidationError``.
    """
    if dotenv:
        load_dotenv(find_dotenv(usecwd=True))
    env = os.environ if environ is None else environ

    values = {}
    for var, field in _ENV_FIELDS.items():
        raw = env.get(var, "").strip()
        if raw:
            values[field] = raw

    creds = {}
    for var in _CREDENTIAL_FIELDS:
        raw = env.get(var, "").strip()
        if raw:
            creds[var] = raw
    values["credentials"] = AWSCredentials(**creds)

    return Settings(**values)
