from functools import lru_cache

from pydantic_settings import BaseSettings
from pydantic import Field


class EnvSettings(BaseSettings):
    ldap_server: str = Field(..., alias="LDAP_SERVER")
    bind_username: str = Field(..., alias="LOGIN_USERNAME")
    bind_password: str = Field(..., alias="LOGIN_PASSWORD", repr=False)
    base_dn: str = Field(..., alias="BASE_DN")

    starttls: bool = Field(True, alias="LDAP_STARTTLS")
    tls_validate: bool = Field(False, alias="LDAP_TLS_VALIDATE")
    connect_timeout: float = Field(10.0, alias="LDAP_CONNECT_TIMEOUT", gt=0)

    retry_max_attempts: int = Field(5, alias="LDAP_RETRY_MAX_ATTEMPTS", ge=1)
    retry_delay: float = Field(0.5, alias="LDAP_RETRY_DELAY", ge=0)
    retry_backoff: float = Field(2.0, alias="LDAP_RETRY_BACKOFF", ge=1)
    retry_max_delay: float = Field(30.0, alias="LDAP_RETRY_MAX_DELAY", ge=0)

    provision_strict: bool = Field(True, alias="PROVISION_STRICT")

    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_dir: str = Field("data/logs", alias="LOG_DIR")

    host: str = Field("0.0.0.0", alias="APP_HOST")
    port: int = Field(8000, alias="APP_PORT")

    class Config:
        populate_by_name = True
        env_file = ".env"
        extra = "ignore"


@lru_cache(maxsize=1)
def get_env() -> EnvSettings:
    return EnvSettings()
