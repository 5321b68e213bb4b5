from functools import lru_cache

from psycopg.conninfo import conninfo_to_dict
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL, make_url

POSTGRES_DRIVER = "postgresql+psycopg"

# libpq keywords that map onto URL components; everything else goes to the query.
_CONNINFO_URL_KEYS = {"host", "port", "user", "password", "dbname"}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_ignore_empty=True,
        extra="ignore",
    )

    app_name: str = "Staff Directory"
    log_level: str = "INFO"

    # A full connection string takes priority over the discrete DB_* fields.
    database_url: str = ""
    db_host: str = "learning-postgres"
    db_port: int = 5432
    db_user: str = "postgres"
    db_password: str = "mysecretpassword"
    db_name: str = "learningdb"
    db_sslmode: str = "disable"

    host: str = "0.0.0.0"
    port: int = Field(default=8086, ge=1, le=65535)

    @property
    def resolved_database_url(self) -> URL:
        """
        Connection descriptor for the engine:
          1) DATABASE_URL if provided (URL or libpq "key=value" form)
          2) otherwise DB_HOST/DB_PORT/DB_USER/DB_PASSWORD/DB_NAME
        """
        raw = self.database_url.strip()
        if raw:
            return normalize_database_url(raw)

        return URL.create(
            POSTGRES_DRIVER,
            username=self.db_user,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
            query={"sslmode": self.db_sslmode},
        )


def normalize_database_url(raw: str) -> URL:
    """Turn a user-supplied connection string into a SQLAlchemy URL.

    ``postgres://`` and ``postgresql://`` (as handed out by most hosting
    providers) are pinned to the psycopg driver. Strings without a scheme are
    treated as libpq keyword/value connection strings.
    """
    if "://" not in raw:
        params = conninfo_to_dict(raw)
        port = params.get("port")
        return URL.create(
            POSTGRES_DRIVER,
            username=params.get("user"),
            password=params.get("password"),
            host=params.get("host"),
            port=int(port) if port else None,
            database=params.get("dbname"),
            query={
                key: str(value)
                for key, value in params.items()
                if key not in _CONNINFO_URL_KEYS
            },
        )

    url = make_url(raw)
    if url.drivername in ("postgres", "postgresql"):
        url = url.set(drivername=POSTGRES_DRIVER)
    return url


@lru_cache
def get_settings() -> Settings:
    return Settings()
