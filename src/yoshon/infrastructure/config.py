"""Runtime settings read from the environment.

A ``.env`` file in the working directory (or any parent) is loaded
first; real environment variables win over it. Every default here is
for local development only.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import find_dotenv, load_dotenv
from sqlalchemy.engine import URL

from yoshon.domain.exceptions import ValidationError

DEFAULT_ADMIN_PASSWORD = "change-me"

BACKEND_JSON = "json"
BACKEND_SQL = "sql"


def _split_origins(raw: str) -> list[str]:
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or ["*"]


@dataclass(frozen=True)
class Settings:

    store_backend: str = BACKEND_JSON
    data_file: Path = Path("data/products.json")
    database_url: str | None = None
    db_host: str = "localhost"
    db_port: int = 3306
    db_user: str = "root"
    db_password: str = ""
    db_name: str = "yoshon"
    admin_password: str = DEFAULT_ADMIN_PASSWORD
    host: str = "127.0.0.1"
    port: int = 3000
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    def __post_init__(self) -> None:
        if self.store_backend not in (BACKEND_JSON, BACKEND_SQL):
            raise ValidationError(
                f"STORE_BACKEND must be '{BACKEND_JSON}' or '{BACKEND_SQL}', "
                f"got '{self.store_backend}'"
            )

    @classmethod
    def from_env(cls) -> Settings:
        load_dotenv(find_dotenv(usecwd=True))
        env = os.environ
        try:
            db_port = int(env.get("DB_PORT", "3306"))
            port = int(env.get("PORT", "3000"))
        except ValueError as exc:
            raise ValidationError(f"DB_PORT and PORT must be integers: {exc}") from exc

        return cls(
            store_backend=env.get("STORE_BACKEND", BACKEND_JSON).strip().lower(),
            data_file=Path(env.get("DATA_FILE", "data/products.json")),
            database_url=env.get("DATABASE_URL") or None,
            db_host=env.get("DB_HOST", "localhost"),
            db_port=db_port,
            db_user=env.get("DB_USER", "root"),
            db_password=env.get("DB_PASS", ""),
            db_name=env.get("DB_NAME", "yoshon"),
            admin_password=env.get("ADMIN_PASSWORD", DEFAULT_ADMIN_PASSWORD),
            host=env.get("HOST", "127.0.0.1"),
            port=port,
            cors_origins=_split_origins(env.get("CORS_ORIGINS", "*")),
        )

    @property
    def uses_default_password(self) -> bool:
        return self.admin_password == DEFAULT_ADMIN_PASSWORD

    def sqlalchemy_url(self, *, with_database: bool = True) -> str | URL:
        """Return DATABASE_URL if set, else a MySQL URL built from DB_* parts.

        ``with_database=False`` leaves the database name off, for creating
        the database itself.
        """
        if self.database_url:
            return self.database_url
        return URL.create(
            "mysql+pymysql",
            username=self.db_user,
            password=self.db_password or None,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name if with_database else None,
            query={"charset": "utf8mb4"},
        )
