from __future__ import annotations

import os
from dataclasses import dataclass

from sqlalchemy.engine import URL, make_url

from resource_model.errors import ConfigurationError

_DEFAULT_PORT = 3306


@dataclass(frozen=True)
class MysqlSettings:
    """Connection settings, read from the environment by ``from_env``.

    A complete ``DATABASE_URL`` wins over the individual ``MYSQL_*`` variables.
    """

    username: str = "root"
    password: str = ""
    host: str = "localhost"
    port: int = _DEFAULT_PORT
    database: str = ""
    database_url: str | None = None

    @classmethod
    def from_env(cls) -> MysqlSettings:
        raw_port = os.getenv("MYSQL_PORT", str(_DEFAULT_PORT))
        try:
            port = int(raw_port)
        except ValueError:
            raise ConfigurationError(f"MYSQL_PORT must be an integer, got {raw_port!r}") from None

        return cls(
            username=os.getenv("MYSQL_USERNAME", "root"),
            password=os.getenv("MYSQL_PASSWORD", ""),
            host=os.getenv("MYSQL_HOST", "localhost"),
            port=port,
            database=os.getenv("MYSQL_DATABASE", ""),
            database_url=os.getenv("DATABASE_URL") or None,
        )

    def url(self) -> str:
        if self.database_url:
            return self.database_url
        return self._url().render_as_string(hide_password=False)

    def redacted_url(self) -> str:
        """The URL with any password masked, for log and console output."""
        if self.database_url:
            return make_url(self.database_url).render_as_string(hide_password=True)
        return self._url().render_as_string(hide_password=True)

    def _url(self) -> URL:
        return URL.create(
            drivername="mysql+aiomysql",
            username=self.username,
            password=self.password or None,
            host=self.host,
            port=self.port,
            database=self.database,
        )
