"""Opens DuckDB connections for the segment store."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import duckdb

from tradeseg.core.exceptions import StorageError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from duckdb import DuckDBPyConnection

    from tradeseg.core.config import StorageConfig

MEMORY_DATABASE = ":memory:"


@dataclass(frozen=True)
class DuckDBFactoryConfig:
    """Target database plus the DuckDB settings passed to ``duckdb.connect``."""

    database: str = MEMORY_DATABASE
    read_only: bool = False
    settings: dict[str, Any] = field(default_factory=lambda: {"threads": 1})

    @classmethod
    def from_storage(cls, storage: StorageConfig) -> DuckDBFactoryConfig:
        return cls(database=str(storage.database), settings={"threads": storage.threads})

    @property
    def is_memory(self) -> bool:
        return self.database == MEMORY_DATABASE or self.database.startswith(":memory:")


class TradeSegDuckDBFactory:
    """Creates configured connections; connection failures surface as :class:`StorageError`."""

    def __init__(self, config: DuckDBFactoryConfig | None = None) -> None:
        self._config = config or DuckDBFactoryConfig()

    @property
    def config(self) -> DuckDBFactoryConfig:
        return self._config

    @property
    def database(self) -> str:
        return self._config.database

    def create_connection(self) -> DuckDBPyConnection:
        if not self._config.is_memory and not self._config.read_only:
            Path(self.database).parent.mkdir(parents=True, exist_ok=True)
        try:
            return duckdb.connect(
                database=self.database,
                read_only=self._config.read_only,
                config=dict(self._config.settings),
            )
        except duckdb.Error as exc:
            raise StorageError(
                f"cannot open database '{self.database}': {exc}",
                operation="connect",
                details={"database": self.database},
            ) from exc

    @contextmanager
    def connection(self) -> Iterator[DuckDBPyConnection]:
        conn = self.create_connection()
        try:
            yield conn
        finally:
            conn.close()


__all__ = ["DuckDBFactoryConfig", "MEMORY_DATABASE", "TradeSegDuckDBFactory"]
