"""DuckDB storage helpers."""

from tradeseg.core.data.storage.duckdb_factory import MEMORY_DATABASE, DuckDBFactoryConfig, TradeSegDuckDBFactory

__all__ = ["DuckDBFactoryConfig", "MEMORY_DATABASE", "TradeSegDuckDBFactory"]
