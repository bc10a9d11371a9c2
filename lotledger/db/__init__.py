"""Database layer for lotledger."""

from lotledger.db.repository import PortfolioRepository
from lotledger.db.schema import create_schema

__all__ = ["PortfolioRepository", "create_schema"]
