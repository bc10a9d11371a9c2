"""Ingestion of hand-written portfolio files."""

from lotledger.ingestion.manual import ImportResult, ManualAdapter

__all__ = ["ImportResult", "ManualAdapter"]
