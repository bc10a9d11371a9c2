"""Normalization layer: transactions folded into holdings and lots."""

from lotledger.normalization.ledger import LedgerBuilder

__all__ = ["LedgerBuilder"]
