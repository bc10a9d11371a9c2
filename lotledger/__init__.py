"""lotledger: tax-lot accounting and unrealized tax exposure."""

__version__ = "0.1.0"
