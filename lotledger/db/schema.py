"""SQLite database schema definition."""

import sqlite3
from pathlib import Path

SCHEMA_VERSION = 1

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS assets (
    id TEXT PRIMARY KEY,
    symbol TEXT NOT NULL,
    name TEXT NOT NULL,
    type TEXT NOT NULL,
    currency TEXT NOT NULL DEFAULT 'USD',
    current_price TEXT,
    price_updated_at TEXT,
    valuation_method TEXT NOT NULL DEFAULT 'AUTO',
    rental_info TEXT,
    region TEXT,
    sector TEXT
);

CREATE TABLE IF NOT EXISTS holdings (
    id TEXT PRIMARY KEY,
    portfolio_id TEXT NOT NULL,
    asset_id TEXT NOT NULL REFERENCES assets(id),
    quantity TEXT NOT NULL,
    cost_basis TEXT NOT NULL,
    average_cost TEXT NOT NULL,
    current_value TEXT NOT NULL,
    unrealized_gain TEXT NOT NULL,
    unrealized_gain_percent TEXT NOT NULL,
    ownership_percentage TEXT NOT NULL DEFAULT '100',
    last_updated TEXT
);

CREATE TABLE IF NOT EXISTS tax_lots (
    id TEXT NOT NULL,
    holding_id TEXT NOT NULL REFERENCES holdings(id) ON DELETE CASCADE,
    position INTEGER NOT NULL,
    quantity TEXT NOT NULL,
    purchase_price TEXT NOT NULL,
    purchase_date TEXT NOT NULL,
    sold_quantity TEXT NOT NULL DEFAULT '0',
    remaining_quantity TEXT NOT NULL,
    lot_type TEXT NOT NULL DEFAULT 'standard',
    grant_date TEXT,
    vesting_date TEXT,
    discount_percent TEXT,
    market_price_at_purchase TEXT,
    bargain_element TEXT,
    shares_withheld TEXT,
    total_cost TEXT,
    notes TEXT,
    PRIMARY KEY (holding_id, id)
);

CREATE TABLE IF NOT EXISTS transactions (
    id TEXT PRIMARY KEY,
    portfolio_id TEXT NOT NULL,
    asset_id TEXT NOT NULL,
    type TEXT NOT NULL,
    trade_date TEXT NOT NULL,
    payload TEXT NOT NULL,
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_holdings_portfolio ON holdings(portfolio_id);
CREATE INDEX IF NOT EXISTS idx_transactions_asset ON transactions(asset_id, trade_date);
"""


def create_schema(db_path: Path) -> sqlite3.Connection:
    """Create the database schema. Returns the connection."""
    conn = sqlite3.connect(str(db_path))
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    conn.executescript(SCHEMA_SQL)
    conn.execute(
        "INSERT OR IGNORE INTO schema_version (version) VALUES (?)",
        (SCHEMA_VERSION,),
    )
    conn.commit()
    return conn
