"""Data access layer for lotledger.

Decimals are stored as TEXT and dates as ISO strings; rows are validated back
into pydantic models on the way out. A holding and its lots are always
written together in one sqlite transaction, so readers never see a holding
whose summary disagrees with its lots.
"""

import json
import sqlite3

from lotledger.exceptions import AssetNotFoundError, HoldingNotFoundError
from lotledger.models.portfolio import Asset, Holding, TaxLot
from lotledger.models.transactions import TRANSACTION_ADAPTER, Transaction


class PortfolioRepository:
    """CRUD operations for assets, holdings, lots, and transactions."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    # --- Assets ---

    def save_asset(self, asset: Asset) -> None:
        """Insert or update an asset."""
        self.conn.execute(
            """INSERT INTO assets
               (id, symbol, name, type, currency, current_price, price_updated_at,
                valuation_method, rental_info, region, sector)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
               ON CONFLICT(id) DO UPDATE SET
                symbol = excluded.symbol,
                name = excluded.name,
                type = excluded.type,
                currency = excluded.currency,
                current_price = excluded.current_price,
                price_updated_at = excluded.price_updated_at,
                valuation_method = excluded.valuation_method,
                rental_info = excluded.rental_info,
                region = excluded.region,
                sector = excluded.sector""",
            (
                asset.id,
                asset.symbol,
                asset.name,
                asset.type.value,
                asset.currency,
                _text(asset.current_price),
                _text(asset.price_updated_at),
                asset.valuation_method.value,
                asset.rental_info.model_dump_json() if asset.rental_info else None,
                asset.region,
                asset.sector,
            ),
        )
        self.conn.commit()

    def get_asset(self, asset_id: str) -> Asset:
        cursor = self.conn.execute("SELECT * FROM assets WHERE id = ?", (asset_id,))
        rows = _rows(cursor)
        if not rows:
            raise AssetNotFoundError(asset_id)
        return _asset(rows[0])

    def find_asset_by_symbol(self, symbol: str) -> Asset:
        cursor = self.conn.execute(
            "SELECT * FROM assets WHERE UPPER(symbol) = UPPER(?)", (symbol,)
        )
        rows = _rows(cursor)
        if not rows:
            raise AssetNotFoundError(symbol)
        return _asset(rows[0])

    def list_assets(self) -> list[Asset]:
        cursor = self.conn.execute("SELECT * FROM assets ORDER BY symbol")
        return [_asset(row) for row in _rows(cursor)]

    # --- Holdings ---

    def save_holding(self, holding: Holding) -> None:
        """Replace a holding and its full lot list atomically."""
        with self.conn:
            self._write_holding(holding)

    def commit_transaction(self, transaction: Transaction, holding: Holding) -> None:
        """Record a transaction together with the holding it produced.

        Both writes land in one sqlite transaction; on any error neither does.
        """
        with self.conn:
            self._write_transaction(transaction)
            self._write_holding(holding)

    def get_holding(self, holding_id: str) -> Holding:
        cursor = self.conn.execute("SELECT * FROM holdings WHERE id = ?", (holding_id,))
        rows = _rows(cursor)
        if not rows:
            raise HoldingNotFoundError(holding_id)
        return self._hydrate(rows[0])

    def find_holding(self, portfolio_id: str, asset_id: str) -> Holding:
        cursor = self.conn.execute(
            "SELECT * FROM holdings WHERE portfolio_id = ? AND asset_id = ?",
            (portfolio_id, asset_id),
        )
        rows = _rows(cursor)
        if not rows:
            raise HoldingNotFoundError(f"{portfolio_id}/{asset_id}")
        return self._hydrate(rows[0])

    def list_holdings(self, portfolio_id: str | None = None) -> list[Holding]:
        if portfolio_id:
            cursor = self.conn.execute(
                "SELECT * FROM holdings WHERE portfolio_id = ? ORDER BY id", (portfolio_id,)
            )
        else:
            cursor = self.conn.execute("SELECT * FROM holdings ORDER BY id")
        return [self._hydrate(row) for row in _rows(cursor)]

    def get_lots(self, holding_id: str) -> list[TaxLot]:
        cursor = self.conn.execute(
            "SELECT * FROM tax_lots WHERE holding_id = ? ORDER BY position", (holding_id,)
        )
        lots = []
        for row in _rows(cursor):
            row.pop("holding_id")
            row.pop("position")
            lots.append(TaxLot.model_validate(row))
        return lots

    # --- Transactions ---

    def save_transaction(self, transaction: Transaction) -> None:
        with self.conn:
            self._write_transaction(transaction)

    def list_transactions(
        self, portfolio_id: str | None = None, asset_id: str | None = None
    ) -> list[Transaction]:
        """Transactions in trade-date order, optionally filtered."""
        query = "SELECT payload FROM transactions"
        clauses = []
        params: list[str] = []
        if portfolio_id:
            clauses.append("portfolio_id = ?")
            params.append(portfolio_id)
        if asset_id:
            clauses.append("asset_id = ?")
            params.append(asset_id)
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY trade_date, created_at"
        cursor = self.conn.execute(query, params)
        return [TRANSACTION_ADAPTER.validate_json(row[0]) for row in cursor.fetchall()]

    # --- Internals ---

    def _hydrate(self, row: dict) -> Holding:
        row["lots"] = self.get_lots(row["id"])
        return Holding.model_validate(row)

    def _write_holding(self, holding: Holding) -> None:
        self.conn.execute("DELETE FROM tax_lots WHERE holding_id = ?", (holding.id,))
        self.conn.execute("DELETE FROM holdings WHERE id = ?", (holding.id,))
        self.conn.execute(
            """INSERT INTO holdings
               (id, portfolio_id, asset_id, quantity, cost_basis, average_cost,
                current_value, unrealized_gain, unrealized_gain_percent,
                ownership_percentage, last_updated)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                holding.id,
                holding.portfolio_id,
                holding.asset_id,
                str(holding.quantity),
                str(holding.cost_basis),
                str(holding.average_cost),
                str(holding.current_value),
                str(holding.unrealized_gain),
                str(holding.unrealized_gain_percent),
                str(holding.ownership_percentage),
                _text(holding.last_updated),
            ),
        )
        self.conn.executemany(
            """INSERT INTO tax_lots
               (id, holding_id, position, quantity, purchase_price, purchase_date,
                sold_quantity, remaining_quantity, lot_type, grant_date, vesting_date,
                discount_percent, market_price_at_purchase, bargain_element,
                shares_withheld, total_cost, notes)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            [
                (
                    lot.id,
                    holding.id,
                    position,
                    str(lot.quantity),
                    str(lot.purchase_price),
                    lot.purchase_date.isoformat(),
                    str(lot.sold_quantity),
                    str(lot.remaining_quantity),
                    lot.lot_type.value,
                    _text(lot.grant_date),
                    _text(lot.vesting_date),
                    _text(lot.discount_percent),
                    _text(lot.market_price_at_purchase),
                    _text(lot.bargain_element),
                    _text(lot.shares_withheld),
                    _text(lot.total_cost),
                    lot.notes,
                )
                for position, lot in enumerate(holding.lots)
            ],
        )

    def _write_transaction(self, transaction: Transaction) -> None:
        self.conn.execute(
            """INSERT OR REPLACE INTO transactions
               (id, portfolio_id, asset_id, type, trade_date, payload)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (
                transaction.id,
                transaction.portfolio_id,
                transaction.asset_id,
                transaction.type.value,
                transaction.trade_date.isoformat(),
                transaction.model_dump_json(),
            ),
        )


def _rows(cursor: sqlite3.Cursor) -> list[dict]:
    columns = [desc[0] for desc in cursor.description]
    return [dict(zip(columns, row)) for row in cursor.fetchall()]


def _asset(row: dict) -> Asset:
    if row.get("rental_info"):
        row["rental_info"] = json.loads(row["rental_info"])
    return Asset.model_validate(row)


def _text(value) -> str | None:
    if value is None:
        return None
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)
