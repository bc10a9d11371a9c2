"""Tests for the sqlite portfolio repository."""

import sqlite3
from datetime import date, datetime
from decimal import Decimal

import pytest

from lotledger.db.repository import PortfolioRepository
from lotledger.db.schema import SCHEMA_VERSION, create_schema
from lotledger.exceptions import AssetNotFoundError, HoldingNotFoundError
from lotledger.models.enums import TransactionType
from lotledger.models.transactions import RsuVestTransaction, SellTransaction


@pytest.fixture
def repo(tmp_path):
    conn = create_schema(tmp_path / "test.db")
    yield PortfolioRepository(conn)
    conn.close()


@pytest.fixture
def acme_holding(make_lot, make_holding):
    lots = [
        make_lot("lot-t2", "50", "160", date(2023, 6, 20)),
        make_lot("lot-t1", "50", "140", date(2023, 1, 15), remaining="20"),
    ]
    holding = make_holding("p1-asset-acme", "asset-acme", lots, current_value="10500")
    return holding.model_copy(update={"last_updated": datetime(2024, 3, 1, 12, 0)})


class TestSchema:
    def test_version_recorded(self, tmp_path):
        conn = create_schema(tmp_path / "v.db")
        row = conn.execute("SELECT version FROM schema_version").fetchone()
        assert row[0] == SCHEMA_VERSION
        conn.close()

    def test_idempotent(self, tmp_path):
        path = tmp_path / "v.db"
        create_schema(path).close()
        conn = create_schema(path)
        assert conn.execute("SELECT COUNT(*) FROM schema_version").fetchone()[0] == 1
        conn.close()


class TestAssets:
    def test_save_and_get(self, repo, property_asset):
        repo.save_asset(property_asset)
        loaded = repo.get_asset("asset-house")
        assert loaded == property_asset
        assert loaded.rental_info.monthly_rent == Decimal("2000")

    def test_save_updates_existing(self, repo, stock_asset):
        repo.save_asset(stock_asset)
        repo.save_asset(stock_asset.model_copy(update={"current_price": Decimal("175.25")}))
        assert repo.get_asset("asset-acme").current_price == Decimal("175.25")
        assert len(repo.list_assets()) == 1

    def test_find_by_symbol_case_insensitive(self, repo, stock_asset):
        repo.save_asset(stock_asset)
        assert repo.find_asset_by_symbol("acme").id == "asset-acme"

    def test_missing_asset(self, repo):
        with pytest.raises(AssetNotFoundError):
            repo.get_asset("nope")
        with pytest.raises(AssetNotFoundError):
            repo.find_asset_by_symbol("NOPE")


class TestHoldings:
    def test_round_trip_keeps_lot_order(self, repo, stock_asset, acme_holding):
        repo.save_asset(stock_asset)
        repo.save_holding(acme_holding)

        loaded = repo.get_holding("p1-asset-acme")
        assert loaded == acme_holding
        assert [lot.id for lot in loaded.lots] == ["lot-t2", "lot-t1"]
        assert loaded.lots[1].remaining_quantity == Decimal("20")

    def test_split_lot_and_sector_round_trip(self, repo, stock_asset, acme_holding):
        repo.save_asset(stock_asset.model_copy(update={"sector": "Technology"}))
        split_lot = acme_holding.lots[0].model_copy(update={
            "quantity": Decimal("150"),
            "remaining_quantity": Decimal("150"),
            "purchase_price": Decimal("160") / 3,
            "total_cost": Decimal("8000"),
        })
        repo.save_holding(acme_holding.model_copy(update={"lots": [split_lot]}))

        assert repo.get_asset("asset-acme").sector == "Technology"
        loaded = repo.get_lots("p1-asset-acme")[0]
        assert loaded.total_cost == Decimal("8000")
        assert loaded.cost_basis == Decimal("8000")

    def test_save_replaces_lots(self, repo, stock_asset, acme_holding):
        repo.save_asset(stock_asset)
        repo.save_holding(acme_holding)
        repo.save_holding(acme_holding.model_copy(update={"lots": acme_holding.lots[:1]}))
        assert len(repo.get_lots("p1-asset-acme")) == 1

    def test_find_and_list(self, repo, stock_asset, acme_holding):
        repo.save_asset(stock_asset)
        repo.save_holding(acme_holding)
        assert repo.find_holding("p1", "asset-acme").id == "p1-asset-acme"
        assert len(repo.list_holdings("p1")) == 1
        assert repo.list_holdings("other") == []
        assert len(repo.list_holdings()) == 1

    def test_missing_holding(self, repo):
        with pytest.raises(HoldingNotFoundError):
            repo.get_holding("nope")
        with pytest.raises(HoldingNotFoundError):
            repo.find_holding("p1", "asset-acme")


class TestTransactions:
    def _sell(self, txn_id="t3"):
        return SellTransaction(
            id=txn_id,
            portfolio_id="p1",
            asset_id="asset-acme",
            type=TransactionType.SELL,
            trade_date=date(2024, 3, 1),
            quantity=Decimal("30"),
            price=Decimal("180"),
        )

    def test_round_trip_preserves_variant(self, repo, fifo_buys):
        vest = RsuVestTransaction(
            id="v1",
            portfolio_id="p1",
            asset_id="asset-acme",
            type=TransactionType.RSU_VEST,
            trade_date=date(2022, 12, 1),
            gross_shares=Decimal("10"),
            shares_withheld=Decimal("4"),
            price=Decimal("120"),
        )
        for txn in [*fifo_buys, vest]:
            repo.save_transaction(txn)

        loaded = repo.list_transactions(asset_id="asset-acme")
        assert [t.id for t in loaded] == ["v1", "t1", "t2"]
        assert isinstance(loaded[0], RsuVestTransaction)
        assert loaded[0].quantity == Decimal("6")
        assert repo.list_transactions(portfolio_id="other") == []

    def test_commit_writes_both(self, repo, stock_asset, acme_holding):
        repo.save_asset(stock_asset)
        repo.commit_transaction(self._sell(), acme_holding)
        assert [t.id for t in repo.list_transactions()] == ["t3"]
        assert repo.get_holding("p1-asset-acme") == acme_holding

    def test_commit_rolls_back_on_failure(self, repo, acme_holding):
        # No asset row, so the holding insert violates its foreign key.
        with pytest.raises(sqlite3.IntegrityError):
            repo.commit_transaction(self._sell(), acme_holding)
        assert repo.list_transactions() == []
        assert repo.list_holdings() == []
