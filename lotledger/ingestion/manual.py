"""Manual entry adapter: import a portfolio JSON file.

Expected shape::

    {
      "portfolio_id": "default",
      "assets": [{"id": "a1", "symbol": "AAPL", "name": "Apple", "type": "stock"}],
      "transactions": [
        {"id": "t1", "asset_id": "a1", "type": "buy", "trade_date": "2024-01-15",
         "quantity": "50", "price": "140"}
      ],
      "holdings": [],
      "ownership": {"a1": "100"},
      "selections": {"t9": {"lot-t1": "10"}}
    }

``holdings`` (already-built positions, e.g. properties), ``ownership`` and
``selections`` (specific-lot sells, keyed by transaction id) are optional.
"""

import json
import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path

from pydantic import ValidationError

from lotledger.engines.thresholds import FULL_OWNERSHIP
from lotledger.exceptions import DataValidationError
from lotledger.models.enums import CostBasisMethod
from lotledger.models.portfolio import Asset, Holding
from lotledger.models.transactions import TRANSACTION_ADAPTER, Transaction
from lotledger.normalization.ledger import LedgerBuilder

logger = logging.getLogger(__name__)

DEFAULT_PORTFOLIO_ID = "default"


@dataclass
class ImportResult:
    """Bundles the output of a portfolio file parse."""

    portfolio_id: str
    assets: list[Asset] = field(default_factory=list)
    transactions: list[Transaction] = field(default_factory=list)
    holdings: list[Holding] = field(default_factory=list)
    ownership: dict[str, Decimal] = field(default_factory=dict)
    selections: dict[str, dict[str, Decimal]] = field(default_factory=dict)


class ManualAdapter:
    """Imports a hand-written portfolio JSON file into domain models."""

    def parse(self, file_path: Path) -> ImportResult:
        """Read the file and validate every record into its model."""
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        raw = json.loads(file_path.read_text(), parse_float=Decimal)
        if not isinstance(raw, dict):
            raise DataValidationError("file", "portfolio file must be a JSON object")

        portfolio_id = raw.get("portfolio_id", DEFAULT_PORTFOLIO_ID)
        try:
            assets = [Asset.model_validate(a) for a in raw.get("assets", [])]
            transactions = [
                TRANSACTION_ADAPTER.validate_python({"portfolio_id": portfolio_id, **t})
                for t in raw.get("transactions", [])
            ]
            holdings = [
                Holding.model_validate({"portfolio_id": portfolio_id, **h})
                for h in raw.get("holdings", [])
            ]
        except ValidationError as exc:
            raise DataValidationError("file", str(exc)) from exc

        return ImportResult(
            portfolio_id=portfolio_id,
            assets=assets,
            transactions=transactions,
            holdings=holdings,
            ownership={k: Decimal(str(v)) for k, v in raw.get("ownership", {}).items()},
            selections={
                txn_id: {lot_id: Decimal(str(q)) for lot_id, q in sel.items()}
                for txn_id, sel in raw.get("selections", {}).items()
            },
        )

    def validate(self, data: ImportResult) -> list[str]:
        """Check cross-record consistency. Returns a list of error messages."""
        errors: list[str] = []
        asset_ids = {a.id for a in data.assets}

        for asset_id, count in Counter(a.id for a in data.assets).items():
            if count > 1:
                errors.append(f"Duplicate asset id: {asset_id}")
        for txn_id, count in Counter(t.id for t in data.transactions).items():
            if count > 1:
                errors.append(f"Duplicate transaction id: {txn_id}")

        for txn in data.transactions:
            if txn.asset_id not in asset_ids:
                errors.append(f"Transaction {txn.id}: unknown asset {txn.asset_id}")
        for holding in data.holdings:
            if holding.asset_id not in asset_ids:
                errors.append(f"Holding {holding.id}: unknown asset {holding.asset_id}")
        for txn_id in data.selections:
            if txn_id not in {t.id for t in data.transactions}:
                errors.append(f"Selection for unknown transaction {txn_id}")
        for asset_id, pct in data.ownership.items():
            if pct < 0 or pct > 100:
                errors.append(f"Ownership for {asset_id} must be between 0 and 100, got {pct}")

        return errors

    def build_holdings(
        self,
        data: ImportResult,
        method: CostBasisMethod = CostBasisMethod.FIFO,
        builder: LedgerBuilder | None = None,
    ) -> list[Holding]:
        """Fold each asset's transactions into a holding.

        Pre-built holdings from the file are passed through; an asset with
        both is rebuilt from its transactions.
        """
        builder = builder or LedgerBuilder()
        assets = {a.id: a for a in data.assets}

        by_asset: dict[str, list[Transaction]] = defaultdict(list)
        for txn in data.transactions:
            by_asset[txn.asset_id].append(txn)

        holdings = [h for h in data.holdings if h.asset_id not in by_asset]
        for asset_id, transactions in by_asset.items():
            asset = assets.get(asset_id)
            holding = builder.build_holding(
                transactions,
                holding_id=f"{data.portfolio_id}-{asset_id}",
                portfolio_id=data.portfolio_id,
                asset_id=asset_id,
                method=method,
                selections=data.selections,
                current_price=asset.current_price if asset else None,
                ownership_percentage=data.ownership.get(asset_id, FULL_OWNERSHIP),
            )
            logger.debug(
                "Built holding %s from %d transaction(s): %s units in %d lot(s)",
                holding.id, len(transactions), holding.quantity, len(holding.lots),
            )
            holdings.append(holding)
        return holdings
