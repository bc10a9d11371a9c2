"""Typer CLI interface for lotledger."""

import json
import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from uuid import uuid4

import typer
from rich.console import Console
from rich.table import Table

from lotledger.exceptions import LedgerError

DEFAULT_DB = Path.home() / ".lotledger" / "lotledger.db"

app = typer.Typer(
    name="lotledger",
    help="lotledger: tax-lot accounting and unrealized tax exposure.",
)

console = Console()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """lotledger: tax-lot accounting and unrealized tax exposure."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


# --- Helpers ---

def _fail(message: str) -> None:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(1)


def _decimal(value: str, name: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        _fail(f"Invalid {name}: '{value}'")


def _date(value: str | None, name: str) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        _fail(f"Invalid {name} '{value}', expected YYYY-MM-DD")


def _open_repo(db: Path):
    from lotledger.db.repository import PortfolioRepository
    from lotledger.db.schema import create_schema

    if not db.exists():
        _fail("No database found. Import data first with `lotledger import`.")
    return PortfolioRepository(create_schema(db))


def _load_prices(prices_file: Path | None) -> dict[str, Decimal]:
    if prices_file is None:
        return {}
    if not prices_file.exists():
        _fail(f"Prices file not found: {prices_file}")
    raw_prices = json.loads(prices_file.read_text())
    return {k: Decimal(str(v)) for k, v in raw_prices.items()}


def _revalue(holdings, assets, prices):
    """Re-price holdings so allocation percentages use current values."""
    from lotledger.normalization.ledger import LedgerBuilder

    builder = LedgerBuilder()
    asset_map = {a.id: a for a in assets}
    revalued = []
    for holding in holdings:
        asset = asset_map.get(holding.asset_id)
        price = prices.get(holding.asset_id)
        if price is None and asset is not None:
            price = prices.get(asset.symbol, asset.current_price)
        revalued.append(builder.recompute(holding, price) if price is not None else holding)
    return revalued


def _emit_json(payload) -> None:
    typer.echo(json.dumps(payload, indent=2))


# --- Commands ---

@app.command(name="import")
def import_cmd(
    file_path: Path = typer.Argument(..., help="Portfolio JSON file (assets + transactions)"),
    db: Path = typer.Option(DEFAULT_DB, "--db", help="Path to the SQLite database file"),
    method: str = typer.Option("FIFO", "--method", "-m", help="Cost basis method: FIFO, LIFO, HIFO"),
) -> None:
    """Import a portfolio file, fold its transactions into holdings, and save."""
    from lotledger.db.repository import PortfolioRepository
    from lotledger.db.schema import create_schema
    from lotledger.ingestion.manual import ManualAdapter
    from lotledger.models.enums import CostBasisMethod

    try:
        cost_basis_method = CostBasisMethod(method.upper())
    except ValueError:
        _fail(f"Invalid cost basis method '{method}'. Valid: FIFO, LIFO, HIFO")

    adapter = ManualAdapter()
    try:
        result = adapter.parse(file_path)
    except FileNotFoundError as exc:
        _fail(str(exc))
    except LedgerError as exc:
        _fail(str(exc))

    errors = adapter.validate(result)
    if errors:
        for error in errors:
            typer.echo(f"  - {error}", err=True)
        _fail(f"{len(errors)} validation error(s) in {file_path.name}")

    try:
        holdings = adapter.build_holdings(result, method=cost_basis_method)
    except LedgerError as exc:
        _fail(str(exc))

    db.parent.mkdir(parents=True, exist_ok=True)
    conn = create_schema(db)
    repo = PortfolioRepository(conn)
    for asset in result.assets:
        repo.save_asset(asset)
    for transaction in result.transactions:
        repo.save_transaction(transaction)
    for holding in holdings:
        repo.save_holding(holding)
    conn.close()

    typer.echo(
        f"Imported {len(result.assets)} asset(s), {len(result.transactions)} "
        f"transaction(s), {len(holdings)} holding(s) into {db}"
    )


@app.command()
def exposure(
    db: Path = typer.Option(DEFAULT_DB, "--db", help="Path to the SQLite database file"),
    prices_file: Path | None = typer.Option(
        None, "--prices", help="JSON file with current prices: {asset id or symbol: price}",
    ),
    settings_file: Path | None = typer.Option(None, "--settings", help="Settings JSON file"),
    as_of: str | None = typer.Option(None, "--as-of", help="Reference date (YYYY-MM-DD)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Estimate unrealized capital gains exposure and liability."""
    from lotledger.engines.estimator import TaxExposureEstimator
    from lotledger.models.settings import Settings

    settings = Settings.load(settings_file)
    prices = _load_prices(prices_file)
    reference = _date(as_of, "--as-of")
    repo = _open_repo(db)

    estimator = TaxExposureEstimator()
    try:
        report = estimator.analyze(
            repo.list_holdings(), prices, settings.tax, repo.list_assets(), reference,
        )
    except LedgerError as exc:
        _fail(str(exc))

    if json_output:
        _emit_json(report.model_dump(mode="json"))
        return

    m = report.metrics
    table = Table(title=f"Unrealized Tax Exposure ({report.as_of})")
    table.add_column("Bucket")
    table.add_column("Gains", justify="right")
    table.add_column("Losses", justify="right")
    table.add_column("Net", justify="right")
    table.add_row(
        "Short-term", f"${m.short_term_gains:,.2f}", f"${m.short_term_losses:,.2f}",
        f"${m.net_short_term:,.2f}",
    )
    table.add_row(
        "Long-term", f"${m.long_term_gains:,.2f}", f"${m.long_term_losses:,.2f}",
        f"${m.net_long_term:,.2f}",
    )
    console.print(table)
    typer.echo(f"Total unrealized gain: ${m.total_unrealized_gain:,.2f}")
    typer.echo(f"Estimated liability:   ${m.estimated_liability:,.2f}")
    typer.echo(f"Effective rate:        {m.effective_rate * 100:.1f}%")
    typer.echo(f"Lots aging into long-term within {settings.tax.lookback_days} days: {m.aging_lots_count}")
    for warning in report.warnings:
        typer.echo(f"Warning: {warning}", err=True)


@app.command()
def aging(
    db: Path = typer.Option(DEFAULT_DB, "--db", help="Path to the SQLite database file"),
    window: int = typer.Option(30, "--window", "-w", help="Warning window in days"),
    prices_file: Path | None = typer.Option(
        None, "--prices", help="JSON file with current prices: {asset id or symbol: price}",
    ),
    as_of: str | None = typer.Option(None, "--as-of", help="Reference date (YYYY-MM-DD)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List short-term lots that turn long-term within the window."""
    from lotledger.engines.estimator import TaxExposureEstimator

    if window < 0:
        _fail(f"Window must be non-negative, got {window}")
    prices = _load_prices(prices_file)
    reference = _date(as_of, "--as-of")
    repo = _open_repo(db)

    lots = TaxExposureEstimator().detect_aging_lots(
        repo.list_holdings(), repo.list_assets(), window, prices, reference,
    )

    if json_output:
        _emit_json([lot.model_dump(mode="json") for lot in lots])
        return
    if not lots:
        typer.echo(f"No lots turn long-term within {window} days.")
        return

    table = Table(title=f"Lots Approaching Long-Term ({window} day window)")
    for column in ("Symbol", "Lot", "Quantity", "Purchased", "Days Left", "Value", "Gain"):
        table.add_column(column, justify="right" if column not in ("Symbol", "Lot") else "left")
    for lot in lots:
        table.add_row(
            lot.asset_symbol,
            lot.lot_id,
            str(lot.remaining_quantity),
            lot.purchase_date.isoformat(),
            str(lot.days_until_long_term),
            f"${lot.current_value:,.2f}",
            f"${lot.unrealized_gain:,.2f}",
        )
    console.print(table)


@app.command()
def recommend(
    db: Path = typer.Option(DEFAULT_DB, "--db", help="Path to the SQLite database file"),
    prices_file: Path | None = typer.Option(
        None, "--prices", help="JSON file with current prices: {asset id or symbol: price}",
    ),
    settings_file: Path | None = typer.Option(None, "--settings", help="Settings JSON file"),
    as_of: str | None = typer.Option(None, "--as-of", help="Reference date (YYYY-MM-DD)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Generate portfolio recommendations."""
    from lotledger.engines.recommendations import RecommendationEngine
    from lotledger.models.settings import Settings

    settings = Settings.load(settings_file)
    prices = _load_prices(prices_file)
    reference = _date(as_of, "--as-of")
    repo = _open_repo(db)

    assets = repo.list_assets()
    holdings = _revalue(repo.list_holdings(), assets, prices)
    total_value = sum((h.current_value for h in holdings), Decimal("0"))

    try:
        recommendations = RecommendationEngine().generate(
            holdings, assets, total_value, settings.thresholds, prices, reference,
        )
    except LedgerError as exc:
        _fail(str(exc))

    if json_output:
        _emit_json([rec.model_dump(mode="json") for rec in recommendations])
        return
    if not recommendations:
        typer.echo("No recommendations. Portfolio looks balanced.")
        return

    for rec in recommendations:
        console.print(f"[bold][{rec.severity.upper()}][/bold] {rec.title}")
        typer.echo(f"  {rec.description}")
        for step in rec.action_steps:
            typer.echo(f"    - {step}")
        typer.echo("")


@app.command()
def sell(
    symbol: str = typer.Argument(..., help="Asset symbol"),
    quantity: str = typer.Argument(..., help="Units to sell"),
    price: str = typer.Argument(..., help="Sale price per unit"),
    db: Path = typer.Option(DEFAULT_DB, "--db", help="Path to the SQLite database file"),
    portfolio_id: str = typer.Option("default", "--portfolio", "-p", help="Portfolio id"),
    sale_date: str | None = typer.Option(None, "--date", help="Sale date (YYYY-MM-DD), default today"),
    method: str | None = typer.Option(
        None, "--method", "-m", help="FIFO, LIFO, HIFO (default from settings)",
    ),
    lots: list[str] | None = typer.Option(
        None, "--lot", help="Specific lot selection LOT_ID=QTY (repeatable)",
    ),
    fees: str = typer.Option("0", "--fees", help="Transaction fees"),
    settings_file: Path | None = typer.Option(None, "--settings", help="Settings JSON file"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Record a sale: consume lots and save the updated holding atomically."""
    from lotledger.models.enums import CostBasisMethod, TransactionType
    from lotledger.models.settings import Settings
    from lotledger.models.transactions import SellTransaction
    from lotledger.normalization.ledger import LedgerBuilder

    settings = Settings.load(settings_file)
    qty = _decimal(quantity, "quantity")
    sale_price = _decimal(price, "price")
    trade_date = _date(sale_date, "--date") or date.today()

    selection: dict[str, Decimal] | None = None
    if lots:
        selection = {}
        for item in lots:
            lot_id, sep, lot_qty = item.partition("=")
            if not sep:
                _fail(f"Invalid --lot '{item}', expected LOT_ID=QTY")
            selection[lot_id] = _decimal(lot_qty, f"quantity for lot {lot_id}")
        cost_basis_method = CostBasisMethod.SPECIFIC
    else:
        try:
            cost_basis_method = (
                CostBasisMethod(method.upper()) if method else settings.tax.cost_basis_method
            )
        except ValueError:
            _fail(f"Invalid cost basis method '{method}'. Valid: FIFO, LIFO, HIFO")

    repo = _open_repo(db)
    try:
        asset = repo.find_asset_by_symbol(symbol)
        holding = repo.find_holding(portfolio_id, asset.id)
        transaction = SellTransaction(
            id=str(uuid4()),
            portfolio_id=portfolio_id,
            asset_id=asset.id,
            type=TransactionType.SELL,
            trade_date=trade_date,
            quantity=qty,
            price=sale_price,
            fees=_decimal(fees, "fees"),
        )
        update = LedgerBuilder().apply(
            holding, transaction, method=cost_basis_method, selection=selection,
        )
        repo.commit_transaction(transaction, update.holding)
    except LedgerError as exc:
        _fail(str(exc))

    if json_output:
        _emit_json({
            "transaction_id": transaction.id,
            "allocations": [a.model_dump(mode="json") for a in update.allocations],
            "realized_gain": str(update.realized_gain),
            "holding": update.holding.model_dump(mode="json"),
        })
        return

    table = Table(title=f"Sold {qty} {asset.symbol} @ ${sale_price:,.2f} ({cost_basis_method})")
    for column in ("Lot", "Quantity", "Basis", "Proceeds", "Gain", "Term"):
        table.add_column(column, justify="left" if column in ("Lot", "Term") else "right")
    for a in update.allocations:
        table.add_row(
            a.lot_id,
            str(a.quantity),
            f"${a.cost_basis:,.2f}",
            f"${a.proceeds:,.2f}",
            f"${a.realized_gain:,.2f}",
            a.holding_period.value,
        )
    console.print(table)
    typer.echo(f"Realized gain: ${update.realized_gain:,.2f}")
    typer.echo(f"Remaining {asset.symbol}: {update.holding.quantity}")


@app.command(name="espp-check")
def espp_check(
    grant_date: str = typer.Argument(..., help="Offering (grant) date YYYY-MM-DD"),
    purchase_date: str = typer.Argument(..., help="Purchase date YYYY-MM-DD"),
    sale_date: str = typer.Argument(..., help="Actual or planned sale date YYYY-MM-DD"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Check whether an ESPP sale would be a qualifying disposition."""
    from lotledger.engines.espp import ESPPEngine

    grant = _date(grant_date, "grant date")
    purchase = _date(purchase_date, "purchase date")
    sale = _date(sale_date, "sale date")
    try:
        check = ESPPEngine().check_disposition(grant, purchase, sale)
    except LedgerError as exc:
        _fail(str(exc))

    if json_output:
        _emit_json(check.model_dump(mode="json"))
        return

    typer.echo(f"Disposition: {check.disposition_type} ({check.reason})")
    typer.echo(
        f"  2 years from grant:    {check.two_years_from_grant}"
        f"  {'met' if check.meets_grant_requirement else f'{check.days_until_grant_requirement} days to go'}"
    )
    typer.echo(
        f"  1 year from purchase:  {check.one_year_from_purchase}"
        f"  {'met' if check.meets_purchase_requirement else f'{check.days_until_purchase_requirement} days to go'}"
    )


@app.command()
def report(
    db: Path = typer.Option(DEFAULT_DB, "--db", help="Path to the SQLite database file"),
    prices_file: Path | None = typer.Option(
        None, "--prices", help="JSON file with current prices: {asset id or symbol: price}",
    ),
    settings_file: Path | None = typer.Option(None, "--settings", help="Settings JSON file"),
    as_of: str | None = typer.Option(None, "--as-of", help="Reference date (YYYY-MM-DD)"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write the report to a file"),
) -> None:
    """Render the tax exposure report with recommendations."""
    from lotledger.engines.estimator import TaxExposureEstimator
    from lotledger.engines.recommendations import RecommendationEngine
    from lotledger.models.settings import Settings
    from lotledger.reports.tax_exposure import TaxExposureReportGenerator

    settings = Settings.load(settings_file)
    prices = _load_prices(prices_file)
    reference = _date(as_of, "--as-of")
    repo = _open_repo(db)

    assets = repo.list_assets()
    holdings = repo.list_holdings()
    estimator = TaxExposureEstimator()
    try:
        exposure_report = estimator.analyze(holdings, prices, settings.tax, assets, reference)
        revalued = _revalue(holdings, assets, prices)
        recommendations = RecommendationEngine(estimator).generate(
            revalued,
            assets,
            sum((h.current_value for h in revalued), Decimal("0")),
            settings.thresholds,
            prices,
            reference,
        )
    except LedgerError as exc:
        _fail(str(exc))

    text = TaxExposureReportGenerator().render(exposure_report, recommendations)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text)
        typer.echo(f"Report written to {output}")
    else:
        typer.echo(text)
