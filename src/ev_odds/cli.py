"""CLI entrypoint for the sportsbook odds consensus and EV scanner."""

from __future__ import annotations

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ev_odds.adapters.odds_api import DataSourceMode
from ev_odds.config import get_settings
from ev_odds.constants import GAME_MARKETS
from ev_odds.core.detector import selection_label
from ev_odds.core.kelly import DEFAULT_KELLY_FRACTION
from ev_odds.models.opportunity import ConsensusMethod, EVOpportunity
from ev_odds.observability.logging import setup_logging
from ev_odds.service import OddsService

app = typer.Typer(
    name="ev-odds",
    help="Sportsbook odds consensus and positive-EV scanner.",
    no_args_is_help=True,
)
console = Console()

# Lets negative American odds through as positional arguments
_NUMERIC_ARGS = {"ignore_unknown_options": True}


def build_service() -> OddsService:
    return OddsService.from_settings(get_settings())


@app.callback()
def main_callback(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override EV_ODDS_LOG_LEVEL"),
) -> None:
    setup_logging(level=log_level)


def _split(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def _parse_method(value: str) -> ConsensusMethod:
    try:
        return ConsensusMethod(value)
    except ValueError:
        choices = ", ".join(m.value for m in ConsensusMethod)
        raise typer.BadParameter(f"unknown method {value!r} (choose from {choices})")


def _american(price: float) -> str:
    return f"{price:+.0f}"


def _ev_style(ev: float) -> str:
    if ev >= 5.0:
        return "green"
    if ev >= 2.0:
        return "yellow"
    return "dim"


def _notice_mode(service: OddsService) -> None:
    if service.data_source_mode is DataSourceMode.DEGRADED:
        console.print("[yellow]⚠ Serving synthetic odds (no API key or quota exhausted)[/]")


def _fail(errors: list[str]) -> None:
    for error in errors or ["unknown error"]:
        console.print(f"[red]✗ {escape(error)}[/]")
    raise typer.Exit(1)


def _render_opportunities(opportunities: list[EVOpportunity], title: str) -> None:
    if not opportunities:
        console.print("[dim]No opportunities[/]")
        return
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("#", style="dim", width=3)
    table.add_column("Event", width=34)
    table.add_column("Market", width=14)
    table.add_column("Selection", width=28)
    table.add_column("Book", width=12)
    table.add_column("Odds", justify="right")
    table.add_column("Fair", justify="right")
    table.add_column("EV", justify="right")
    table.add_column("Region", style="dim")
    for i, opp in enumerate(opportunities, 1):
        style = _ev_style(opp.ev)
        table.add_row(
            str(i),
            opp.event_name[:34] + (" [red](live)[/]" if opp.is_live else ""),
            opp.market,
            opp.selection[:28],
            opp.bookmaker,
            _american(opp.odds),
            _american(opp.consensus_odds),
            f"[{style}]{opp.ev:.2f}%[/]",
            opp.region,
        )
    console.print(table)


@app.command("sports")
def sports() -> None:
    """List in-season sports."""

    async def _run():
        async with build_service() as service:
            _notice_mode(service)
            response = await service.get_sports()
            if not response.success:
                _fail(response.errors)

            table = Table(title=f"Sports ({response.source.value if response.source else '-'})")
            table.add_column("Key")
            table.add_column("Title")
            table.add_column("Group")
            for sport in response.data or []:
                table.add_row(sport.key, sport.title, sport.group)
            console.print(table)

    asyncio.run(_run())


@app.command("events")
def events(
    sport: str = typer.Argument(..., help="Sport key, e.g. basketball_nba"),
) -> None:
    """List upcoming events for a sport."""

    async def _run():
        async with build_service() as service:
            _notice_mode(service)
            response = await service.get_events(sport)
            if not response.success:
                _fail(response.errors)

            table = Table(title=f"Events: {sport}")
            table.add_column("ID", style="dim", no_wrap=True)
            table.add_column("Matchup")
            table.add_column("Start (UTC)")
            for event in response.data or []:
                table.add_row(event.id, event.name, event.commence_time.strftime("%Y-%m-%d %H:%M"))
            console.print(table)

    asyncio.run(_run())


@app.command("odds")
def odds(
    sport: str = typer.Argument(..., help="Sport key"),
    markets: str = typer.Option("h2h", "--markets", "-m", help="Comma-separated market keys"),
    regions: str = typer.Option("us", "--regions", "-r", help="Comma-separated regions"),
    bookmakers: Optional[str] = typer.Option(None, "--bookmakers", "-b", help="Comma-separated bookmaker keys"),
) -> None:
    """Show current odds for every event in a sport."""

    async def _run():
        async with build_service() as service:
            _notice_mode(service)
            response = await service.get_odds(
                sport,
                _split(markets),
                _split(regions),
                _split(bookmakers) if bookmakers else None,
            )
            if not response.success:
                _fail(response.errors)

            table = Table(title=f"Odds: {sport}")
            table.add_column("Event")
            table.add_column("Bookmaker")
            table.add_column("Market")
            table.add_column("Selection")
            table.add_column("Odds", justify="right")
            for event in response.data or []:
                for bookmaker in event.bookmakers:
                    for market in bookmaker.markets:
                        for outcome in market.outcomes:
                            table.add_row(
                                event.name[:40],
                                bookmaker.key,
                                market.key,
                                selection_label(outcome)[:30],
                                _american(outcome.price),
                            )
            console.print(table)

    asyncio.run(_run())


@app.command("scan")
def scan(
    sport: str = typer.Argument(..., help="Sport key"),
    markets: str = typer.Option(",".join(GAME_MARKETS), "--markets", "-m", help="Comma-separated market keys"),
    threshold: float = typer.Option(2.0, "--threshold", "-t", help="Minimum EV percent"),
    regions: str = typer.Option("us", "--regions", "-r", help="Comma-separated regions"),
    method: str = typer.Option("weighted", "--method", help="weighted, sharp or simple"),
    sharp: str = typer.Option("pinnacle", "--sharp", help="Comma-separated sharp bookmakers"),
    include_live: bool = typer.Option(False, "--include-live", help="Include in-progress events"),
    refresh: bool = typer.Option(False, "--refresh", help="Bypass cached results"),
) -> None:
    """Scan a sport for +EV offers against the consensus price."""
    consensus = _parse_method(method)

    async def _run():
        async with build_service() as service:
            _notice_mode(service)
            response = await service.find_ev_opportunities(
                sport,
                _split(markets),
                ev_threshold=threshold,
                force_refresh=refresh,
                include_live=include_live,
                regions=_split(regions),
                method=consensus,
                sharp_bookmakers=_split(sharp),
            )
            if not response.success or response.data is None:
                _fail(response.errors)

            result = response.data
            console.print(
                f"\n[bold]EV SCANNER[/]  |  [cyan]{len(result.opportunities)} opportunities[/]"
                f"  |  {consensus.value}  |  {result.source.value}"
                f"  |  {result.last_updated.strftime('%Y-%m-%d %H:%M:%S')} UTC\n"
            )
            if result.failed_regions:
                console.print(f"[yellow]⚠ Failed regions: {', '.join(result.failed_regions)}[/]")
            _render_opportunities(result.opportunities, f"+EV: {sport}")

    asyncio.run(_run())


@app.command("scan-all")
def scan_all(
    markets: str = typer.Option(",".join(GAME_MARKETS), "--markets", "-m", help="Comma-separated market keys"),
    threshold: float = typer.Option(2.0, "--threshold", "-t", help="Minimum EV percent"),
    regions: str = typer.Option("us", "--regions", "-r", help="Comma-separated regions"),
    method: str = typer.Option("weighted", "--method", help="weighted, sharp or simple"),
) -> None:
    """Force-refresh the EV scan for every supported sport."""
    consensus = _parse_method(method)

    async def _run():
        async with build_service() as service:
            _notice_mode(service)
            response = await service.scan_all_sports(
                markets=_split(markets),
                ev_threshold=threshold,
                regions=_split(regions),
                method=consensus,
            )
            summaries = response.data or []

            table = Table(title="EV refresh")
            table.add_column("Sport", style="cyan")
            table.add_column("Status")
            table.add_column("Opportunities", justify="right")
            table.add_column("Best EV", justify="right")
            table.add_column("Notes", style="dim")
            for summary in summaries:
                notes = list(summary.errors)
                if summary.failed_regions:
                    notes.append(f"failed regions: {', '.join(summary.failed_regions)}")
                table.add_row(
                    summary.sport,
                    "[green]✓[/]" if summary.success else "[red]✗[/]",
                    str(summary.opportunities),
                    f"{summary.best_ev:.2f}%" if summary.best_ev is not None else "-",
                    escape("; ".join(notes)),
                )
            console.print(table)
            console.print(f"Total: {sum(s.opportunities for s in summaries)} opportunities")
            if any(not s.success for s in summaries):
                raise typer.Exit(1)

    asyncio.run(_run())


@app.command("props")
def props(
    sport: str = typer.Argument(..., help="Sport key"),
    event_id: str = typer.Argument(..., help="Event id"),
    markets: Optional[str] = typer.Option(None, "--markets", "-m", help="Comma-separated prop markets"),
    threshold: float = typer.Option(2.0, "--threshold", "-t", help="Minimum EV percent"),
    regions: str = typer.Option("us", "--regions", "-r", help="Comma-separated regions"),
    method: str = typer.Option("weighted", "--method", help="weighted, sharp or simple"),
) -> None:
    """Scan one event's player props for +EV offers."""
    consensus = _parse_method(method)

    async def _run():
        async with build_service() as service:
            _notice_mode(service)
            response = await service.find_prop_ev_opportunities(
                sport,
                event_id,
                markets=_split(markets) if markets else None,
                ev_threshold=threshold,
                regions=_split(regions),
                method=consensus,
            )
            if not response.success or response.data is None:
                _fail(response.errors)
            _render_opportunities(response.data.opportunities, f"+EV props: {event_id}")

    asyncio.run(_run())


@app.command("kelly", context_settings=_NUMERIC_ARGS)
def kelly(
    bankroll: float = typer.Argument(..., help="Bankroll in dollars"),
    offered: float = typer.Argument(..., help="Offered American odds"),
    reference: float = typer.Argument(..., help="Consensus American odds"),
    fraction: float = typer.Option(DEFAULT_KELLY_FRACTION, "--fraction", "-f", help="Kelly multiplier in (0, 1]"),
) -> None:
    """Recommend a stake with fractional Kelly."""
    response = OddsService.kelly_stake(bankroll, offered, reference, fraction)
    if not response.success or response.data is None:
        _fail(response.errors)

    stake = response.data
    table = Table(title="Kelly Stake", show_header=False)
    table.add_column("Field", style="dim")
    table.add_column("Value", justify="right")
    table.add_row("Offered implied prob", f"{stake.offered_implied_prob:.2%}")
    table.add_row("Reference implied prob", f"{stake.reference_implied_prob:.2%}")
    table.add_row("EV", f"{stake.expected_value:.2f}%")
    table.add_row("Full Kelly", f"{stake.full_kelly:.4f}")
    table.add_row("Stake fraction", f"{stake.stake_fraction:.4f}")
    table.add_row("Stake", f"${stake.dollar_amount:,.2f}")
    console.print(table)


@app.command("usage")
def usage() -> None:
    """Upstream requests counted today and yesterday."""

    async def _run():
        async with build_service() as service:
            response = await service.get_usage_stats()
            stats = response.data
            console.print(f"Today:     {stats.today}")
            console.print(f"Yesterday: {stats.yesterday}")
            console.print(f"Total:     {stats.total}")
            if service.adapter.requests_remaining is not None:
                console.print(f"Provider remaining: {service.adapter.requests_remaining}")

    asyncio.run(_run())


@app.command("reset-fallback")
def reset_fallback() -> None:
    """Clear the synthetic-data flag and return to live odds."""
    async def _run():
        async with build_service() as service:
            service.reset_data_source()

    asyncio.run(_run())
    console.print("[green]✓[/] Data source reset to live")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
