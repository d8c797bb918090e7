"""
Command-line interface for the multi-screener.

Provides CLI commands for on-demand screener runs, the daily cache refresh
and the web dashboard.
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional

import click

from ..data.client import FMPClient
from ..data.store import ResultStore
from ..exceptions import UniverseUnavailableError, ValidationError
from ..screener.batch import BatchOrchestrator, Listing, fetch_live_quotes
from ..screener.export import NO_RESULTS_MESSAGE, to_frame, to_records
from .config import SCREENER_IDS, load_settings

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def _load_settings_or_exit(config: Optional[str]) -> dict:
    try:
        return load_settings(config)
    except ValidationError as e:
        click.echo(f"Error: {str(e)}", err=True)
        sys.exit(1)


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Log per-symbol progress (DEBUG level)')
@click.pass_context
def cli(ctx, verbose: bool):
    """Multi-strategy stock screener CLI."""
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose


@cli.command()
@click.option('--host', default='127.0.0.1', show_default=True, help='Host to bind the web app')
@click.option('--port', default=5000, show_default=True, help='Port to bind the web app')
@click.option('--debug', is_flag=True, help='Run web app in debug mode')
def web(host: str, port: int, debug: bool):
    """Run the screener dashboard."""
    from ..web.app import run as run_web
    run_web(host=host, port=port, debug=debug)


@cli.command()
@click.argument('screener_id', type=click.Choice(SCREENER_IDS))
@click.option(
    '--symbols',
    '-s',
    help='Comma-separated symbols to screen instead of the exchange universe'
)
@click.option(
    '--symbols-file',
    type=click.Path(exists=True),
    help='Path to a text/CSV file with symbols (one per line or comma-separated)'
)
@click.option(
    '--batch-size',
    '-n',
    type=int,
    help='Symbols to process (default: all given symbols, else the configured batch size)'
)
@click.option(
    '--config',
    '-c',
    type=click.Path(exists=True),
    help='Path to YAML configuration file'
)
@click.option(
    '--output',
    '-o',
    default=None,
    help='Output file path (default: outputs/<screener>.csv)'
)
@click.option(
    '--format',
    'output_format',
    type=click.Choice(['csv', 'json'], case_sensitive=False),
    default='csv',
    help='Output format: csv or json (default: csv)'
)
@click.option('--show', is_flag=True, help='Print results to stdout in a table format')
@click.option('--no-quotes', is_flag=True, help='Skip the live quote lookup')
@click.option('--save', is_flag=True, help='Also store the top results in the snapshot cache')
@click.pass_context
def screen(
    ctx,
    screener_id: str,
    symbols: Optional[str],
    symbols_file: Optional[str],
    batch_size: Optional[int],
    config: Optional[str],
    output: Optional[str],
    output_format: str,
    show: bool,
    no_quotes: bool,
    save: bool,
):
    """
    Run one screener over a batch of symbols.

    Examples:

    \b
    # Magic Formula over the first 100 symbols of the configured exchange
    python -m multiscreener screen magic_formula

    \b
    # Value Scan over a hand-picked list
    python -m multiscreener screen value_scan --symbols TCS,INFY,ITC --show

    \b
    # CANSLIM with a smaller batch, saved to the dashboard cache
    python -m multiscreener screen canslim --batch-size 20 --save
    """
    settings = _load_settings_or_exit(config)
    _configure_logging('DEBUG' if ctx.obj.get('verbose') else settings['logging']['level'])

    client = FMPClient.from_config(settings['api'])
    orchestrator = BatchOrchestrator(client, settings)

    universe: Optional[List[Listing]] = None
    if symbols:
        universe = [Listing(s.strip().upper(), s.strip().upper()) for s in symbols.split(',') if s.strip()]
    elif symbols_file:
        universe = [Listing(s, s) for s in _load_symbols_from_file(Path(symbols_file))]
    if universe is not None and not universe:
        click.echo("Error: No symbols to screen", err=True)
        sys.exit(1)
    # Hand-picked symbols are screened in full unless a batch size is given
    if universe is not None and batch_size is None:
        batch_size = len(universe)

    try:
        outcome = orchestrator.run(screener_id, universe=universe, batch_size=batch_size)
    except UniverseUnavailableError as e:
        click.echo(f"Error: could not fetch symbol list: {str(e)}", err=True)
        sys.exit(1)

    quotes = None
    if not no_quotes and not outcome.is_empty:
        quotes = fetch_live_quotes(client, [r.symbol for r in outcome.results])
    results_df = to_frame(screener_id, outcome.results, quotes)

    if save:
        store = ResultStore(Path(settings['cache']['dir']), top_n=int(settings['cache']['top_n']))
        store.save(screener_id, to_records(outcome.results))
        if quotes:
            store.save_quotes({**store.load_quotes(), **quotes})

    # Ensure output directory exists
    output_path = Path(output or f"outputs/{screener_id}.{output_format.lower()}")
    output_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        if output_format.lower() == 'json':
            output_path.write_text(results_df.to_json(orient='records', indent=2))
        else:
            results_df.to_csv(output_path, index=False)
        click.echo(f"Results saved to {output_path}")
    except OSError as e:
        click.echo(f"Error saving results: {str(e)}", err=True)
        sys.exit(1)

    # Display summary
    click.echo("\n" + "=" * 60)
    click.echo(f"{screener_id.upper()} SUMMARY")
    click.echo("=" * 60)
    click.echo(f"Symbols processed: {outcome.processed}")
    click.echo(f"Complete data: {outcome.pooled}")
    if outcome.truncated:
        click.echo("Run stopped early: time budget exhausted")

    if outcome.is_empty:
        click.echo(NO_RESULTS_MESSAGE)
    else:
        click.echo(f"Results: {len(results_df)}")
        if show:
            click.echo("\nResults preview:")
            click.echo(results_df.to_string(index=False))
    click.echo("=" * 60)


@cli.command()
@click.option(
    '--config',
    '-c',
    type=click.Path(exists=True),
    help='Path to YAML configuration file'
)
@click.pass_context
def daily(ctx, config: Optional[str]):
    """
    Refresh the cached snapshots used by the dashboard.

    Fetches the universe once, runs the configured screeners over the daily
    batch, stores the top results of each and the live quotes of every
    symbol found.
    """
    settings = _load_settings_or_exit(config)
    _configure_logging('DEBUG' if ctx.obj.get('verbose') else settings['logging']['level'])

    client = FMPClient.from_config(settings['api'])
    orchestrator = BatchOrchestrator(client, settings)
    store = ResultStore(Path(settings['cache']['dir']), top_n=int(settings['cache']['top_n']))

    logger.info("Starting daily screener analysis")
    try:
        universe = orchestrator.load_universe()
    except UniverseUnavailableError as e:
        click.echo(f"FATAL: Could not fetch symbol list. Error: {str(e)}", err=True)
        sys.exit(1)

    batch_size = int(settings['daily']['batch_size'])
    found_symbols: List[str] = []
    for screener_id in settings['daily']['screeners']:
        try:
            outcome = orchestrator.run(screener_id, universe=universe, batch_size=batch_size)
        except ValidationError as e:
            click.echo(f"Skipping {screener_id}: {str(e)}", err=True)
            continue
        store.save(screener_id, to_records(outcome.results))
        found_symbols.extend(r.symbol for r in outcome.results)
        click.echo(f"{screener_id} complete. Found {len(outcome.results)} stocks.")

    if found_symbols:
        quotes = fetch_live_quotes(client, found_symbols)
        if quotes:
            store.save_quotes(quotes)
            click.echo(f"Live prices cached for {len(quotes)} stocks.")

    logger.info("Daily analysis finished")


def _load_symbols_from_file(path: Path) -> List[str]:
    """Load symbols from a file (comma or newline separated)."""
    content = path.read_text()
    symbols: List[str] = []
    for raw_line in content.splitlines():
        line = raw_line.split('#', 1)[0].strip()
        if not line:
            continue
        parts = [p.strip() for p in line.split(',') if p.strip()]
        symbols.extend(parts)
    return [s.upper() for s in symbols]


if __name__ == '__main__':
    cli()
