"""quotefeed CLI."""

import asyncio
import json
import logging

import click

from quotefeed.app import FeedApp, build_catalog
from quotefeed.config_loader import load_config_with_overrides
from quotefeed.data.field_encoder import encode, format_hundredths
from quotefeed.data.price_walk import PriceWalk
from quotefeed.feed.simulator import make_random_sources


@click.group()
def cli():
    """quotefeed Command Line Interface."""
    pass


@cli.command()
@click.option("--config", type=click.Path(exists=True), help="Path to configuration file")
@click.option("--seed", type=int, help="Seed for reproducible price paths")
@click.option("--pool-size", type=int, help="Worker threads running updates")
@click.option("--duration", type=float, help="Stop after this many seconds")
@click.option("--output", type=click.Path(dir_okay=False), help="Write JSON lines to a file")
def run(config, seed, pool_size, duration, output):
    """Start the simulated feed, writing one JSON line per update."""
    try:
        app = FeedApp(config_path=config, seed=seed, pool_size=pool_size, output=output)
        asyncio.run(app.run(duration=duration))
    except KeyboardInterrupt:
        pass
    except Exception as e:
        click.echo(f"Fatal error: {e}", err=True)
        raise SystemExit(1)


@cli.command()
@click.option("--config", type=click.Path(exists=True), help="Path to configuration file")
def catalog(config):
    """Show the instrument table."""
    try:
        cat = build_catalog(load_config_with_overrides(config))
    except Exception as e:
        click.echo(f"Invalid catalog: {e}", err=True)
        raise SystemExit(1)

    click.echo(f"{'ITEM':<8} {'NAME':<22} {'REF':>8} {'OPEN':>8} {'MIN':>8} {'MAX':>8} {'MEAN ms':>9}")
    for d in cat:
        click.echo(
            f"{d.item_id:<8} {d.stock_name:<22} {format_hundredths(d.ref_price):>8} "
            f"{format_hundredths(d.open_price):>8} {format_hundredths(d.min_price):>8} "
            f"{format_hundredths(d.max_price):>8} {d.mean_interval_ms:>9.0f}"
        )


@cli.command()
@click.option("--config", type=click.Path(exists=True), help="Path to configuration file")
@click.option("--item", "item_id", required=True, help="Item id, e.g. item1")
@click.option("--steps", default=10, help="Number of updates to generate")
@click.option("--seed", type=int, help="Seed for reproducible price paths")
def sample(config, item_id, steps, seed):
    """Generate updates for one item offline, without timers."""
    logging.basicConfig(level=logging.WARNING, format="%(message)s")

    cfg = load_config_with_overrides(config, seed=seed)
    cat = build_catalog(cfg)
    try:
        definition = cat.by_item_id(item_id)
    except KeyError:
        click.echo(f"Unknown item: {item_id}", err=True)
        raise SystemExit(1)

    # Same stream the live feed would give this item
    index = [d.item_id for d in cat].index(item_id)
    rng = make_random_sources(cat.count(), cfg.feed.seed)[index]
    walk = PriceWalk(definition, rng)

    for _ in range(steps):
        interval = walk.next_interval()
        walk.advance()
        record = encode(walk)
        click.echo(json.dumps({"item": item_id, "wait_ms": interval, "fields": record.to_fields()}))


if __name__ == "__main__":
    cli()

# Alias for __main__.py
main = cli
