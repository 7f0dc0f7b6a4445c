"""Main entry point for Sales Scout."""

import argparse
import asyncio
import json
import sys

from loguru import logger

from .exceptions import SalesScoutError
from .orchestrator.coordinator import JobCoordinator
from .orchestrator.scheduler import JobScheduler
from .utils.config import get_config
from .utils.logger import setup_logging


async def run_scheduler():
    """Run the job scheduler."""
    config = get_config()
    setup_logging()

    logger.info("=" * 80)
    logger.info("Sales Scout - Starting")
    logger.info("=" * 80)

    coordinator = JobCoordinator(config.model_dump())
    scheduler = JobScheduler(coordinator, config.model_dump())

    scheduler.configure_jobs()
    scheduler.start()

    logger.info("Scheduler started. Press Ctrl+C to stop.")

    try:
        while True:
            await asyncio.sleep(1)
    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.info("Shutting down...")
        scheduler.stop()


async def run_batch():
    """Scrape all tracked products once."""
    config = get_config()
    setup_logging()

    coordinator = JobCoordinator(config.model_dump())
    summary = await coordinator.run_batch()

    logger.info(f"Batch completed: {summary.succeeded} succeeded, {summary.failed} failed")
    return 0 if summary.failed == 0 else 2


async def fetch_url(url: str):
    """Fetch one page and print its extracted sales data.

    Args:
        url: Product page URL
    """
    config = get_config()
    setup_logging(log_file="")

    coordinator = JobCoordinator(config.model_dump())
    result = await coordinator.fetch_sales(url)
    print(json.dumps(result.model_dump(by_alias=True), ensure_ascii=False))


def track_product(url: str, multiple_pattern: int, name: str):
    """Register a product page for tracking."""
    config = get_config()
    setup_logging(log_file="")

    coordinator = JobCoordinator(config.model_dump())
    product = coordinator.track_product(url, multiple_pattern, name)
    print(f"Tracking product {product.id}: {product.url} (x{product.multiple_pattern})")


def analyze_product(product_id: int):
    """Print the sales analysis of a tracked product."""
    config = get_config()
    setup_logging(log_file="")

    coordinator = JobCoordinator(config.model_dump())
    product, rows, summary = coordinator.analyze_product(product_id)

    print(f"{product.product_name or product.url} (x{product.multiple_pattern})")
    print(f"{'timestamp':<20} {'total_sold':>10} {'delta_sold':>10} {'sets':>6} {'rem':>5}")
    for row in rows:
        print(
            f"{row.timestamp:%Y-%m-%d %H:%M:%S} {row.total_sold:>10} {row.delta_sold:>10} "
            f"{row.estimated_sets:>6} {row.remainder_sales:>5}"
        )
    print(
        f"{summary.observations} observations, {summary.total_delta} sold, "
        f"{summary.total_sets} sets"
    )


def run_api():
    """Run the FastAPI server."""
    import uvicorn

    from .api.main import app

    config = get_config()
    setup_logging()

    logger.info("=" * 80)
    logger.info("Sales Scout API - Starting")
    logger.info("=" * 80)

    uvicorn.run(
        app,
        host=config.api.host,
        port=config.api.port,
        log_level="info",
    )


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Sales Scout")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("scheduler", help="Run the job scheduler")
    subparsers.add_parser("api", help="Run the API server")
    subparsers.add_parser("scrape", help="Scrape all tracked products once")

    fetch_parser = subparsers.add_parser("fetch", help="Fetch sales data for a URL")
    fetch_parser.add_argument("url", help="Product page URL")

    track_parser = subparsers.add_parser("track", help="Track a product page")
    track_parser.add_argument("url", help="Product page URL")
    track_parser.add_argument(
        "--multiple", type=int, required=True, help="Units per set"
    )
    track_parser.add_argument("--name", default="", help="Product name")

    analyze_parser = subparsers.add_parser("analyze", help="Analyze a tracked product")
    analyze_parser.add_argument("product_id", type=int, help="Tracked product ID")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    exit_code = 0
    try:
        if args.command == "scheduler":
            asyncio.run(run_scheduler())
        elif args.command == "api":
            run_api()
        elif args.command == "scrape":
            exit_code = asyncio.run(run_batch())
        elif args.command == "fetch":
            asyncio.run(fetch_url(args.url))
        elif args.command == "track":
            track_product(args.url, args.multiple, args.name)
        elif args.command == "analyze":
            analyze_product(args.product_id)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except SalesScoutError as e:
        logger.error(e.message)
        sys.exit(1)
    except Exception as e:
        logger.exception(f"Error: {e}")
        sys.exit(1)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
