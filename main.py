#!/usr/bin/env python3
"""
Upwork Job Catalog - Main Entry Point

Usage:
    python main.py --serve                  # Run the HTTP API
    python main.py --page 2 --search react  # Show one catalog page
    python main.py --export csv             # Export every job
    python main.py --propose 123            # Draft a proposal for a job
    python main.py --test                   # Test configuration and connections
"""
import argparse
import asyncio
import sys
from pathlib import Path

from job_catalog.config import get_config, get_credentials
from job_catalog.export import ExportError, export_filename
from job_catalog.filters import ALL_LEVELS, EXPERIENCE_LEVELS
from job_catalog.logger import setup_logging, get_logger
from job_catalog.models import ProposalState
from job_catalog.service import CatalogService
from job_catalog.store import RecordStore, StoreError


def test_connection() -> bool:
    """Test the configuration, credentials and record store"""
    logger = get_logger()

    logger.info("Testing Upwork Job Catalog Configuration")
    logger.info("=" * 50)

    try:
        config = get_config()
        logger.info("✓ Configuration loaded successfully")
        logger.info(f"  Table: {config.catalog.table} (page size {config.catalog.page_size})")
        logger.info(f"  Model: {config.ai.model}")
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"✗ Configuration error: {e}")
        return False

    creds = get_credentials()
    if not creds.supabase_url or not creds.supabase_key:
        logger.warning("⚠ Supabase credentials not set in .env file")
        logger.info("  Copy .env.example to .env and add your credentials")
        return False
    logger.info("✓ Supabase credentials configured")

    if creds.openai_api_key:
        logger.info("✓ OpenAI API key configured")
    else:
        logger.warning("⚠ OPENAI_API_KEY not set, proposal drafting will fail")

    logger.info("\nTesting record store...")
    try:
        store = RecordStore(config=config.catalog)
        rows, total = store.fetch_page(0, 1)
    except StoreError as e:
        logger.error(f"✗ Record store error: {e}")
        return False

    logger.info(f"✓ Connected, {total if total is not None else 'unknown number of'} jobs in {config.catalog.table}")
    if rows:
        logger.info(f"  Newest: {(rows[0].get('title') or 'Untitled')[:60]}")

    logger.info("\n" + "=" * 50)
    logger.info("All tests passed! You can now run the service.")
    return True


async def show_page(page: int, search: str, level: str) -> bool:
    logger = get_logger()
    service = CatalogService()
    service.set_filter(search_term=search, category_filter=level)

    outcome = await service.open_page(page)
    if not outcome.ok:
        logger.error(f"Could not load page {page}: {outcome.error}")
        return False

    view = service.view()
    for job in view["jobs"]:
        skills = ", ".join(job["skills"][:5])
        logger.info(
            f"[{job['id']}] {job['title'][:70]} | {job['budget']} | "
            f"{job['experience_level'] or 'N/A'} | {job['extracted']}"
            + (f" | {skills}" if skills else "")
        )
    logger.info(view["filter_summary"])
    logger.info(view["page_summary"])
    return True


async def export_jobs(fmt: str, limit: int, output: str) -> bool:
    logger = get_logger()
    service = CatalogService()
    try:
        content = await service.export(fmt, limit)
    except ExportError as e:
        logger.error(f"Export failed: {e}")
        return False

    if output == "-":
        sys.stdout.buffer.write(content)
        sys.stdout.flush()
        return True

    path = Path(output or export_filename(fmt, prefix=service.config.export.filename_prefix))
    path.write_bytes(content)
    logger.info(f"Wrote {len(content)} bytes to {path}")
    return True


async def propose(record_id: int) -> bool:
    logger = get_logger()
    service = CatalogService()
    record = await service.find(record_id)
    if record is None:
        logger.error(f"No job with id {record_id}")
        return False

    outcome = await service.propose(record)
    if outcome.state != ProposalState.SUCCESS:
        logger.error(f"Proposal failed: {outcome.error}")
        return False

    print(outcome.text)
    return True


def serve():
    import uvicorn

    from job_catalog.api import create_app

    server = get_config().server
    # log_config=None keeps uvicorn on the loguru intercept handler
    uvicorn.run(create_app(), host=server.host, port=server.port, log_config=None)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Upwork Job Catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --serve                      Run the HTTP API
  python main.py --page 1 --level Expert      Show page 1, expert jobs only
  python main.py --export json --limit 500    Export the newest 500 jobs
  python main.py --propose 123                Draft a proposal for job 123
  python main.py --test                       Test configuration and connections
        """
    )

    parser.add_argument(
        "--serve",
        action="store_true",
        help="Run the HTTP API server"
    )

    parser.add_argument(
        "--page",
        type=int,
        help="Show one page of the catalog (1-based)"
    )

    parser.add_argument(
        "--search",
        default="",
        help="Free-text filter applied to the shown page"
    )

    parser.add_argument(
        "--level",
        default=ALL_LEVELS,
        choices=(ALL_LEVELS,) + EXPERIENCE_LEVELS,
        help="Experience level filter for the shown page"
    )

    parser.add_argument(
        "--export",
        choices=["json", "csv"],
        help="Export every job in the given format"
    )

    parser.add_argument(
        "--limit",
        type=int,
        help="Export only the newest N jobs"
    )

    parser.add_argument(
        "--output",
        help="Export file path, '-' for stdout (default: dated file name)"
    )

    parser.add_argument(
        "--propose",
        type=int,
        metavar="ID",
        help="Draft a proposal for the job with this id"
    )

    parser.add_argument(
        "--test",
        action="store_true",
        help="Test configuration and Supabase connection"
    )

    parser.add_argument(
        "--log-level",
        help="Override the configured log level"
    )

    return parser


def main():
    """Main entry point"""
    args = build_parser().parse_args()
    setup_logging(args.log_level)
    logger = get_logger()

    try:
        if args.test:
            success = test_connection()
        elif args.serve:
            serve()
            success = True
        elif args.export:
            success = asyncio.run(export_jobs(args.export, args.limit, args.output))
        elif args.propose is not None:
            success = asyncio.run(propose(args.propose))
        else:
            success = asyncio.run(show_page(args.page or 1, args.search, args.level))
    except StoreError as e:
        logger.error(f"{e}")
        success = False

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
