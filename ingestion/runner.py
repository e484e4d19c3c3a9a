"""Command-line entry point for running a fetch."""
import argparse
import asyncio
import json
import logging
import signal

from database.connection import DatabaseConnection
from ingestion.pipeline import build_pipeline
from shared.config import settings
from shared.errors import SourceDisabled, SourceNotFound
from shared.models import RunStatus, SummaryStatus

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fetch articles from configured sources.")
    parser.add_argument("--source-id", help="Fetch only this source")
    return parser.parse_args(argv)


async def main(argv=None) -> int:
    """Run one fetch and return a process exit code."""
    args = parse_args(argv)

    db = await DatabaseConnection.init_mongo()
    redis_client = await DatabaseConnection.init_redis() if settings.publish_events else None
    pipeline = build_pipeline(db, redis_client)

    # Cancel the run on SIGTERM/SIGINT; sessions are released on the way out
    loop = asyncio.get_running_loop()
    task = asyncio.current_task()

    def signal_handler():
        logger.info("Received shutdown signal")
        task.cancel()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, signal_handler)

    try:
        if args.source_id:
            summary = await pipeline.orchestrator.run_single(args.source_id)
            print(summary.model_dump_json(indent=2))
            return 1 if summary.status == SummaryStatus.FAILED else 0

        result = await pipeline.orchestrator.run_all()
        print(json.dumps(result.model_dump(mode="json"), indent=2))
        return 1 if result.status == RunStatus.FAILED else 0
    except (SourceNotFound, SourceDisabled) as e:
        logger.error(str(e))
        return 2
    except asyncio.CancelledError:
        logger.info("Fetch run cancelled")
        return 130
    finally:
        await pipeline.close()
        await DatabaseConnection.close_connections()
        logger.info("Runner shutdown complete")


def run():
    raise SystemExit(asyncio.run(main()))


if __name__ == "__main__":
    run()
