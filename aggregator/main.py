"""Scheduler process entry point."""
import asyncio
import signal
import logging
from aggregator.cleanup import Housekeeper
from aggregator.pipeline import AggregationPipeline
from aggregator.scheduler import Scheduler
from database.connection import DatabaseConnection

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def main():
    """Run the aggregation and cleanup timers until a shutdown signal arrives."""
    logger.info("Starting news aggregation scheduler")

    # Initialize database connections
    db = await DatabaseConnection.init_mongo()
    redis_client = await DatabaseConnection.init_redis()

    pipeline = AggregationPipeline.from_database(db, redis_client)
    scheduler = Scheduler(pipeline, Housekeeper.from_database(db))

    loop = asyncio.get_running_loop()

    def signal_handler():
        logger.info("Received shutdown signal")
        asyncio.create_task(scheduler.stop())

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, signal_handler)

    try:
        scheduler.start()
        await scheduler.wait_closed()
    except Exception as e:
        logger.error(f"Scheduler error: {e}")
    finally:
        await scheduler.stop()
        await DatabaseConnection.close_connections()
        logger.info("Scheduler shutdown complete")


if __name__ == "__main__":
    asyncio.run(main())
