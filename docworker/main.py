import asyncio

from docworker.config.settings import Settings
from docworker.database.connection import apply_schema, close_pool, get_connection, init_pool
from docworker.logging.logger import Log
from docworker.services import Services, build_services
from docworker.worker.worker import Worker


async def run_worker(settings: Settings) -> None:
    """Initialize pool -> build dependencies -> run the worker loop."""
    await init_pool(settings)
    services: Services | None = None
    try:
        if settings.db_apply_schema:
            async with get_connection() as conn:
                await apply_schema(conn)
            Log.info("Database schema applied")
        services = build_services(settings)
        worker = Worker(services.store, services.orchestrator, services.runner, settings)
        await worker.run()
    finally:
        if services is not None:
            await services.aclose()
        await close_pool()


def main() -> None:
    settings = Settings()
    Log.configure(settings.log_level)
    try:
        asyncio.run(run_worker(settings))
    except KeyboardInterrupt:
        Log.info("Worker stopped")


if __name__ == "__main__":
    main()
