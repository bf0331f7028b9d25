"""Main application entry point."""

import argparse
import asyncio
import json
import signal
import sys
from datetime import datetime, timezone
from typing import List, Optional

from aiohttp import web, web_runner
from dotenv import load_dotenv

from .config import AppSettings, ConfigurationError, get_settings, load_config_from_env, set_settings
from .contents import DropBoxRepository
from .core import Traverser, TraversalResult
from .indexing import InMemoryIndexingService, RepositoryContext, RepositoryError
from .scheduler import SchedulerError, TraversalScheduler
from .utils.logging import setup_logging, get_logger


class ConnectorApp:
    """Dropbox connector application: repository, scheduler and health server."""

    def __init__(self, settings: Optional[AppSettings] = None):
        self.settings = settings or get_settings()
        self.logger = get_logger("DropboxConnector")
        self.running = False
        self.started_at: Optional[datetime] = None
        self.web_runner: Optional[web_runner.AppRunner] = None
        self.repository = DropBoxRepository()
        self.indexing_service = InMemoryIndexingService()
        self.traverser = Traverser(self.repository, self.indexing_service)
        self.scheduler: Optional[TraversalScheduler] = None

    async def init_repository(self):
        """Initialize the repository from settings."""
        await self.repository.init(RepositoryContext(settings=self.settings))

    async def run_once(self) -> TraversalResult:
        """Initialize, run a single full traversal and close."""
        await self.init_repository()
        try:
            return await self.traverser.full_traversal()
        finally:
            await self.repository.close()

    async def startup(self):
        """Application startup."""
        self.logger.info(
            "Starting Dropbox Connector",
            version=self.settings.version,
            environment=self.settings.environment
        )

        await self.init_repository()
        await self._setup_web_server()

        self.scheduler = TraversalScheduler(self.traverser, self.settings.scheduling)
        await self.scheduler.start()

        self.running = True
        self.started_at = datetime.now(timezone.utc)
        self.logger.info("Dropbox Connector started successfully")

    async def shutdown(self):
        """Application shutdown."""
        self.logger.info("Shutting down Dropbox Connector")
        self.running = False

        if self.scheduler and self.scheduler.running:
            await self.scheduler.stop(wait=False)

        await self._stop_web_server()
        await self.repository.close()

        self.logger.info("Dropbox Connector stopped")

    async def run(self):
        """Run until a shutdown signal clears ``running``.

        Shutdown also runs when startup fails part way.
        """
        try:
            await self.startup()
            while self.running:
                await asyncio.sleep(1)
        finally:
            await self.shutdown()

    async def _setup_web_server(self):
        """Set up web server for health checks and status."""
        web_app = web.Application()
        web_app.router.add_get('/health', self._health_handler)
        web_app.router.add_get('/status', self._status_handler)

        self.web_runner = web_runner.AppRunner(web_app)
        await self.web_runner.setup()

        site = web_runner.TCPSite(self.web_runner, self.settings.server.host, self.settings.server.port)
        await site.start()

        self.logger.info(
            "Web server started",
            host=self.settings.server.host,
            port=self.settings.server.port
        )

    async def _stop_web_server(self):
        if self.web_runner:
            await self.web_runner.cleanup()
            self.web_runner = None
            self.logger.info("Web server stopped")

    def _uptime_seconds(self) -> float:
        if not self.started_at:
            return 0.0
        return (datetime.now(timezone.utc) - self.started_at).total_seconds()

    async def _health_handler(self, request):
        """Liveness: 200 while running with an open Dropbox client, 503 otherwise."""
        healthy = self.running and self.repository.team_client is not None
        return web.json_response(
            {
                "status": "healthy" if healthy else "unhealthy",
                "connector": self.settings.name,
                "version": self.settings.version,
                "uptime_seconds": round(self._uptime_seconds(), 1),
                "checked_at": datetime.now(timezone.utc).isoformat()
            },
            status=200 if healthy else 503
        )

    async def _status_handler(self, request):
        """Scheduler job stats, traversal checkpoints and index counts."""
        scheduler_status = self.scheduler.get_status() if self.scheduler else {"running": False, "jobs": {}}
        return web.json_response({
            "connector": {
                "name": self.settings.name,
                "version": self.settings.version,
                "environment": self.settings.environment,
                "running": self.running,
                "team_member_filter": list(self.repository.team_member_ids)
            },
            "traversal": {
                "has_full_checkpoint": self.traverser.full_checkpoint is not None,
                "has_incremental_checkpoint": self.traverser.incremental_checkpoint is not None
            },
            "scheduler": scheduler_status,
            "index": {
                "items": len(self.indexing_service.items),
                "queued": self.indexing_service.queue_size,
                "deleted": self.indexing_service.deleted_count
            }
        })


def setup_signal_handlers(app: ConnectorApp):
    """Set up signal handlers for graceful shutdown."""
    def signal_handler(signum, frame):
        app.logger.info("Received signal", signal=signum)
        app.running = False

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="dropbox-connector",
        description="Push Dropbox team members to an enterprise search index"
    )
    parser.add_argument(
        "--config", "-c",
        help="Path to a YAML/JSON configuration file (default: CONNECTOR_CONFIG_FILE or ./config/connector.yaml)"
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single full traversal, print its summary and exit"
    )
    return parser.parse_args(argv)


async def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    load_dotenv()

    config = load_config_from_env(args.config)
    settings = set_settings(config.to_settings())

    setup_logging()
    logger = get_logger("main")
    logger.info("Initializing Dropbox Connector application")

    app = ConnectorApp(settings)

    if args.once:
        result = await app.run_once()
        print(json.dumps(result.to_dict(), indent=2))
        return 0 if result.success else 1

    setup_signal_handlers(app)
    await app.run()
    return 0


def cli():
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\nShutdown requested by user")
        sys.exit(0)
    except (ConfigurationError, RepositoryError, SchedulerError, OSError) as e:
        print(f"Dropbox Connector failed to start: {e}")
        sys.exit(1)


if __name__ == "__main__":
    cli()
