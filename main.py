"""
Cricket Data Pipeline - main entry point

Runs the API server (startup preload plus periodic refresh in the background)
or a single preload pass, depending on ``RUN_MODE``.
"""

import asyncio
import signal
import sys

import uvicorn

from cricket_pipeline.api.main import create_fastapi_app
from cricket_pipeline.apps import IplDataApp
from cricket_pipeline.common.logging_utils import configure_logging, get_logger
from cricket_pipeline.core.config import Settings


class CricketDataPipeline:
    """Top-level process object"""

    def __init__(self, settings: Settings = None):
        self.settings = settings or Settings()
        configure_logging(
            level=self.settings.log_level,
            fmt=self.settings.log_format,
            log_file=self.settings.log_file_path,
        )
        self.logger = get_logger("cricket_data_pipeline")
        self.data_app = IplDataApp(self.settings)
        self.shutdown_event = asyncio.Event()

    def _setup_signal_handlers(self):
        """Signal handlers for graceful shutdown"""
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.shutdown_event.set)
            except NotImplementedError:
                # Windows event loops have no signal handler support
                pass

    async def run_api_server(self):
        """Startet den API Server"""
        config = uvicorn.Config(
            create_fastapi_app(self.settings, self.data_app),
            host=self.settings.api_host,
            port=self.settings.api_port,
            log_level=self.settings.log_level.lower(),
            log_config=None,
            access_log=True,
        )
        server = uvicorn.Server(config)
        self.logger.info(f"Starting API server on {self.settings.api_host}:{self.settings.api_port}")

        server_task = asyncio.create_task(server.serve())
        shutdown_task = asyncio.create_task(self.shutdown_event.wait())
        await asyncio.wait({server_task, shutdown_task}, return_when=asyncio.FIRST_COMPLETED)

        server.should_exit = True
        shutdown_task.cancel()
        await server_task

    async def run(self) -> int:
        self._setup_signal_handlers()
        if self.settings.run_mode == "preload_once":
            summary = await self.data_app.orchestrator.preload()
            failed = [k for k, r in summary["results"].items() if r["status"] == "error"]
            self.logger.info(f"Preload completed: {len(summary['results'])} keys, {len(failed)} failed")
            return 1 if failed else 0
        if self.settings.run_mode == "api_only":
            await self.run_api_server()
            return 0
        self.logger.error(f"Unknown run mode: {self.settings.run_mode}")
        return 2


def main() -> int:
    """Haupteinstiegspunkt"""
    try:
        return asyncio.run(CricketDataPipeline(Settings()).run())
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
