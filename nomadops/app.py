"""Application bootstrap for nomadops.

Wires components in dependency order and manages the asyncio lifecycle.
Startup order: config -> logging -> Nomad client -> change log
              -> job change watcher -> REST

Shutdown stops components in reverse startup order.  Each component's stop
error is caught and logged independently so that one failing teardown does
not keep the rest from shutting down.
"""

from __future__ import annotations

import asyncio
import signal
from typing import TYPE_CHECKING

from nomadops.config import load_config
from nomadops.models.config import NomadOpsConfig
from nomadops.observability.logging import get_logger, setup_logging

if TYPE_CHECKING:
    import structlog

    from nomadops.collector.change_log import JobChangeLog
    from nomadops.collector.job_watcher import JobChangeWatcher
    from nomadops.nomad.client import NomadClient

_SHUTDOWN_GRACE_SECONDS = 15


class _ComponentError(Exception):
    """Raised when a mandatory component fails to start."""

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"Component '{component}' failed to start: {cause}")
        self.component = component
        self.cause = cause


class NomadOpsApp:
    """Application root.  Owns every component and coordinates their lifecycle.

    Calling ``stop()`` on an app that was never started, or already
    stopped, is safe.
    """

    def __init__(self) -> None:
        self.config: NomadOpsConfig | None = None

        self._client: NomadClient | None = None
        self._change_log: JobChangeLog | None = None
        self._watcher: JobChangeWatcher | None = None
        self._rest_server: object | None = None

        self._stop_watching = asyncio.Event()
        self._stopped = asyncio.Event()
        self._background_tasks: list[asyncio.Task[None]] = []

        self._running = False
        self._log: structlog.stdlib.BoundLogger | None = None

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start all components in dependency order.

        Raises _ComponentError if a mandatory component cannot start.
        """
        self.config = load_config()

        setup_logging(self.config.log.level)
        self._log = get_logger("app")
        self._log.info("nomadops_starting", version=_nomadops_version())

        await self._start_client()
        await self._start_watcher()
        await self._start_rest()

        self._running = True
        self._log.info("nomadops_started", port=self.config.api.port)

    async def _start_client(self) -> None:
        assert self._log is not None
        assert self.config is not None
        try:
            from nomadops.nomad.client import NomadClient

            self._client = NomadClient(self.config.nomad.address, token=self.config.nomad.token)
            self._log.info(
                "nomad_client_configured",
                address=self.config.nomad.address,
                token_set=bool(self.config.nomad.token),
            )
        except Exception as exc:
            raise _ComponentError("nomad_client", exc) from exc

    async def _start_watcher(self) -> None:
        """Subscribe to job changes, recording each into the change log."""
        assert self._log is not None
        assert self.config is not None
        assert self._client is not None
        from nomadops.collector.change_log import JobChangeLog

        self._change_log = JobChangeLog(maxlen=self.config.watcher.history_size)
        if not self.config.watcher.enabled:
            self._log.info("job_watcher_disabled")
            return

        try:
            from nomadops.collector.job_watcher import JobChangeWatcher

            watcher = JobChangeWatcher(
                self._client,
                reconnect_max_backoff=float(self.config.watcher.reconnect_max_backoff),
            )
            task = await watcher.subscribe(self._change_log.record, self._stop_watching)
            self._background_tasks.append(task)
            self._watcher = watcher
            self._log.info("job_watcher_started", index=watcher.last_index)
        except Exception as exc:
            raise _ComponentError("watcher", exc) from exc

    async def _start_rest(self) -> None:
        """Start the uvicorn REST server."""
        assert self._log is not None
        assert self.config is not None
        assert self._client is not None
        assert self._change_log is not None
        try:
            import uvicorn

            from nomadops.api import create_app

            fastapi_app = create_app(
                change_log=self._change_log,
                nomad_address=self._client.address,
                watcher=self._watcher,
            )
            uv_config = uvicorn.Config(
                app=fastapi_app,
                host="0.0.0.0",
                port=self.config.api.port,
                log_config=None,  # structlog handles all logging
                access_log=False,
            )
            server = uvicorn.Server(uv_config)
            task = asyncio.create_task(server.serve(), name="rest-server")
            self._background_tasks.append(task)
            self._rest_server = server
            self._log.info("rest_api_started", port=self.config.api.port)
        except Exception as exc:
            raise _ComponentError("rest", exc) from exc

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def stop(self) -> None:
        """Gracefully stop all components in reverse startup order."""
        if not self._running and self._log is None:
            self._stopped.set()
            return

        log = self._log or get_logger("app")
        log.info("nomadops_shutting_down")

        self._running = False

        # The watcher ends on its own once the stop event is set.
        self._stop_watching.set()
        if self._rest_server is not None:
            self._rest_server.should_exit = True  # type: ignore[attr-defined]

        if self._background_tasks:
            _, pending = await asyncio.wait(self._background_tasks, timeout=_SHUTDOWN_GRACE_SECONDS)
            for task in pending:
                log.warning("component_stop_timed_out", task=task.get_name(), timeout=_SHUTDOWN_GRACE_SECONDS)
                task.cancel()
            await asyncio.gather(*self._background_tasks, return_exceptions=True)
        self._background_tasks.clear()

        await self._stop_client()

        log.info("nomadops_stopped")
        self._stopped.set()

    async def wait_stopped(self) -> None:
        """Block until a call to ``stop()`` has finished tearing down."""
        await self._stopped.wait()

    async def _stop_client(self) -> None:
        if self._client is None:
            return
        log = self._log or get_logger("app")
        try:
            await self._client.aclose()
        except Exception as exc:
            log.debug("nomad_client_close_failed", error=str(exc))
        self._client = None


def _nomadops_version() -> str:
    from nomadops import __version__

    return __version__


# ---------------------------------------------------------------------------
# Async entrypoint
# ---------------------------------------------------------------------------


async def main() -> None:
    """Create the app, register OS signals, run until shutdown is requested."""
    app = NomadOpsApp()
    loop = asyncio.get_running_loop()

    shutdown_task: asyncio.Task[None] | None = None

    def _request_shutdown() -> None:
        nonlocal shutdown_task
        if shutdown_task is not None:
            return
        shutdown_task = asyncio.create_task(app.stop(), name="shutdown")

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, _request_shutdown)

    try:
        await app.start()
        await app.wait_stopped()
    except _ComponentError as exc:
        log = get_logger("app")
        log.critical(
            "fatal_startup_error",
            component=exc.component,
            error=str(exc.cause),
        )
        await app.stop()
        raise SystemExit(1) from exc
    finally:
        if app._running:
            await app.stop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.remove_signal_handler(sig)
