"""Application bootstrap for status-informer.

Wires all components in dependency order and manages the asyncio lifecycle.
Startup order: config → logging → K8s client → emitter → pipeline → health API

The pipeline runs as a background task; its exit (stop signal, sync timeout
or fatal watch error) ends the process. Shutdown stops components in reverse
startup order, each one isolated so a failing teardown does not block the rest.
"""

from __future__ import annotations

import asyncio
import signal
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from statusinformer.config import load_config
from statusinformer.models.config import StatusInformerConfig
from statusinformer.models.resources import GroupVersionResource
from statusinformer.observability.logging import get_logger, setup_logging

if TYPE_CHECKING:
    import structlog

_SHUTDOWN_GRACE_SECONDS = 15


class _ComponentError(Exception):
    """Raised when a mandatory component fails to start."""

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"Component '{component}' failed to start: {cause}")
        self.component = component
        self.cause = cause


class StatusInformerApp:
    """Application root.  Owns every component and coordinates their lifecycle.

    Calling ``stop()`` on an app that was never started (or already stopped)
    is safe.
    """

    def __init__(self, overrides: dict[str, Any] | None = None) -> None:
        self._overrides = overrides or {}
        self.config: StatusInformerConfig | None = None

        self._api_client: Any | None = None
        self._emitter: Any | None = None
        self._informer: Any | None = None
        self._rest_server: Any | None = None

        self._stop_event = asyncio.Event()
        self._pipeline_task: asyncio.Task[bool] | None = None
        self._background_tasks: list[asyncio.Task[Any]] = []

        self._running = False
        self._log: structlog.stdlib.BoundLogger | None = None

    @property
    def stop_event(self) -> asyncio.Event:
        return self._stop_event

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start all components in dependency order.

        Raises _ComponentError if a mandatory component cannot start.
        """
        # --- 1. Configuration -------------------------------------------
        try:
            self.config = load_config(**self._overrides)
        except ValueError as exc:
            raise _ComponentError("config", exc) from exc

        # --- 2. Logging -------------------------------------------------
        setup_logging(self.config.log.level)
        self._log = get_logger("app")
        res = self.config.resource
        self._log.info(
            "status-informer starting",
            version=_version(),
            debug=self.config.log.debug,
            group=res.group,
            api_version=res.version,
            resource=res.resource,
            resync_interval=self.config.watch.resync_interval,
            throttle_period=self.config.emitter.throttle_period,
            emitter=self.config.emitter.strategy,
        )

        # --- 3. Kubernetes client ----------------------------------------
        await self._start_k8s_client()

        # --- 4. Event emitter --------------------------------------------
        await self._start_emitter()

        # --- 5. Pipeline -------------------------------------------------
        await self._start_pipeline()

        # --- 6. Health API -----------------------------------------------
        await self._start_rest()

        self._running = True

    async def _start_k8s_client(self) -> None:
        """Build the ApiClient from an explicit kubeconfig, in-cluster identity, or the default kubeconfig."""
        assert self._log is not None
        assert self.config is not None
        self._log.debug("starting k8s client")
        try:
            import kubernetes_asyncio.config as k8s_config  # type: ignore[import-untyped]
            from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]

            if self.config.kubeconfig:
                await k8s_config.load_kube_config(config_file=self.config.kubeconfig)
                self._log.info("k8s client configured from kubeconfig", path=self.config.kubeconfig)
            else:
                try:
                    k8s_config.load_incluster_config()
                    self._log.info("k8s client configured from in-cluster service account")
                except k8s_config.ConfigException:
                    await k8s_config.load_kube_config()
                    self._log.info("k8s client configured from default kubeconfig")

            self._api_client = k8s_client.ApiClient()
        except Exception as exc:
            raise _ComponentError("k8s_client", exc) from exc

    async def _start_emitter(self) -> None:
        assert self._log is not None
        assert self.config is not None
        try:
            from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]

            from statusinformer.emitter import build_emitter

            core_api = k8s_client.CoreV1Api(self._api_client)
            self._emitter = build_emitter(self.config.emitter, core_api)
        except Exception as exc:
            raise _ComponentError("emitter", exc) from exc

    async def _start_pipeline(self) -> None:
        """Create the StatusInformer and run it in the background."""
        assert self._log is not None
        assert self.config is not None
        try:
            from kubernetes_asyncio import client as k8s_client  # type: ignore[import-untyped]

            from statusinformer.emitter import ConditionThrottle
            from statusinformer.pipeline import StatusInformer

            res = self.config.resource
            informer = StatusInformer(
                api=k8s_client.CustomObjectsApi(self._api_client),
                gvr=GroupVersionResource(res.group, res.version, res.resource),
                emitter=self._emitter,  # type: ignore[arg-type]
                resync_interval=self.config.watch.resync_interval,
                sync_timeout=self.config.watch.sync_timeout,
                throttle=ConditionThrottle(timedelta(seconds=self.config.emitter.throttle_period)),
            )
            self._informer = informer
            self._pipeline_task = asyncio.create_task(informer.run(self._stop_event), name="pipeline")
        except Exception as exc:
            raise _ComponentError("pipeline", exc) from exc

    async def _start_rest(self) -> None:
        """Start the uvicorn health server, unless the port is 0."""
        assert self._log is not None
        assert self.config is not None
        if self.config.health.port == 0:
            self._log.info("health api disabled (port=0)")
            return
        try:
            import uvicorn  # type: ignore[import-untyped]

            from statusinformer.api import create_app

            res = self.config.resource
            fastapi_app = create_app(
                informer=self._informer,
                resource=str(GroupVersionResource(res.group, res.version, res.resource)),
            )
            uv_config = uvicorn.Config(
                app=fastapi_app,
                host="0.0.0.0",
                port=self.config.health.port,
                log_config=None,  # structlog handles all logging
                access_log=False,
            )
            server = uvicorn.Server(uv_config)
            task = asyncio.create_task(server.serve(), name="health-server")
            self._background_tasks.append(task)
            self._rest_server = server
            self._log.info("health api started", port=self.config.health.port)
        except Exception as exc:
            raise _ComponentError("rest", exc) from exc

    # ------------------------------------------------------------------
    # Running
    # ------------------------------------------------------------------

    async def wait(self) -> bool:
        """Block until the pipeline returns. True on a normal stop.

        Raises _ComponentError when the watch session cannot be established.
        """
        assert self._pipeline_task is not None
        from statusinformer.cache import WatchSessionError

        try:
            return await self._pipeline_task
        except WatchSessionError as exc:
            raise _ComponentError("watch", exc) from exc

    def request_stop(self) -> None:
        self._stop_event.set()

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def stop(self) -> None:
        """Gracefully stop all components in reverse startup order."""
        if not self._running and self._log is None:
            return

        log = self._log or get_logger("app")
        log.info("status-informer shutting down")
        self._running = False
        self._stop_event.set()

        if self._rest_server is not None:
            self._rest_server.should_exit = True
        if self._background_tasks:
            _, pending = await asyncio.wait(self._background_tasks, timeout=_SHUTDOWN_GRACE_SECONDS)
            for task in pending:
                task.cancel()
        self._background_tasks.clear()

        if self._pipeline_task is not None and not self._pipeline_task.done():
            try:
                await asyncio.wait_for(asyncio.shield(self._pipeline_task), timeout=_SHUTDOWN_GRACE_SECONDS)
            except TimeoutError:
                log.warning("pipeline stop timed out", timeout=_SHUTDOWN_GRACE_SECONDS)
                self._pipeline_task.cancel()
            except Exception as exc:
                log.error("pipeline stop raised an error", error=str(exc))

        await self._stop_k8s_client()
        log.warning("status-informer done")

    async def _stop_k8s_client(self) -> None:
        """Close the ApiClient connection pool."""
        if self._api_client is None:
            return
        log = self._log or get_logger("app")
        try:
            await self._api_client.close()
        except Exception as exc:
            log.debug("k8s client close raised (non-fatal)", error=str(exc))
        self._api_client = None


def _version() -> str:
    from statusinformer import __version__

    return __version__


# ---------------------------------------------------------------------------
# Async entrypoint
# ---------------------------------------------------------------------------


async def main(overrides: dict[str, Any] | None = None) -> None:
    """Create the app, register OS signals, run until the pipeline returns."""
    app = StatusInformerApp(overrides)
    loop = asyncio.get_running_loop()

    def _request_shutdown(sig: signal.Signals) -> None:
        if app.stop_event.is_set():
            return
        get_logger("app").warning("signal detected, shutting down", signal=sig.name)
        app.request_stop()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, _request_shutdown, sig)

    try:
        await app.start()
        clean = await app.wait()
    except _ComponentError as exc:
        log = get_logger("app")
        log.critical(
            "fatal startup error",
            component=exc.component,
            error=str(exc.cause),
        )
        await app.stop()
        raise SystemExit(1) from exc

    await app.stop()
    if not clean:
        raise SystemExit(1)
