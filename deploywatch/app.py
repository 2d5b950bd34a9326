"""Application bootstrap for deploywatch.

Wires all components in dependency order and manages the asyncio lifecycle.
Startup order: config -> logging -> K8s client -> notifier -> coordinator
              -> operator (sequencer, watches, full sync) -> health server

Shutdown is graceful: components are stopped in reverse startup order and
each stop error is caught and logged on its own, so one failing component
never keeps the others running.
"""

from __future__ import annotations

import asyncio
import signal
from typing import TYPE_CHECKING

from deploywatch.config import load_config
from deploywatch.models.config import DeployWatchConfig
from deploywatch.observability.logging import get_logger, setup_logging

if TYPE_CHECKING:
    import structlog

_SHUTDOWN_GRACE_SECONDS = 15


class _ComponentError(Exception):
    """Raised when a mandatory component fails to start."""

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"Component '{component}' failed to start: {cause}")
        self.component = component
        self.cause = cause


class DeployWatchApp:
    """Application root. Owns every component and coordinates their lifecycle.

    ``stop()`` is safe on an app that was never started or is already stopped.
    """

    def __init__(self) -> None:
        self.config: DeployWatchConfig | None = None

        self._api_client: object | None = None
        self._custom_api: object | None = None
        self._notifier: object | None = None
        self._coordinator: object | None = None
        self._operator: object | None = None
        self._health_server: object | None = None

        self._background_tasks: list[asyncio.Task[None]] = []

        self._running = False
        self._log: structlog.stdlib.BoundLogger | None = None

    @property
    def running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Start all components in dependency order.

        Raises _ComponentError if a mandatory component cannot start.
        """
        # --- 1. Configuration -------------------------------------------
        try:
            self.config = load_config()
        except ValueError as exc:
            raise _ComponentError("config", exc) from exc

        # --- 2. Logging -------------------------------------------------
        setup_logging(self.config.log.level, json_output=self.config.slack.environment == "production")
        self._log = get_logger("app")
        self._log.info("deploywatch_starting", version=_deploywatch_version())

        # --- 3. Kubernetes client ----------------------------------------
        await self._start_k8s_client()

        # --- 4. Notifier ------------------------------------------------
        await self._start_notifier()

        # --- 5. Coordinator (cache + change detector) --------------------
        await self._start_coordinator()

        # --- 6. Operator (sequencer, watches, full sync) -----------------
        await self._start_operator()

        # --- 7. Health / metrics server ----------------------------------
        await self._start_health_server()

        self._running = True
        self._log.info(
            "deploywatch_started",
            namespace=self.config.kubernetes.namespace,
            group=self.config.kubernetes.group,
            version=self.config.kubernetes.version,
        )

    # ------------------------------------------------------------------
    # Component startup helpers
    # ------------------------------------------------------------------

    async def _start_k8s_client(self) -> None:
        """Initialise kubernetes-asyncio from in-cluster config or kubeconfig."""
        assert self._log is not None
        self._log.debug("starting_k8s_client")
        try:
            import kubernetes_asyncio.config as k8s_config
            from kubernetes_asyncio import client as k8s_client

            try:
                # load_incluster_config() is synchronous in kubernetes-asyncio
                k8s_config.load_incluster_config()
                self._log.info("k8s_client_configured", source="incluster")
            except k8s_config.ConfigException:
                await k8s_config.load_kube_config()
                self._log.info("k8s_client_configured", source="kubeconfig")

            api_client = k8s_client.ApiClient()
            self._api_client = api_client
            self._custom_api = k8s_client.CustomObjectsApi(api_client)
        except Exception as exc:
            raise _ComponentError("k8s_client", exc) from exc

    async def _start_notifier(self) -> None:
        assert self._log is not None
        assert self.config is not None
        try:
            from deploywatch.notifications import build_notifier

            self._notifier = build_notifier(self.config.slack)
        except Exception as exc:
            raise _ComponentError("notifier", exc) from exc

    async def _start_coordinator(self) -> None:
        assert self._log is not None
        assert self.config is not None
        assert self._notifier is not None
        try:
            from deploywatch.cache import ResourceStateCache
            from deploywatch.diff import ChangeDetector
            from deploywatch.operator import DeploymentNotificationCoordinator

            self._coordinator = DeploymentNotificationCoordinator(
                cache=ResourceStateCache(),
                detector=ChangeDetector(context_lines=self.config.diff.context_lines),
                notifier=self._notifier,  # type: ignore[arg-type]
            )
        except Exception as exc:
            raise _ComponentError("coordinator", exc) from exc

    async def _start_operator(self) -> None:
        assert self._log is not None
        assert self.config is not None
        assert self._coordinator is not None
        self._log.debug("starting_operator")
        try:
            from deploywatch.collector import EventSequencer, WatchManager
            from deploywatch.collector.lister import CustomResourceLister
            from deploywatch.operator import ArgoCdApplicationManager, ManagerDispatcher, Operator

            k8s = self.config.kubernetes
            watch_cfg = self.config.watch
            operator = Operator(
                ManagerDispatcher([ArgoCdApplicationManager(self._coordinator)]),  # type: ignore[arg-type]
                EventSequencer(),
                WatchManager(
                    self._custom_api,  # type: ignore[arg-type]
                    initial_delay=watch_cfg.initial_delay,
                    backoff_factor=watch_cfg.backoff_factor,
                    max_delay=watch_cfg.max_delay,
                    timeout_seconds=watch_cfg.timeout_seconds,
                ),
                group=k8s.group,
                version=k8s.version,
                namespace=k8s.namespace,
                lister=CustomResourceLister(
                    self._custom_api,  # type: ignore[arg-type]
                    k8s.group,
                    k8s.version,
                    k8s.namespace,
                ),
                full_sync_interval=watch_cfg.full_sync_interval,
            )
            await operator.start()
            self._operator = operator
            self._log.info("operator_started")
        except Exception as exc:
            raise _ComponentError("operator", exc) from exc

    async def _start_health_server(self) -> None:
        """Serve /health and /metrics with uvicorn, unless disabled."""
        assert self._log is not None
        assert self.config is not None
        if not self.config.health.enabled:
            self._log.info("health_server_disabled")
            return
        try:
            import uvicorn

            from deploywatch.api import create_app

            uv_config = uvicorn.Config(
                app=create_app(),
                host="0.0.0.0",
                port=self.config.health.port,
                log_config=None,  # structlog handles all logging
                access_log=False,
            )
            server = uvicorn.Server(uv_config)
            task = asyncio.create_task(server.serve(), name="health-server")
            self._background_tasks.append(task)
            self._health_server = server
            self._log.info("health_server_started", port=self.config.health.port)
        except Exception as exc:
            raise _ComponentError("health_server", exc) from exc

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def stop(self) -> None:
        """Gracefully stop all components in reverse startup order."""
        if not self._running and self._log is None:
            return

        log = self._log or get_logger("app")
        log.info("deploywatch_shutting_down")
        self._running = False

        if self._health_server is not None:
            self._health_server.should_exit = True  # type: ignore[attr-defined]
        if self._background_tasks:
            _, pending = await asyncio.wait(self._background_tasks, timeout=_SHUTDOWN_GRACE_SECONDS)
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
        self._background_tasks.clear()
        self._health_server = None

        await self._stop_component("operator", self._operator)
        self._operator = None
        await self._stop_component("notifier", self._notifier, method="close")
        self._notifier = None
        self._coordinator = None
        await self._stop_k8s_client()

        log.info("deploywatch_stopped")

    async def _stop_component(self, name: str, component: object | None, method: str = "stop") -> None:
        """Call *method* on a component if it has it, catching all errors."""
        if component is None:
            return
        log = self._log or get_logger("app")
        stop_fn = getattr(component, method, None)
        if stop_fn is None:
            return
        try:
            result = stop_fn()
            if asyncio.iscoroutine(result):
                await asyncio.wait_for(result, timeout=_SHUTDOWN_GRACE_SECONDS)
        except TimeoutError:
            log.warning("component_stop_timed_out", component=name, timeout=_SHUTDOWN_GRACE_SECONDS)
        except Exception as exc:  # noqa: BLE001
            log.error("component_stop_failed", component=name, error=str(exc))

    async def _stop_k8s_client(self) -> None:
        """Close the kubernetes-asyncio ApiClient connection pool."""
        if self._api_client is None:
            return
        log = self._log or get_logger("app")
        try:
            await self._api_client.close()  # type: ignore[attr-defined]
        except Exception as exc:  # noqa: BLE001
            log.debug("k8s_client_close_failed", error=str(exc))
        self._api_client = None
        self._custom_api = None


def _deploywatch_version() -> str:
    from deploywatch import __version__

    return __version__


# ---------------------------------------------------------------------------
# Async entrypoint
# ---------------------------------------------------------------------------


async def main() -> None:
    """Create the app, register OS signals, run until shutdown is requested."""
    app = DeployWatchApp()
    loop = asyncio.get_running_loop()
    shutdown = asyncio.Event()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, shutdown.set)

    try:
        await app.start()
        await shutdown.wait()
    except _ComponentError as exc:
        log = get_logger("app")
        log.critical("fatal_startup_error", component=exc.component, error=str(exc.cause))
        await app.stop()
        raise SystemExit(1) from exc
    finally:
        if app.running:
            await app.stop()
