import logging
from threading import RLock
from typing import Any, Union

from ._node import Object
from .errors import (
    GraphWireError,
    ProvideError,
    ServiceNotFoundError,
    ServicePopulateError,
    ServiceRegistrationError,
    ServiceStartupError,
)
from .graph import Graph
from .interfaces import Service

logger = logging.getLogger(__name__)


class Container:
    """
    Registers services by id, wires them through a `Graph`
    and drives their startup and shutdown in registration order.

    ```python
    container = Container()
    container.register_service("db", Database())
    container.register_service("users", UserService())
    container.ready()
    users = container.get_service("users")
    ...
    container.shutdown()
    ```
    """

    def __init__(self, graph: Union[Graph, None] = None):
        self._lock = RLock()
        self._graph = graph if graph is not None else Graph()
        self._order: list[str] = []
        self._services: dict[str, Any] = {}
        self._ready = False

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"services={len(self._services)}, "
            f"ready={self._ready})"
        )

    def __contains__(self, service_id: str) -> bool:
        with self._lock:
            return service_id in self._services

    @property
    def graph(self) -> Graph:
        return self._graph

    @property
    def is_ready(self) -> bool:
        return self._ready

    def ready(self) -> None:
        """
        Populate the graph, then start every service in registration order.
        Calling it again once ready is a no-op.
        """
        if self._ready:
            return

        with self._lock:
            if self._ready:
                return

            try:
                self._graph.populate()
            except GraphWireError as ge:
                raise ServicePopulateError(ge) from ge

            for service_id in self._order:
                service = self._services[service_id]
                if not isinstance(service, Service):
                    continue
                logger.info("[starting up] %s", service_id)
                try:
                    service.startup()
                except Exception as e:
                    raise ServiceStartupError(service_id, e) from e

            self._ready = True

    def register_service(self, service_id: str, service: Any) -> None:
        with self._lock:
            if self._ready:
                logger.warning(
                    "registering service %s after container is ready", service_id
                )

            try:
                self._graph.provide(Object(service, name=service_id))
            except ProvideError as pe:
                logger.error("error providing service %s: %s", service_id, pe)
                raise ServiceRegistrationError(service_id, pe) from pe

            self._order.append(service_id)
            self._services[service_id] = service

    def get_service(self, service_id: str) -> Any:
        with self._lock:
            try:
                return self._services[service_id]
            except KeyError:
                raise ServiceNotFoundError(service_id) from None

    def get_service_or_none(self, service_id: str) -> Any:
        with self._lock:
            return self._services.get(service_id)

    def shutdown(self) -> dict[str, Exception]:
        """
        Shut every service down in registration order.

        A failing service does not stop the others,
        failures are logged and returned by service id.
        """
        failures: dict[str, Exception] = {}
        with self._lock:
            for service_id in self._order:
                service = self._services[service_id]
                if not isinstance(service, Service):
                    continue
                logger.info("[shutting down] %s", service_id)
                try:
                    service.shutdown()
                except Exception as e:
                    logger.exception("[shutting down] %s", service_id)
                    failures[service_id] = e

            self._ready = False
        return failures
