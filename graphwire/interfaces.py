from typing import Protocol, runtime_checkable


@runtime_checkable
class Service(Protocol):
    """
    Lifecycle capability of a registered service.
    Services that don't implement it are skipped by the container.
    """

    def startup(self) -> None: ...

    def shutdown(self) -> None: ...
