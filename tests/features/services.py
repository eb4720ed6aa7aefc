from abc import ABC, abstractmethod
from typing import Annotated, Protocol

from graphwire import inject


class Config:
    env: str = "prod"


class Database:
    dsn: str = ""


class Cache: ...


class UserRepository:
    db: Annotated[Database, inject()]
    cache: Annotated[Cache, inject()]


class UserService:
    repo: Annotated[UserRepository, inject()]
    db: Annotated[Database, inject()]


class Notifier(Protocol):
    def notify(self, message: str) -> None: ...


class EmailNotifier:
    def notify(self, message: str) -> None:
        self.last = message


class SmsNotifier:
    def notify(self, message: str) -> None:
        self.last = message


class Repository(ABC):
    @abstractmethod
    def get(self, key: str) -> str: ...


class SqlRepository(Repository):
    def get(self, key: str) -> str:
        return key


class Alerts:
    notifier: Annotated[Notifier, inject()]
