import logging
from typing import Annotated, Optional

import pytest

from graphwire import Graph, GraphConfig, Object, TypeDescriptor, inject
from graphwire.errors import (
    DuplicateNameError,
    DuplicateTypeError,
    PreWiredObjectError,
    ProvideError,
    ShapeViolationError,
)
from tests.features.services import (
    Cache,
    Config,
    Database,
    UserRepository,
    UserService,
)


class PostgresDatabase(Database):
    dsn: str = "postgres://"


class Client:
    def __init__(self, url: str):
        self.url = url


class Api:
    client: Annotated[Client, inject()]


class OptionalHolder:
    db: Annotated[Optional[Database], inject()] = None


class WiredRepository:
    db: Annotated[Database, 'wire:""']
    cache: Annotated[Cache, inject()]


class Untagged:
    db: Database


# =============== provide ===============


def test_provide_named_and_unnamed():
    graph = Graph()
    db = Object(Database(), name="db")
    repo = Object(UserRepository())

    graph.provide(db, repo)

    assert len(graph) == 2
    assert "db" in graph
    assert graph.get("db") is db
    assert graph.get("cache") is None
    assert graph.unnamed == (repo,)
    assert dict(graph.named) == {"db": db}
    assert repr(graph) == "Graph(unnamed=1, named=1)"


def test_named_object_may_hold_plain_value():
    graph = Graph()
    graph.provide(Object(8080, name="port"), Object({"a": 1}, name="table"))

    graph.populate()

    assert graph.get("port").value == 8080


def test_provide_rejects_prewired_object():
    graph = Graph()
    obj = Object(UserRepository(), fields={"db": Object(Database())})

    with pytest.raises(PreWiredObjectError):
        graph.provide(obj)


@pytest.mark.parametrize("value", [3, "db", {}, [], None])
def test_unnamed_object_must_be_record(value):
    graph = Graph()

    with pytest.raises(ShapeViolationError):
        graph.provide(Object(value))


def test_duplicate_unnamed_type():
    graph = Graph()
    graph.provide(Object(Database()))

    with pytest.raises(DuplicateTypeError):
        graph.provide(Object(Database()))

    with pytest.raises(DuplicateTypeError):
        Graph().provide(Object(Cache()), Object(Cache()))


def test_subclass_is_not_a_duplicate():
    graph = Graph()
    graph.provide(Object(Database()), Object(PostgresDatabase()))

    assert len(graph) == 2


def test_duplicate_name():
    graph = Graph()
    graph.provide(Object(Database(), name="db"))

    with pytest.raises(DuplicateNameError) as e:
        graph.provide(Object(Cache(), name="db"))

    assert e.value.name == "db"


def test_private_unnamed_duplicates_allowed():
    graph = Graph()
    graph.provide(Object(Database(), private=True), Object(Database(), private=True))
    graph.provide(Object(Database()))

    assert len(graph) == 3


def test_provide_batch_is_all_or_nothing():
    graph = Graph()

    with pytest.raises(ProvideError):
        graph.provide(Object(Database()), Object(Cache(), name="c"), Object(3))

    assert len(graph) == 0

    with pytest.raises(DuplicateNameError):
        graph.provide(
            Object(Database()), Object(Cache(), name="c"), Object(Config(), name="c")
        )

    assert len(graph) == 0


# =============== populate ===============


def test_populate_synthesizes_and_shares():
    service = UserService()
    graph = Graph()
    graph.provide(Object(service))

    graph.populate()

    assert isinstance(service.repo, UserRepository)
    assert isinstance(service.db, Database)
    assert isinstance(service.repo.cache, Cache)
    assert service.repo.db is service.db

    created = [obj for obj in graph.objects() if obj.created]
    assert {obj.type for obj in created} == {
        TypeDescriptor(UserRepository),
        TypeDescriptor(Database),
        TypeDescriptor(Cache),
    }


def test_populate_records_edges():
    service = UserService()
    graph = Graph()
    root = Object(service)
    graph.provide(root)

    graph.populate()

    assert set(root.fields) == {"repo", "db"}
    assert root.fields["repo"].value is service.repo
    assert root.fields["db"].value is service.db


def test_populate_reuses_provided_instance():
    db = Database()
    db.dsn = "sqlite://"
    repo = UserRepository()

    graph = Graph()
    graph.provide(Object(db), Object(repo))
    graph.populate()

    assert repo.db is db


def test_populate_named_record_is_wired():
    repo = UserRepository()
    graph = Graph()
    graph.provide(Object(repo, name="repo"))

    graph.populate()

    assert isinstance(repo.db, Database)
    assert isinstance(repo.cache, Cache)


def test_complete_object_is_untouched():
    repo = UserRepository()
    graph = Graph()
    graph.provide(Object(repo, complete=True))

    graph.populate()

    assert not hasattr(repo, "db")
    assert len(graph) == 1


def test_set_field_is_kept():
    own_db = Database()
    repo = UserRepository()
    repo.db = own_db

    graph = Graph()
    graph.provide(Object(repo), Object(Database()))
    graph.populate()

    assert repo.db is own_db


def test_subclass_satisfies_field():
    postgres = PostgresDatabase()
    repo = UserRepository()

    graph = Graph()
    graph.provide(Object(postgres), Object(repo))
    graph.populate()

    assert repo.db is postgres


def test_untagged_field_is_ignored():
    untagged = Untagged()
    graph = Graph()
    graph.provide(Object(untagged), Object(Database()))

    graph.populate()

    assert not hasattr(untagged, "db")


def test_optional_field_is_populated():
    holder = OptionalHolder()
    graph = Graph()
    graph.provide(Object(holder))

    graph.populate()

    assert isinstance(holder.db, Database)


def test_synthesis_without_constructor_args():
    api = Api()
    graph = Graph()
    graph.provide(Object(api))

    graph.populate()

    assert isinstance(api.client, Client)
    assert not hasattr(api.client, "url")


def test_populate_twice_keeps_assignments():
    service = UserService()
    graph = Graph()
    graph.provide(Object(service))

    graph.populate()
    repo, db = service.repo, service.db
    size = len(graph)
    graph.populate()

    assert service.repo is repo
    assert service.db is db
    assert len(graph) == size


def test_type_index_is_built_once():
    graph = Graph()
    graph.provide(Object(UserService()))

    assert graph.type_index is None

    graph.populate()

    assert graph.type_index is not None
    # objects synthesized after the index was built are found by scanning
    assert set(graph.type_index) == {TypeDescriptor(UserService)}
    assert len(graph.unnamed) == 4


def test_custom_tag_key():
    repo = WiredRepository()
    graph = Graph(config=GraphConfig(tag_key="wire"))
    graph.provide(Object(repo))

    graph.populate()

    assert graph.config.tag_key == "wire"
    assert isinstance(repo.db, Database)
    assert not hasattr(repo, "cache")


# =============== logging ===============


def test_graph_logs_at_debug(caplog: pytest.LogCaptureFixture):
    caplog.set_level(logging.DEBUG, logger="graphwire.graph")

    graph = Graph()
    graph.provide(Object(UserRepository()))
    graph.populate()

    messages = [record.getMessage() for record in caplog.records]
    assert all(record.name == "graphwire.graph" for record in caplog.records)
    assert all(record.levelno == logging.DEBUG for record in caplog.records)
    assert any(message.startswith("provided ") for message in messages)
    assert any(message.startswith("created ") for message in messages)
    assert any(message.startswith("assigned newly created ") for message in messages)


def test_graph_accepts_custom_logger(caplog: pytest.LogCaptureFixture):
    logger = logging.getLogger("tests.wiring")
    caplog.set_level(logging.DEBUG, logger="tests.wiring")

    graph = Graph(logger=logger)
    graph.provide(Object(Database()))

    assert [record.name for record in caplog.records] == ["tests.wiring"]
