import datetime
from dataclasses import dataclass
from typing import TYPE_CHECKING, Annotated

import pytest

from graphwire import Graph, Object, TypeDescriptor, inject
from graphwire.errors import (
    FieldResolveError,
    GraphWireError,
    InaccessibleFieldError,
    InstantiationError,
    InvalidFieldDirectiveError,
    MalformedDirectiveError,
    PopulateError,
    UnresolvableAnnotationError,
    UnsupportedFieldError,
)
from tests.features.services import Cache, Database

if TYPE_CHECKING:
    from decimal import Decimal


class Hidden:
    _db: Annotated[Database, inject()]


@dataclass(frozen=True)
class Settings:
    db: Annotated[Database, inject()]


@dataclass(frozen=True)
class PlainSettings:
    db: Database


class Batch:
    items: Annotated[list[Database], inject()]


class BadTag:
    db: Annotated[Database, 'inject:"db']


class Forward:
    db: Annotated["Missing", inject()]  # type: ignore[name-defined]  # noqa: F821


class Slotted:
    __slots__ = ()

    db: Annotated[Database, inject()]


class ReadOnly:
    db: Annotated[Database, inject()]

    @property
    def db(self) -> Database:  # type: ignore[no-redef]
        return Database()


class Locked:
    db: Annotated[Database, inject()]

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"{name} is read-only")


class Calendar:
    today: Annotated[datetime.date, inject()]


class Clock:
    tz: "Decimal"
    cache: Annotated[Cache, inject()]


class Scheduler:
    clock: Annotated[Clock, inject()]


def populate_one(value: object) -> None:
    graph = Graph()
    graph.provide(Object(value))
    graph.populate()


def test_underscore_field_is_inaccessible():
    with pytest.raises(InaccessibleFieldError) as e:
        populate_one(Hidden())

    assert e.value.field_name == "_db"
    assert e.value.owner == TypeDescriptor(Hidden)
    assert "unexported field _db" in e.value.message


def test_frozen_dataclass_field_is_inaccessible():
    with pytest.raises(InaccessibleFieldError):
        populate_one(Settings(db=None))  # type: ignore[arg-type]


def test_frozen_dataclass_without_tags_is_fine():
    settings = PlainSettings(db=Database())
    populate_one(settings)


def test_unsupported_field():
    with pytest.raises(UnsupportedFieldError) as e:
        populate_one(Batch())

    assert e.value.field_name == "items"


def test_malformed_tag_keeps_cause():
    with pytest.raises(InvalidFieldDirectiveError) as e:
        populate_one(BadTag())

    assert e.value.raw_tag == 'inject:"db'
    assert e.value.field_name == "db"
    assert isinstance(e.value.__cause__, MalformedDirectiveError)


def test_unresolvable_annotation():
    with pytest.raises(UnresolvableAnnotationError) as e:
        populate_one(Forward())

    assert "Forward" in e.value.message


def test_error_hierarchy():
    assert issubclass(FieldResolveError, PopulateError)
    assert issubclass(PopulateError, GraphWireError)
    assert issubclass(InvalidFieldDirectiveError, FieldResolveError)
    assert issubclass(MalformedDirectiveError, GraphWireError)


@pytest.mark.parametrize("cls", [Slotted, ReadOnly])
def test_unassignable_field_is_inaccessible(cls: type):
    graph = Graph()
    graph.provide(Object(cls()))

    with pytest.raises(InaccessibleFieldError) as e:
        graph.populate()

    assert e.value.field_name == "db"
    assert len(graph) == 1


def test_rejected_assignment_is_inaccessible():
    graph = Graph()
    graph.provide(Object(Locked()))

    with pytest.raises(InaccessibleFieldError) as e:
        graph.populate()

    assert isinstance(e.value.__cause__, AttributeError)
    # the instance made for the field never joins the graph
    assert len(graph) == 1


def test_type_without_zero_value():
    with pytest.raises(InstantiationError) as e:
        populate_one(Calendar())

    assert e.value.field_name == "today"
    assert e.value.owner == TypeDescriptor(Calendar)
    assert isinstance(e.value.__cause__, TypeError)


def test_dependency_with_type_checking_only_hint():
    scheduler = Scheduler()

    populate_one(scheduler)

    assert isinstance(scheduler.clock, Clock)
    assert isinstance(scheduler.clock.cache, Cache)
