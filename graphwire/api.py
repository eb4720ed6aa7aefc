from typing import Any

from ._node import Object
from .graph import Graph


def populate(*values: Any) -> Graph:
    """
    Short-hand for populating a fresh graph with the given incomplete values,
    each value is provided as an unnamed object.

    >>> app = App()
    >>> populate(app)
    >>> assert isinstance(app.users.db, Database)
    """
    graph = Graph()
    graph.provide(*(Object(value) for value in values))
    graph.populate()
    return graph
