"""
GRAPHWIRE
~~~~~~~~~~~~~~~~~~~~~

Graphwire wires an object graph for you: declare what each field needs, hand over your objects, and every missing field gets filled in.

>>> class App:
...     users: Annotated[UserService, inject()]
>>> app = App()
>>> graphwire.populate(app)
>>> assert isinstance(app.users, UserService)

license: MIT
"""

from typing import Annotated as Annotated

from ._directive import Directive as Directive
from ._directive import Tag as Tag
from ._node import Embedded as Embedded
from ._node import Object as Object
from ._node import Value as Value
from ._node import inject as inject
from ._type_resolve import TypeDescriptor as TypeDescriptor
from .api import populate as populate
from .config import GraphConfig as GraphConfig
from .container import Container as Container
from .graph import Graph as Graph
from .graph import Resolver as Resolver
from .interfaces import Service as Service

VERSION = "0.3.0"

try:
    import graphviz as graphviz  # type: ignore
except ImportError:
    pass
else:
    from .visual import Visualizer as Visualizer
