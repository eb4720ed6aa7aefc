from typing import Callable, Iterable, Sequence, Union

from ._node import Object
from ._type_resolve import TypeDescriptor

NamedObjects = dict[str, Object]
"""
### mapping a name to its object, names are unique
"""

UnnamedObjects = list[Object]
"""
### unnamed objects in provide order
"""


class TypeIndex(dict[TypeDescriptor, list[Object]]):
    """
    Maps a concrete type to the non-private unnamed objects of exactly that type.

    Built once from the objects known at build time,
    objects provided afterwards are not added.
    """

    @classmethod
    def build(cls, objects: Iterable[Object]) -> "TypeIndex":
        index = cls()
        for obj in objects:
            if obj.private:
                continue
            index.register(obj)
        return index

    def register(self, obj: Object) -> None:
        try:
            self[obj.type].append(obj)
        except KeyError:
            self[obj.type] = [obj]

    def candidates(self, descriptor: TypeDescriptor) -> list[Object]:
        return self.get(descriptor, [])


class Visitor:
    """
    Read-only traversal over the dependency edges recorded in `Object.fields`.
    """

    __slots__ = ("_objects",)

    def __init__(self, objects: Sequence[Object]):
        self._objects = objects

    def _visit(
        self,
        start: Union[list[Object], Object],
        pre_visit: Union[Callable[[Object], None], None] = None,
        post_visit: Union[Callable[[Object], None], None] = None,
    ) -> None:
        """Generic DFS traversal with customizable visit callbacks.

        Args:
            start: Starting object(s) for traversal
            pre_visit: Called before visiting object's dependencies
            post_visit: Called after visiting object's dependencies
        """
        if isinstance(start, Object):
            start = [start]

        visited = set[int]()

        def dfs(obj: Object):
            if id(obj) in visited:
                return
            visited.add(id(obj))

            if pre_visit:
                pre_visit(obj)

            for dep in obj.fields.values():
                dfs(dep)

            if post_visit:
                post_visit(obj)

        for obj in start:
            dfs(obj)

    def get_dependents(self, dependency: Object) -> list[Object]:
        dependents: list[Object] = []

        def collect_dependent(obj: Object):
            if any(dep is dependency for dep in obj.fields.values()):
                dependents.append(obj)

        self._visit(list(self._objects), pre_visit=collect_dependent)
        return dependents

    def get_dependencies(self, dependent: Object, recursive: bool = False) -> list[Object]:
        if not recursive:
            unique = {id(dep): dep for dep in dependent.fields.values()}
            return list(unique.values())

        def collect_dependencies(obj: Object):
            if obj is not dependent:
                dependencies.append(obj)

        dependencies: list[Object] = []
        self._visit(dependent, post_visit=collect_dependencies)
        return dependencies

    def top_sorted(self) -> list[Object]:
        "Sort the whole graph, from lowest dependencies to toppest dependents"
        order: list[Object] = []
        self._visit(list(self._objects), post_visit=order.append)
        return order
