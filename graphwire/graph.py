import logging
from collections import deque
from types import MappingProxyType
from typing import Any, Union

from ._directive import Directive, DirectiveParser
from ._ds import NamedObjects, TypeIndex, UnnamedObjects, Visitor
from ._node import Field, Object, build_fields, is_nil_or_zero
from ._type_resolve import TypeDescriptor, instantiate, make_mapping
from .config import DefaultConfig, GraphConfig
from .errors import (
    AmbiguousImplementationError,
    DuplicateNameError,
    DuplicateTypeError,
    InaccessibleFieldError,
    InlineMisuseError,
    InstantiationError,
    InvalidFieldDirectiveError,
    MalformedDirectiveError,
    MapMisuseError,
    MissingNamedError,
    NoImplementationError,
    PreWiredObjectError,
    PrivateInterfaceError,
    ShapeViolationError,
    TypeMismatchError,
    UnhandledNamedDirectiveError,
    UnsupportedFieldError,
)
from .utils.param_utils import MISSING


class Resolver:
    """
    Holds every provided object and populates their fields in two phases.

    Phase 1 resolves named, pointer, map and inline fields, synthesizing objects
    for missing dependencies. Phase 2 resolves interface fields against the
    object set phase 1 left behind.

    Not thread safe, callers serialize `provide` and `populate`.
    """

    _unnamed: UnnamedObjects
    _named: NamedObjects

    def __init__(self, *, config: GraphConfig, logger: logging.Logger):
        self._config = config
        self._logger = logger
        self._unnamed = []
        self._unnamed_types: set[TypeDescriptor] = set()
        self._named = {}
        self._type_index: Union[TypeIndex, None] = None
        self._worklist: Union[deque[Object], None] = None
        self._directives = DirectiveParser(config.tag_key)

    @property
    def config(self) -> GraphConfig:
        return self._config

    @property
    def named(self) -> MappingProxyType[str, Object]:
        return MappingProxyType(self._named)

    @property
    def unnamed(self) -> tuple[Object, ...]:
        return tuple(self._unnamed)

    @property
    def type_index(self) -> Union[TypeIndex, None]:
        return self._type_index

    # =================  Provide =================

    def _validate(
        self, obj: Object, batch_names: set[str], batch_types: set[TypeDescriptor]
    ) -> None:
        if obj.fields:
            raise PreWiredObjectError(obj)

        if obj.name:
            if obj.name in self._named or obj.name in batch_names:
                raise DuplicateNameError(obj.name)
            batch_names.add(obj.name)
            return

        if not obj.type.is_record_ref:
            raise ShapeViolationError(obj)

        if obj.private:
            return

        if obj.type in self._unnamed_types or obj.type in batch_types:
            raise DuplicateTypeError(obj)
        batch_types.add(obj.type)

    def _insert(self, obj: Object) -> None:
        if obj.name:
            self._named[obj.name] = obj
        else:
            if not obj.private:
                self._unnamed_types.add(obj.type)
            self._unnamed.append(obj)
            if self._worklist is not None:
                self._worklist.append(obj)

        if obj.created:
            self._logger.debug("created %s", obj)
        elif obj.embedded:
            self._logger.debug("provided embedded %s", obj)
        else:
            self._logger.debug("provided %s", obj)

    def provide(self, *objects: Object) -> None:
        """
        Add objects to the graph.

        The whole batch is validated first, nothing is added if any object fails.
        """
        batch_names: set[str] = set()
        batch_types: set[TypeDescriptor] = set()

        for obj in objects:
            obj.type = TypeDescriptor.of(obj.value)
            self._validate(obj, batch_names, batch_types)

        for obj in objects:
            self._insert(obj)

    # =================  Populate =================

    def _parse_directive(self, field: Field, obj: Object) -> Union[Directive, None]:
        try:
            return self._directives.parse(field.raw_tag)
        except MalformedDirectiveError as mde:
            raise InvalidFieldDirectiveError(
                mde.raw_tag, field.name, obj.type
            ) from mde

    def _set(self, obj: Object, field: Field, value: Any) -> None:
        try:
            setattr(obj.value, field.name, value)
        except (AttributeError, TypeError) as e:
            raise InaccessibleFieldError(field.name, obj.type) from e

    def _assign(self, obj: Object, field: Field, dep: Object) -> None:
        self._set(obj, field, dep.value)
        obj.add_dep(field.name, dep)

    def _instantiate(self, obj: Object, field: Field) -> Any:
        try:
            return instantiate(field.field_type)
        except TypeError as e:
            raise InstantiationError(field.field_type, field.name, obj.type, e) from e

    def _lookup(self, field: Field) -> Union[Object, None]:
        if self._type_index is None:
            self._type_index = TypeIndex.build(self._unnamed)

        for existing in self._type_index.candidates(TypeDescriptor(field.field_type)):
            if existing.private:
                continue
            return existing

        # subclasses of the field type are not indexed under it
        for existing in self._unnamed:
            if existing.private:
                continue
            if existing.type.assignable(field.field_type):
                return existing
        return None

    def _populate_named(self, obj: Object, field: Field, name: str) -> None:
        existing = self._named.get(name)
        if existing is None:
            raise MissingNamedError(name, field.name, obj.type)

        if not existing.type.assignable(field.field_type):
            raise TypeMismatchError(
                name, field.field_type, existing.type, field.name, obj.type
            )

        self._assign(obj, field, existing)
        self._logger.debug("assigned %s to field %s in %s", existing, field.name, obj)

    def _populate_inline(self, obj: Object, field: Field, directive: Directive) -> None:
        if directive.is_private:
            raise InlineMisuseError(
                f"cannot use private inject on inline struct on field {field.name} in type {obj.type}",
                field_name=field.name,
                owner=obj.type,
            )

        if not directive.is_inline:
            raise InlineMisuseError(
                f'inline struct on field {field.name} in type {obj.type} requires an explicit "inline" tag',
                field_name=field.name,
                owner=obj.type,
            )

        held = getattr(obj.value, field.name, None)
        if held is None:
            held = self._instantiate(obj, field)
            self._set(obj, field, held)

        self.provide(Object(held, private=True, embedded=field.anonymous))

    def _populate_map(self, obj: Object, field: Field, directive: Directive) -> None:
        if not directive.is_private:
            raise MapMisuseError(field.name, obj.type)

        self._set(obj, field, make_mapping(field.field_type))
        self._logger.debug("made map for field %s in %s", field.name, obj)

    def _populate_pointer(self, obj: Object, field: Field, directive: Directive) -> None:
        if not directive.is_private:
            if existing := self._lookup(field):
                self._assign(obj, field, existing)
                self._logger.debug(
                    "assigned existing %s to field %s in %s", existing, field.name, obj
                )
                return

        created = Object(
            self._instantiate(obj, field), private=directive.is_private, created=True
        )
        # assign first, an object that failed to land on its field is never provided
        self._set(obj, field, created.value)
        self.provide(created)
        obj.add_dep(field.name, created)
        self._logger.debug(
            "assigned newly created %s to field %s in %s", created, field.name, obj
        )

    def _populate_explicit(self, obj: Object) -> None:
        # named objects may hold plain values, e.g. a port number
        if obj.name and not obj.type.is_record_ref:
            return

        for field in build_fields(obj.type.cls, self._config.tag_key):
            directive = self._parse_directive(field, obj)
            if directive is None:
                continue

            if not field.settable:
                raise InaccessibleFieldError(field.name, obj.type)

            if directive.is_inline and field.kind != "value":
                raise InlineMisuseError(
                    f"inline requested on non inlined field {field.name} in type {obj.type}",
                    field_name=field.name,
                    owner=obj.type,
                )

            value = getattr(obj.value, field.name, MISSING)
            if not is_nil_or_zero(value, field.kind, self._config.tag_key):
                continue

            if directive.is_named:
                self._populate_named(obj, field, directive.name)
            elif field.kind == "value":
                self._populate_inline(obj, field, directive)
            elif field.kind == "interface":
                continue
            elif field.kind == "map":
                self._populate_map(obj, field, directive)
            elif field.kind == "pointer":
                self._populate_pointer(obj, field, directive)
            else:
                raise UnsupportedFieldError(field.name, obj.type)

    def _populate_interfaces(self, obj: Object) -> None:
        if obj.name and not obj.type.is_record_ref:
            return

        for field in build_fields(obj.type.cls, self._config.tag_key):
            directive = self._parse_directive(field, obj)
            if directive is None or field.kind != "interface":
                continue

            # an interface can't be instantiated, so it can't be private
            if directive.is_private:
                raise PrivateInterfaceError(field.name, obj.type)

            value = getattr(obj.value, field.name, MISSING)
            if not is_nil_or_zero(value, field.kind, self._config.tag_key):
                continue

            if directive.is_named:
                raise UnhandledNamedDirectiveError(directive.name)

            candidates = [
                existing
                for existing in self._unnamed
                if not existing.private and existing.type.assignable(field.field_type)
            ]

            if not candidates:
                raise NoImplementationError(field.name, obj.type)
            if len(candidates) > 1:
                raise AmbiguousImplementationError(field.name, obj.type, candidates)

            found = candidates[0]
            self._assign(obj, field, found)
            self._logger.debug(
                "assigned existing %s to interface field %s in %s", found, field.name, obj
            )

    def populate(self) -> None:
        """
        Populate every incomplete object.

        Raises on the first failure, fields assigned before it are kept.
        """
        for obj in list(self._named.values()):
            if obj.complete:
                continue
            self._populate_explicit(obj)

        # objects synthesized while populating are queued and visited in this same pass
        self._worklist = deque(self._unnamed)
        try:
            while self._worklist:
                obj = self._worklist.popleft()
                if obj.complete:
                    continue
                self._populate_explicit(obj)
        finally:
            self._worklist = None

        for obj in list(self._unnamed):
            if obj.complete:
                continue
            self._populate_interfaces(obj)

        for obj in list(self._named.values()):
            if obj.complete:
                continue
            self._populate_interfaces(obj)


class Graph(Resolver):
    """
    The graph of objects.

    ```python
    graph = Graph()
    graph.provide(Object(Database(), name="db"), Object(app))
    graph.populate()
    ```
    """

    def __init__(
        self,
        *,
        config: Union[GraphConfig, None] = None,
        logger: Union[logging.Logger, None] = None,
    ):
        super().__init__(
            config=config or DefaultConfig,
            logger=logger or logging.getLogger(__name__),
        )

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"unnamed={len(self._unnamed)}, "
            f"named={len(self._named)})"
        )

    def __len__(self) -> int:
        return len(self._unnamed) + len(self._named)

    def __contains__(self, name: str) -> bool:
        return name in self._named

    def get(self, name: str) -> Union[Object, None]:
        return self._named.get(name)

    def objects(self) -> list[Object]:
        """
        All known objects, unnamed first then named, embedded objects excluded.
        """
        return [
            obj
            for obj in (*self._unnamed, *self._named.values())
            if not obj.embedded
        ]

    @property
    def visitor(self) -> Visitor:
        return Visitor([*self._unnamed, *self._named.values()])
