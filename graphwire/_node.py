import json
import sys
from functools import lru_cache
from typing import Annotated, Any, ClassVar, Union, get_origin, get_type_hints

from typing_extensions import Format, get_annotations

from ._directive import Tag
from ._type_resolve import (
    TypeDescriptor,
    is_interface_type,
    is_mapping_type,
    is_settable,
    is_zero_scalar,
    unwrap_annotation,
)
from .config import CacheMax, DefaultTagKey, FieldKind, FrozenSlot
from .errors import UnresolvableAnnotationError
from .utils.param_utils import MISSING
from .utils.typing_utils import T, annotation_text, eval_type, is_record_type

# ============== graphwire marks ===========


class ValueMark(FrozenSlot):
    """
    Marks a field holding a record by value rather than by reference.
    The resolver never injects such a field, it only traverses into it
    when the field carries the inline directive.

    anonymous: the record is promoted into its owner, objects provided while
    traversing it are hidden from `Graph.objects`.
    """

    __slots__ = ("anonymous",)

    anonymous: bool

    def __init__(self, anonymous: bool = False):
        object.__setattr__(self, "anonymous", anonymous)


Value = Annotated[T, ValueMark(anonymous=False)]
Embedded = Annotated[T, ValueMark(anonymous=True)]


def inject(value: str = "", /, *, key: str = DefaultTagKey) -> Tag:
    """
    Build a raw tag to attach to a field with `Annotated`.

    These two are equivalent
    ```
    class UserService:
        db: Annotated[Database, inject("primary")]

    class UserService:
        db: Annotated[Database, 'inject:"primary"']
    ```

    - `inject()`: reuse a shared instance, create one if none exists
    - `inject("private")`: always create a new instance for this field
    - `inject("inline")`: traverse into a `Value` field without injecting it
    - `inject("<name>")`: bind to the object provided under `<name>`
    """
    return Tag(f"{key}:{json.dumps(value)}")


# ============== graphwire marks ===========


def resolve_field_kind(field_type: Any, metadata: list[Any]) -> FieldKind:
    for meta in metadata:
        if isinstance(meta, ValueMark):
            return "value" if is_record_type(field_type) else "other"

    if is_mapping_type(field_type):
        return "map"
    if is_interface_type(field_type):
        return "interface"
    if is_record_type(field_type):
        return "pointer"
    return "other"


def raw_tag_from_meta(metadata: list[Any]) -> Union[str, None]:
    "every str in Annotated metadata is part of the raw tag"
    parts = [meta for meta in metadata if isinstance(meta, str)]
    if not parts:
        return None
    return " ".join(parts)


class Field:
    """
    Describes one annotated attribute of a record class

    ```
    class UserService:
        db: Annotated[Optional[Database], inject()] = None
    ```

    name: the attribute name, 'db'
    annotation: the raw annotation, as returned by `get_type_hints`
    field_type: the annotation stripped from Annotated and Optional, Database
    raw_tag: the raw tag found in Annotated metadata, 'inject:""'
    kind: pointer | value | interface | map | other
    anonymous: whether a value field is declared `Embedded`
    settable: whether graphwire is allowed to assign the attribute
    """

    __slots__ = ("name", "annotation", "field_type", "raw_tag", "kind", "anonymous", "settable")

    def __init__(
        self,
        *,
        name: str,
        annotation: Any,
        field_type: Any,
        raw_tag: Union[str, None],
        kind: FieldKind,
        anonymous: bool = False,
        settable: bool = True,
    ) -> None:
        self.name = name
        self.annotation = annotation
        self.field_type = field_type
        self.raw_tag = raw_tag
        self.kind: FieldKind = kind
        self.anonymous = anonymous
        self.settable = settable

    def __repr__(self) -> str:
        return f"Field({self.name}: {self.field_type}, kind={self.kind}, tag={self.raw_tag!r})"

    @classmethod
    def from_annotation(cls, name: str, annotation: Any, settable: bool = True) -> "Field":
        field_type, metadata = unwrap_annotation(annotation)
        anonymous = any(
            isinstance(meta, ValueMark) and meta.anonymous for meta in metadata
        )
        return cls(
            name=name,
            annotation=annotation,
            field_type=field_type,
            raw_tag=raw_tag_from_meta(metadata),
            kind=resolve_field_kind(field_type, metadata),
            anonymous=anonymous,
            settable=settable,
        )


def resolve_hints(owner: type, key: str = DefaultTagKey) -> dict[str, Any]:
    """
    Evaluate the annotations of owner one name at a time, base classes first.

    An annotation that can't be evaluated, e.g. a name only imported under
    `TYPE_CHECKING`, is dropped unless its source text mentions the directive key.
    """
    marker = f"{key}:"
    hints: dict[str, Any] = {}
    for klass in reversed(owner.__mro__):
        globalns = getattr(sys.modules.get(klass.__module__), "__dict__", {})
        localns = dict(vars(klass))
        for name, raw in get_annotations(klass, format=Format.FORWARDREF).items():
            try:
                hints[name] = eval_type(raw, globalns, localns)
            except (NameError, TypeError) as e:
                if marker in annotation_text(raw):
                    raise UnresolvableAnnotationError(
                        TypeDescriptor(owner), e, field_name=name
                    ) from e
                hints.pop(name, None)
    return hints


@lru_cache(CacheMax)
def build_fields(owner: type, key: str = DefaultTagKey) -> tuple[Field, ...]:
    """
    Collect the fields of a record class from its type hints, base classes first.
    ClassVar annotations are not fields.
    """
    try:
        hints = get_type_hints(owner, include_extras=True)
    except (NameError, TypeError):
        hints = resolve_hints(owner, key)

    fields: list[Field] = []
    for name, annotation in hints.items():
        if get_origin(annotation) is ClassVar or annotation is ClassVar:
            continue
        fields.append(
            Field.from_annotation(name, annotation, is_settable(owner, name))
        )
    return tuple(fields)


def is_nil_or_zero(value: Any, kind: FieldKind = "other", key: str = DefaultTagKey) -> bool:
    """
    - None, or a field never assigned, is nil.
    - False, 0, "" and b"" are zero, so is a tuple of zeros.
    - A record held by value is zero when all of its fields are.
    Any other value is considered set and won't be overwritten.
    """
    if is_zero_scalar(value):
        return True
    if kind == "value" and is_record_type(type(value)):
        return all(
            is_nil_or_zero(getattr(value, field.name, MISSING), field.kind, key)
            for field in build_fields(type(value), key)
        )
    return False


# ======================= Object =====================================


class Object:
    """
    A node in the object graph, wrapping one value.

    Examples:
    -----
    ```python
    graph.provide(
        Object(Database(dsn="sqlite://"), name="db"),
        Object(UserService()),
    )
    ```

    value: the wrapped instance, its fields are assigned in place.
    name: optional, empty means the object is identified by its type only.
    complete: if True, the resolver won't touch the object.

    ## [output]

    fields: field name -> the Object that satisfied it,
    recorded as the resolver assigns fields.

    ## [resolver owned]

    private: not shared with other objects, each consumer gets its own.
    created: synthesized by the resolver rather than provided.
    embedded: provided while traversing an `Embedded` field.
    """

    __slots__ = (
        "value",
        "name",
        "complete",
        "fields",
        "type",
        "_private",
        "_created",
        "_embedded",
    )

    type: TypeDescriptor

    def __init__(
        self,
        value: Any,
        name: str = "",
        complete: bool = False,
        *,
        fields: Union[dict[str, "Object"], None] = None,
        private: bool = False,
        created: bool = False,
        embedded: bool = False,
    ):
        self.value = value
        self.name = name
        self.complete = complete
        self.fields: dict[str, Object] = fields if fields is not None else {}
        self.type = TypeDescriptor.of(value)
        self._private = private
        self._created = created
        self._embedded = embedded

    @property
    def private(self) -> bool:
        return self._private

    @property
    def created(self) -> bool:
        return self._created

    @property
    def embedded(self) -> bool:
        return self._embedded

    def __str__(self) -> str:
        if self.name:
            return f"{self.type} named {self.name}"
        return str(self.type)

    def __repr__(self) -> str:
        str_repr = f"{self.__class__.__name__}(type: {self.type}"
        if self.name:
            str_repr += f", name: {self.name}"
        str_repr += f", private: {self._private}, created: {self._created}"
        str_repr += ")"
        return str_repr

    def add_dep(self, field_name: str, dep: "Object") -> None:
        self.fields[field_name] = dep
