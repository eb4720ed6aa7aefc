"""
This module separates the type resolution logic between utils.typing_utils and the core logic, where this module wraps functions in utils.typing_utils with specific domain logic.
"""

import inspect
from collections.abc import Mapping, MutableMapping
from functools import lru_cache
from typing import Annotated, Any, Union, cast, get_args, get_origin

from typing_extensions import TypeGuard, get_protocol_members, is_protocol

from .config import CacheMax, FrozenSlot
from .utils.param_utils import MISSING
from .utils.typing_utils import T, flatten_annotated, is_record_type

try:
    from types import UnionType as _UnionType
except ImportError:
    _UnionType = None  # type: ignore[assignment]

if _UnionType is None:
    UNION_META = (Union,)
else:  # pragma: no cover - executed on Python 3.10+
    UNION_META = (Union, _UnionType)


class TypeDescriptor(FrozenSlot):
    """
    Runtime identity of a value's type,
    used as the key of the type index and for assignability checks.
    """

    __slots__ = ("cls",)

    cls: type

    def __init__(self, cls: type):
        object.__setattr__(self, "cls", cls)

    def __str__(self) -> str:
        module = getattr(self.cls, "__module__", "")
        qualname = getattr(self.cls, "__qualname__", repr(self.cls))
        if not module or module == "builtins":
            return qualname
        return f"{module}.{qualname}"

    @classmethod
    def of(cls, value: Any) -> "TypeDescriptor":
        return cls(type(value))

    @property
    def is_record_ref(self) -> bool:
        """
        True if values of this type are instances of a user defined class,
        the only unnamed shape graphwire accepts.
        """
        return is_record_type(self.cls)

    def assignable(self, target: Any) -> bool:
        return is_assignable(self.cls, target)


def lexient_issubclass(
    t: Any, cls_or_clses: Union[type[T], tuple[type, ...]]
) -> TypeGuard[type[T]]:
    return isinstance(t, type) and issubclass(t, cls_or_clses)


def class_annotations(cls: type) -> set[str]:
    names: set[str] = set()
    for klass in cls.__mro__:
        names.update(vars(klass).get("__annotations__", {}))
    return names


def implements_protocol(cls: type, protocol: type) -> bool:
    """
    structural check, every member of the protocol must be present on cls,
    either as a class attribute or as an annotated instance attribute.
    """
    if protocol in cls.__mro__:
        return True

    annotations = class_annotations(cls)
    return all(
        hasattr(cls, member) or member in annotations
        for member in get_protocol_members(protocol)
    )


@lru_cache(CacheMax)
def is_assignable(cls: type, target: Any) -> bool:
    """
    Whether a value of type `cls` can satisfy a field declared as `target`.
    """
    if target is Any or target is object:
        return True

    origin = get_origin(target)
    if origin is Annotated:
        return is_assignable(cls, get_args(target)[0])

    if origin in UNION_META:
        return any(is_assignable(cls, arm) for arm in get_args(target))

    if origin is not None:
        target = origin

    if not isinstance(target, type):
        return False

    if is_protocol(target):
        return implements_protocol(cls, target)

    return issubclass(cls, target)


def unwrap_annotation(annotation: Any) -> tuple[Any, list[Any]]:
    """
    Strip `Annotated` and `Optional` from a field annotation.

    Optional[Annotated[Service, inject()]] -> (Service, [inject()])
    """
    metadata: list[Any] = []
    if get_origin(annotation) is Annotated:
        metadata = flatten_annotated(annotation)
        annotation = get_args(annotation)[0]

    if get_origin(annotation) in UNION_META:
        arms = [arm for arm in get_args(annotation) if arm is not type(None)]
        if len(arms) == 1:
            inner, inner_metadata = unwrap_annotation(arms[0])
            return inner, metadata + inner_metadata

    return annotation, metadata


def is_interface_type(t: Any) -> bool:
    """
    Types that can't be instantiated, only satisfied by an existing implementation.
    """
    if t is Any or t is object:
        return True
    if not isinstance(t, type):
        return False
    return is_protocol(t) or inspect.isabstract(t)


def is_mapping_type(t: Any) -> bool:
    origin = get_origin(t) or t
    return lexient_issubclass(origin, Mapping)


def is_frozen_dataclass(cls: type) -> bool:
    params = getattr(cls, "__dataclass_params__", None)
    return bool(params and params.frozen)


def has_instance_dict(cls: type) -> bool:
    return any("__dict__" in vars(klass) for klass in cls.__mro__)


def is_settable(owner: type, name: str) -> bool:
    """
    Whether an attribute can be assigned on instances of owner.

    - private names and fields of frozen dataclasses are not settable.
    - a property without a setter is not settable.
    - without an instance `__dict__`, only names backed by a slot are settable.
    """
    if name.startswith("_") or is_frozen_dataclass(owner):
        return False

    attr = inspect.getattr_static(owner, name, MISSING)
    if isinstance(attr, property):
        return attr.fset is not None

    if has_instance_dict(owner):
        return True
    return hasattr(type(attr), "__set__")


def make_mapping(t: Any) -> Mapping[Any, Any]:
    origin = get_origin(t) or t
    if origin in (Mapping, MutableMapping) or inspect.isabstract(origin):
        return {}
    return cast(Mapping[Any, Any], origin())


def accepts_no_args(cls: type) -> bool:
    try:
        sig = inspect.signature(cls)
    except (TypeError, ValueError):
        return False

    return all(
        param.default is not inspect.Parameter.empty
        or param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD)
        for param in sig.parameters.values()
    )


def instantiate(cls: type[T]) -> T:
    """
    Create a zero valued instance of cls.

    classes whose constructor takes no required argument are called,
    others are allocated without running `__init__`, leaving every field unset.
    """
    if accepts_no_args(cls):
        return cls()
    return cls.__new__(cls)


def is_zero_scalar(value: Any) -> bool:
    if value is None or value is MISSING:
        return True
    if isinstance(value, bool):
        return not value
    if isinstance(value, (int, float, complex)):
        return value == 0
    if isinstance(value, (str, bytes, bytearray)):
        return len(value) == 0
    if isinstance(value, tuple):
        return all(is_zero_scalar(item) for item in value)
    return False
