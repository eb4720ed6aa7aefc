from typing import Annotated, Any, ForwardRef, Mapping, TypeVar, Union, get_args, get_origin
from typing import _eval_type as ty_eval_type  # type: ignore[attr-defined]

from typing_extensions import TypeGuard

T = TypeVar("T")


PrimitiveBuiltins = type[Union[int, float, complex, str, bool, bytes, bytearray]]
ContainerBuiltins = type[
    Union[list[T], tuple[T, ...], dict[Any, T], set[T], frozenset[T]]
]
BuiltinSingleton = type[None]


def is_builtin_primitive(t: Any) -> TypeGuard[PrimitiveBuiltins]:
    return t in (int, float, complex, str, bool, bytes, bytearray, type)


def is_builtin_container(t: Any) -> TypeGuard[ContainerBuiltins[Any]]:
    return t in (list, tuple, dict, set, frozenset)


def is_builtin_singleton(t: Any) -> TypeGuard[BuiltinSingleton]:
    return t is None or t is type(None)


def is_builtin_type(
    t: Any,
) -> TypeGuard[Union[PrimitiveBuiltins, ContainerBuiltins[Any], BuiltinSingleton]]:
    """
    Builtin types never act as records.
    They can only be wired through a named object.
    """

    is_primitive = is_builtin_primitive(t)
    is_container = is_builtin_container(t)
    is_singleton = is_builtin_singleton(t)
    return is_primitive or is_container or is_singleton


def is_record_type(t: Any) -> TypeGuard[type]:
    """
    A record type is any user defined class,
    i.e. a class that is neither builtin nor defined in the builtins module.
    """
    if not isinstance(t, type) or is_builtin_type(t):
        return False
    return t.__module__ != "builtins"



def flatten_annotated(typ: Annotated[Any, Any]) -> list[Any]:
    "Annotated[Annotated[T, Ann1, Ann2], Ann3] -> [T, Ann1, Ann2, Ann3]"
    flattened_metadata: list[Any] = []
    _, *metadata = get_args(typ)

    for item in metadata:
        if get_origin(item) is Annotated:
            flattened_metadata.extend(flatten_annotated(item))
        else:
            flattened_metadata.append(item)
    return flattened_metadata


def eval_type(
    value: Any,
    globalns: Union[dict[str, Any], None] = None,
    localns: Union[Mapping[str, Any], None] = None,
) -> Any:
    """
    Evaluate a single annotation using the provided namespaces.

    Args:
        value: The annotation to evaluate. `None` becomes `type(None)`, a `str`
            is converted to a `ForwardRef`.
        globalns: The global namespace to use during annotation evaluation.
        localns: The local namespace to use during annotation evaluation.

    Raises `NameError` when a name in the annotation can't be found.
    """
    if value is None:
        return type(None)
    if isinstance(value, str):
        value = ForwardRef(value, is_argument=False)
    return ty_eval_type(value, globalns, localns)


def annotation_text(value: Any) -> str:
    "the source text of an annotation, as far as it can be recovered"
    if isinstance(value, str):
        return value
    if isinstance(value, ForwardRef):
        return value.__forward_arg__
    return repr(value)
