from dataclasses import FrozenInstanceError
from typing import Any, Final, Literal

CacheMax: Final[int] = 1024
DefaultTagKey: Final[str] = "inject"

PLAIN_DIRECTIVE = "plain"
INLINE_DIRECTIVE = "inline"
PRIVATE_DIRECTIVE = "private"
NAMED_DIRECTIVE = "named"

DirectiveKind = Literal["plain", "inline", "private", "named"]

FieldKind = Literal["pointer", "value", "interface", "map", "other"]
"""
pointer: a reference to a record, shared or synthesized
value: a record held by value, only traversed with the inline directive
interface: a protocol or abstract type, matched against existing objects
map: a mapping, only created empty with the private directive
other: anything else, only a named directive can satisfy it
"""


class FrozenSlot:
    """
    A Mixin class provides a hashable, frozen class with slots defined.
    This is mainly due to the fact that dataclass does not support slots before python 3.10
    """

    __slots__: tuple[str, ...] = ()

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, self.__class__):
            return False

        return all(
            getattr(self, attr) == getattr(other, attr) for attr in self.__slots__
        )

    def __repr__(self):
        attr_repr = "".join(
            f"{attr}={getattr(self, attr)!r}, " for attr in self.__slots__
        ).rstrip(", ")
        return f"{self.__class__.__name__}({attr_repr})"

    def __setattr__(self, name: str, value: Any) -> None:
        raise FrozenInstanceError("can't set attribute")

    def __hash__(self) -> int:
        attrs = tuple(getattr(self, attr) for attr in self.__slots__)
        return hash(attrs)


class GraphConfig(FrozenSlot):
    """
    tag_key: str
    ---
    the key looked up in a field's raw tag, `inject` by default,
    e.g. 'inject:"db"'
    """

    __slots__ = ("tag_key",)

    tag_key: str

    def __init__(self, *, tag_key: str = DefaultTagKey):
        if not tag_key or any(c in tag_key for c in ' :"'):
            raise ValueError(f"invalid tag key {tag_key!r}")

        object.__setattr__(self, "tag_key", tag_key)


DefaultConfig: Final[GraphConfig] = GraphConfig()
