"""
Parsing of raw field tags into directives.

A raw tag follows the struct-tag convention of space separated `key:"value"` pairs,

```python
class UserService:
    db: Annotated[Database, 'inject:"db" doc:"primary database"']
```

only the value under the directive key (`inject` by default) matters to graphwire.
"""

import json
import re
from typing import Union

from .config import (
    DefaultTagKey,
    DirectiveKind,
    FrozenSlot,
    INLINE_DIRECTIVE,
    NAMED_DIRECTIVE,
    PLAIN_DIRECTIVE,
    PRIVATE_DIRECTIVE,
)
from .errors import MalformedDirectiveError


class Tag(str):
    """
    A raw field tag, e.g. 'inject:"private"'.
    Any `str` found in `Annotated` metadata is treated the same way,
    this subclass only makes intent explicit.
    """

    __slots__ = ()

    def __repr__(self) -> str:
        return f"Tag({str.__repr__(self)})"


class TagSyntaxError(ValueError):
    """
    Raised by `lookup` when the raw tag does not follow the key:"value" convention
    """


class Directive(FrozenSlot):
    """
    A parsed directive

    kind: plain | inline | private | named
    name: the object name a named directive binds to, empty otherwise
    """

    __slots__ = ("kind", "name")

    kind: DirectiveKind
    name: str

    def __init__(self, kind: DirectiveKind, name: str = ""):
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "name", name)

    @property
    def is_plain(self) -> bool:
        return self.kind == PLAIN_DIRECTIVE

    @property
    def is_inline(self) -> bool:
        return self.kind == INLINE_DIRECTIVE

    @property
    def is_private(self) -> bool:
        return self.kind == PRIVATE_DIRECTIVE

    @property
    def is_named(self) -> bool:
        return self.kind == NAMED_DIRECTIVE


PlainDirective = Directive(PLAIN_DIRECTIVE)
InlineDirective = Directive(INLINE_DIRECTIVE)
PrivateDirective = Directive(PRIVATE_DIRECTIVE)


def _unquote(qvalue: str) -> str:
    try:
        value = json.loads(qvalue)
    except json.JSONDecodeError as je:
        raise TagSyntaxError(f"invalid quoted value {qvalue}") from je
    if not isinstance(value, str):
        raise TagSyntaxError(f"invalid quoted value {qvalue}")
    return value


def lookup(raw_tag: str, key: str) -> Union[str, None]:
    """
    Return the value associated with `key` in `raw_tag`, None if the key is absent.

    Pairs are scanned left to right and the first match wins,
    a syntax error met before the key is found raises `TagSyntaxError`.
    """
    tag = raw_tag
    while tag:
        tag = tag.lstrip(" ")
        if not tag:
            break

        i = 0
        while i < len(tag) and tag[i] > " " and tag[i] not in ':"\x7f':
            i += 1
        if i == 0 or i + 1 >= len(tag) or tag[i] != ":" or tag[i + 1] != '"':
            raise TagSyntaxError(f"expected key:\"value\" at `{tag}`")
        name, tag = tag[:i], tag[i + 1 :]

        i = 1
        while i < len(tag) and tag[i] != '"':
            if tag[i] == "\\":
                i += 1
            i += 1
        if i >= len(tag):
            raise TagSyntaxError(f"unterminated quoted value for key {name}")
        qvalue, tag = tag[: i + 1], tag[i + 1 :]

        if name == key:
            return _unquote(qvalue)
    return None


def directive_from_value(value: str) -> Directive:
    if value == "":
        return PlainDirective
    if value == INLINE_DIRECTIVE:
        return InlineDirective
    if value == PRIVATE_DIRECTIVE:
        return PrivateDirective

    # "name,option" -> "name", options are ignored
    name, *_ = value.split(",")
    name = name.strip()
    if not name:
        return PlainDirective
    return Directive(NAMED_DIRECTIVE, name)


class DirectiveParser:
    """
    Parses raw tags into directives, memoizing results by the exact raw tag,
    identical tags across fields and types share one parsed directive.
    """

    __slots__ = ("_key", "_key_marker", "_cache")

    def __init__(self, key: str = DefaultTagKey):
        self._key = key
        self._key_marker = re.compile(rf"(?:^|\s){re.escape(key)}:")
        self._cache: dict[str, Union[Directive, None]] = {}

    @property
    def key(self) -> str:
        return self._key

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, raw_tag: str) -> bool:
        return raw_tag in self._cache

    def parse(self, raw_tag: Union[str, None]) -> Union[Directive, None]:
        if raw_tag is None:
            return None

        try:
            return self._cache[raw_tag]
        except KeyError:
            pass

        try:
            value = lookup(raw_tag, self._key)
        except TagSyntaxError as tse:
            if self._key_marker.search(raw_tag):
                raise MalformedDirectiveError(raw_tag, str(tse)) from tse
            value = None

        directive = None if value is None else directive_from_value(value)
        self._cache[raw_tag] = directive
        return directive

    def clear(self) -> None:
        self._cache.clear()
