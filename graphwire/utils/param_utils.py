from typing import Literal


class _Missed:
    """
    Sentinel object to represent a value that was never set.
    bool(MISSING) is False.
    """

    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> Literal[False]:
        return False


MISSING = _Missed()
