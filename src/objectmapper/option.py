import typing

T = typing.TypeVar("T")
R = typing.TypeVar("R")


class Option(typing.Generic[T]):
    """
    An :py:class:`Option` tells whether a value is present without resorting to a
    sentinel.  ``None`` is a legitimate value for a present :py:class:`Option`.

    Iterating over an :py:class:`Option` yields its value once if present, and
    nothing otherwise.
    """

    __slots__ = ("_value", "_is_some")

    _value: typing.Optional[T]
    _is_some: bool

    @property
    def is_some(self) -> bool:
        return self._is_some

    @property
    def is_none(self) -> bool:
        return not self._is_some

    def get(self) -> T:
        """
        Returns the value.

        :raises ValueError: if the value is absent.
        """
        if not self._is_some:
            raise ValueError("no value present")
        return typing.cast(T, self._value)

    def or_else(self, default: T) -> T:
        return typing.cast(T, self._value) if self._is_some else default

    def map(self, f: typing.Callable[[T], R]) -> "Option[R]":
        """
        Applies ``f`` to the value if present; propagates absence otherwise.
        """
        if not self._is_some:
            return none()
        return some(f(typing.cast(T, self._value)))

    def __iter__(self) -> typing.Iterator[T]:
        if self._is_some:
            yield typing.cast(T, self._value)

    def __eq__(self, other: typing.Any) -> bool:
        if not isinstance(other, Option):
            return NotImplemented
        if self._is_some != other._is_some:
            return False
        return not self._is_some or self._value == other._value

    def __repr__(self) -> str:
        if self._is_some:
            return f"some({self._value!r})"
        return "none()"

    def __init__(self, value: typing.Optional[T], is_some: bool):
        self._value = value
        self._is_some = is_some


_NONE: Option[typing.Any] = Option(None, False)


def some(value: T) -> Option[T]:
    return Option(value, True)


def none() -> Option[typing.Any]:
    return _NONE


def all_some(options: typing.Iterable[Option[T]]) -> Option[typing.List[T]]:
    """
    Turns a sequence of options into an option of a sequence.  The result is present
    only if every element is present.
    """
    values: typing.List[T] = []
    for option in options:
        if option.is_none:
            return none()
        values.append(option.get())
    return some(values)
