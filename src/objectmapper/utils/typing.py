import collections.abc
import types
import typing

NoneType = type(None)

_SEQUENCE_FACTORIES: typing.Mapping[typing.Any, typing.Callable[[typing.Iterable], typing.Any]] = {
    list: list,
    tuple: tuple,
    set: set,
    frozenset: frozenset,
    collections.abc.Iterable: list,
    collections.abc.Collection: list,
    collections.abc.Sequence: list,
    collections.abc.MutableSequence: list,
    collections.abc.Set: set,
    collections.abc.MutableSet: set,
}

_DICT_ORIGINS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)


def is_any(type_: typing.Any) -> bool:
    return type_ is typing.Any or type_ is object


def is_union(type_: typing.Any) -> bool:
    return typing.get_origin(type_) in (typing.Union, types.UnionType)


def unwrap_optional(type_: typing.Any) -> typing.Optional[typing.Any]:
    """
    Returns ``T`` for ``Optional[T]`` (or ``T | None``), and :py:const:`None` if the
    given type does not admit ``None``.  Unions of several non-None members are
    returned as a union of the remaining members.
    """
    if not is_union(type_):
        return None
    args = typing.get_args(type_)
    if NoneType not in args:
        return None
    rest = tuple(arg for arg in args if arg is not NoneType)
    if len(rest) == 1:
        return rest[0]
    return typing.Union[rest]


def sequence_shape(
    type_: typing.Any,
) -> typing.Optional[typing.Tuple[typing.Any, typing.Callable[[typing.Iterable], typing.Any]]]:
    """
    Returns a pair of the element type and the container factory for a homogeneous
    container type, or :py:const:`None` if the type is not one.
    """
    origin = typing.get_origin(type_)
    if origin is None:
        origin, args = type_, ()
    else:
        args = typing.get_args(type_)
    try:
        factory = _SEQUENCE_FACTORIES[origin]
    except (KeyError, TypeError):
        return None
    if origin is tuple and args:
        if len(args) != 2 or args[1] is not Ellipsis:
            return None
        return args[0], factory
    return (args[0] if args else typing.Any), factory


def dict_shape(type_: typing.Any) -> typing.Optional[typing.Tuple[typing.Any, typing.Any]]:
    origin = typing.get_origin(type_)
    if origin is None:
        if type_ in _DICT_ORIGINS:
            return typing.Any, typing.Any
        return None
    if origin not in _DICT_ORIGINS:
        return None
    args = typing.get_args(type_)
    if len(args) != 2:
        return typing.Any, typing.Any
    return args[0], args[1]


def type_name(type_: typing.Any) -> str:
    if isinstance(type_, type) and typing.get_origin(type_) is None:
        return type_.__qualname__
    return repr(type_)
