import abc
import collections.abc
import dataclasses
import logging
import typing

from .exceptions import CoercionError
from .interfaces import Coercer, Mappable, Mapping, MappingContext, Resolver
from .mappings import (
    DictMapping,
    NullableMapping,
    SequenceMapping,
    TerminalMapping,
    map_object,
)
from .option import Option, none, some
from .utils import is_any

log = logging.getLogger(__name__)

_MISSING = object()


def readable_members(obj: typing.Any) -> typing.Iterator[typing.Tuple[str, typing.Any]]:
    """
    Enumerates the public members of an arbitrary object: instance attributes,
    slots, dataclass fields, named tuple fields and properties.  Names starting
    with an underscore are skipped.
    """
    seen: typing.Set[str] = set()

    def _candidates() -> typing.Iterator[typing.Tuple[str, typing.Any]]:
        if dataclasses.is_dataclass(obj):
            for f in dataclasses.fields(obj):
                yield f.name, getattr(obj, f.name, _MISSING)
        if isinstance(obj, tuple) and hasattr(obj, "_fields"):
            yield from zip(obj._fields, obj)
        yield from getattr(obj, "__dict__", {}).items()
        for klass in type(obj).__mro__:
            slots = vars(klass).get("__slots__", ())
            for name in (slots,) if isinstance(slots, str) else slots:
                yield name, getattr(obj, name, _MISSING)
            for name, attr in vars(klass).items():
                if isinstance(attr, property):
                    try:
                        yield name, attr.__get__(obj)
                    except AttributeError:
                        continue

    for name, value in _candidates():
        if name.startswith("_") or name in seen or value is _MISSING:
            continue
        seen.add(name)
        yield name, value


class MappableScalar(Mappable):
    """
    Wraps a value that is mapped by coercion only.
    """

    value: typing.Any

    def to(self, ctx: MappingContext, target_type: typing.Any) -> Option[Mapping]:
        if is_any(target_type):
            return some(TerminalMapping(self.value))
        if not ctx.coercer.supports(target_type):
            return none()
        try:
            return some(TerminalMapping(ctx.coercer.coerce(self.value, target_type)))
        except CoercionError as e:
            log.debug("%s", e.message)
            return none()

    def __init__(self, value: typing.Any):
        self.value = value


class MappableNullable(Mappable):
    value: typing.Any

    def to(self, ctx: MappingContext, target_type: typing.Any) -> Option[Mapping]:
        return ctx.type_descriptor.nullable_of(target_type).map(
            lambda underlying_type: NullableMapping(self.value, underlying_type)
        )

    def __init__(self, value: typing.Any):
        self.value = value


class MappableSequence(Mappable):
    """
    Wraps a value as a sequence.  Strings, bytes, mappings and non-iterable
    values count as a single element.
    """

    value: typing.Any

    def elements(self) -> typing.Sequence[typing.Any]:
        if isinstance(
            self.value, (str, bytes, bytearray, collections.abc.Mapping)
        ) or not isinstance(self.value, collections.abc.Iterable):
            return [self.value]
        return list(self.value)

    def to(self, ctx: MappingContext, target_type: typing.Any) -> Option[Mapping]:
        return ctx.type_descriptor.sequence_of(target_type).map(
            lambda shape: SequenceMapping(self.elements(), shape)
        )

    def __init__(self, value: typing.Any):
        self.value = value


class MappablePairs(Mappable, metaclass=abc.ABCMeta):
    """
    Base class for sources that produce named values.  An instance of exactly the
    target type is passed through untouched.
    """

    source: typing.Any

    @abc.abstractmethod
    def pairs(self) -> typing.Iterable[typing.Tuple[typing.Any, typing.Any]]:
        ...  # pragma: nocover

    def to(self, ctx: MappingContext, target_type: typing.Any) -> Option[Mapping]:
        if type(self.source) is target_type:
            return some(TerminalMapping(self.source))
        if ctx.coercer.supports(target_type):
            return none()
        dict_shape = ctx.type_descriptor.dict_of(target_type)
        if dict_shape.is_some:
            return some(DictMapping(self.pairs(), dict_shape.get()))
        return map_object(
            ctx, ((k, v) for k, v in self.pairs() if isinstance(k, str)), target_type
        )

    def __init__(self, source: typing.Any):
        self.source = source


class MappableDict(MappablePairs):
    """
    Wraps either a mapping or an iterable of ``(name, value)`` pairs.
    """

    def pairs(self) -> typing.Iterable[typing.Tuple[typing.Any, typing.Any]]:
        if isinstance(self.source, collections.abc.Mapping):
            return list(self.source.items())
        return list(self.source)


class MappableObject(MappablePairs):
    def pairs(self) -> typing.Iterable[typing.Tuple[typing.Any, typing.Any]]:
        return list(readable_members(self.source))


class TerminalResolver(Resolver):
    def resolve(self, value: typing.Any) -> Option[Mappable]:
        return some(MappableScalar(value))


class NullableResolver(Resolver):
    def resolve(self, value: typing.Any) -> Option[Mappable]:
        return some(MappableNullable(value))


class SequenceResolver(Resolver):
    def resolve(self, value: typing.Any) -> Option[Mappable]:
        return some(MappableSequence(value))


class ObjectResolver(Resolver):
    """
    The fallback resolver: reads a mapping through its string keys and any other
    non-scalar object through its public members.
    """

    coercer: Coercer

    def resolve(self, value: typing.Any) -> Option[Mappable]:
        if isinstance(value, collections.abc.Mapping):
            return some(MappableDict(value))
        if self.coercer.is_scalar_value(value):
            return none()
        return some(MappableObject(value))

    def __init__(self, coercer: Coercer):
        self.coercer = coercer
