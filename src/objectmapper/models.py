import dataclasses
import typing
from collections import OrderedDict

from .exceptions import ConstructionError
from .option import Option, none
from .utils import sequence_shape, type_name


class MappingKey:
    """
    A :py:class:`MappingKey` identifies a single mapping request: a source value
    (compared by identity) and a target type (compared by equality).

    The key keeps a reference to the source value so that its ``id()`` cannot be
    recycled while the key is alive.
    """

    __slots__ = ("source", "target_type", "_hash")

    source: typing.Any
    target_type: typing.Any

    def __eq__(self, other: typing.Any) -> bool:
        if not isinstance(other, MappingKey):
            return NotImplemented
        return self.source is other.source and self.target_type == other.target_type

    def __hash__(self) -> int:
        return self._hash

    def __repr__(self) -> str:
        return f"MappingKey({type(self.source).__qualname__}@{id(self.source):#x}, {type_name(self.target_type)})"

    def __init__(self, source: typing.Any, target_type: typing.Any):
        self.source = source
        self.target_type = target_type
        self._hash = hash((id(source), target_type))


@dataclasses.dataclass(frozen=True)
class Dependency:
    """
    A named request: to build its owner, a value called ``name`` is needed, sourced
    from ``value`` and mapped to ``target_type``.
    """

    name: str
    value: typing.Any
    target_type: typing.Any

    @property
    def key(self) -> MappingKey:
        return MappingKey(self.value, self.target_type)


class Environment:
    """
    An :py:class:`Environment` is the bag of resolved dependency values handed to
    :py:meth:`Mapping.create`.  Names are looked up through the normalizer, so
    ``firstName``, ``FirstName`` and ``first_name`` designate the same entry.
    A lookup of an unknown name yields absence.
    """

    _entries: "OrderedDict[str, typing.Tuple[str, Option[typing.Any]]]"
    _deferred: typing.FrozenSet[str]
    _normalizer: typing.Callable[[str], str]

    @property
    def deferred(self) -> typing.FrozenSet[str]:
        """
        Names of the dependencies that were still being resolved when this
        environment was built.
        """
        return self._deferred

    def is_deferred(self, name: str) -> bool:
        return self._normalizer(name) in self._deferred

    def __getitem__(self, name: str) -> Option[typing.Any]:
        try:
            return self._entries[self._normalizer(name)][1]
        except KeyError:
            return none()

    def __contains__(self, name: typing.Any) -> bool:
        return isinstance(name, str) and self._normalizer(name) in self._entries

    def __iter__(self) -> typing.Iterator[str]:
        return (name for name, _ in self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def items(self) -> typing.Iterator[typing.Tuple[str, Option[typing.Any]]]:
        return iter(self._entries.values())

    def __repr__(self) -> str:
        return f"Environment({dict(self.items())!r})"

    def __init__(
        self,
        entries: typing.Iterable[typing.Tuple[str, Option[typing.Any]]] = (),
        deferred: typing.Iterable[str] = (),
        normalizer: typing.Callable[[str], str] = str.casefold,
    ):
        self._normalizer = normalizer
        self._entries = OrderedDict()
        for name, value in entries:
            self._entries.setdefault(normalizer(name), (name, value))
        self._deferred = frozenset(normalizer(name) for name in deferred)


@dataclasses.dataclass(frozen=True)
class ParameterDescriptor:
    name: str
    type: typing.Any = typing.Any
    has_default: bool = False


class ConstructorDescriptor:
    """
    Describes one way of constructing instances of a type.
    """

    target_type: typing.Any
    parameters: typing.Sequence[ParameterDescriptor]
    factory: typing.Callable[..., typing.Any]

    def invoke(self, arguments: typing.Mapping[str, typing.Any]) -> typing.Any:
        try:
            return self.factory(**arguments)
        except (TypeError, ValueError) as e:
            raise ConstructionError(self.target_type, arguments) from e

    def __repr__(self) -> str:
        return f"ConstructorDescriptor({type_name(self.target_type)}, {[p.name for p in self.parameters]!r})"

    def __init__(
        self,
        target_type: typing.Any,
        parameters: typing.Sequence[ParameterDescriptor],
        factory: typing.Optional[typing.Callable[..., typing.Any]] = None,
    ):
        self.target_type = target_type
        self.parameters = parameters
        self.factory = factory if factory is not None else target_type


class FieldDescriptor:
    """
    Describes a member of a type that can be read from, and possibly written to,
    an already constructed instance.
    """

    name: str
    type: typing.Any
    writable: bool

    @property
    def is_collection(self) -> bool:
        return sequence_shape(self.type) is not None

    def get_value(self, target: typing.Any) -> typing.Any:
        return getattr(target, self.name)

    def set_value(self, target: typing.Any, value: typing.Any) -> None:
        setattr(target, self.name, value)

    def add_elements(self, target: typing.Any, values: typing.Iterable[typing.Any]) -> bool:
        """
        Appends each of the values to the collection currently held by the field.

        :return: ``False`` if the current value does not accept new elements.
        """
        collection = self.get_value(target)
        adder = getattr(collection, "append", None) or getattr(collection, "add", None)
        if adder is None:
            return False
        for value in values:
            adder(value)
        return True

    def __repr__(self) -> str:
        return f"FieldDescriptor({self.name!r}, {type_name(self.type)}, writable={self.writable})"

    def __init__(self, name: str, type: typing.Any = typing.Any, writable: bool = True):
        self.name = name
        self.type = type
        self.writable = writable


@dataclasses.dataclass(frozen=True)
class TypeDescription:
    type: typing.Any
    constructors: typing.Sequence[ConstructorDescriptor]
    fields: typing.Sequence[FieldDescriptor]

    def field(self, name: str) -> typing.Optional[FieldDescriptor]:
        for field in self.fields:
            if field.name == name:
                return field
        return None


@dataclasses.dataclass(frozen=True)
class SequenceShape:
    element_type: typing.Any
    factory: typing.Callable[[typing.Iterable[typing.Any]], typing.Any]

    @property
    def mutable(self) -> bool:
        return self.factory is list


@dataclasses.dataclass(frozen=True)
class DictShape:
    key_type: typing.Any
    value_type: typing.Any
