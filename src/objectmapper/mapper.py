import typing

from .defaults import (
    DefaultCoercerImpl,
    DefaultTypeDescriptorImpl,
    default_resolvers,
    normalize_name as default_normalize_name,
)
from .engine import Resolution
from .exceptions import UnmappableError
from .interfaces import Coercer, Resolver, TypeDescriptor
from .option import Option

T = typing.TypeVar("T")


class Mapper:
    """
    A :py:class:`Mapper` converts values to instances of arbitrary target types.

    Custom resolvers are consulted in the given order, before the built-in ones.
    A :py:class:`Mapper` holds configuration only; every call to :py:meth:`map`
    works on its own resolution state, so a single instance can be shared.

    :param Resolver resolvers: custom resolvers, highest priority first.
    :param TypeDescriptor type_descriptor: describes target types.
    :param Coercer coercer: converts scalar values.
    :param Callable[[str], str] name_normalizer: folds source and member names
                                                 before they are matched.
    """

    resolvers: typing.Sequence[Resolver]
    type_descriptor: TypeDescriptor
    coercer: Coercer
    _name_normalizer: typing.Callable[[str], str]

    def normalize_name(self, name: str) -> str:
        return self._name_normalizer(name)

    def map(self, value: typing.Any, target_type: typing.Any) -> Option[typing.Any]:
        """
        Maps ``value`` to an instance of ``target_type``.

        :param Any value: the source value.  ``None`` always maps to ``None``.
        :param Any target_type: a class or a typing construct such as
                                ``Optional[T]`` or ``list[T]``.
        :return: the instance, or absence if no resolver can produce one.
        :raises CyclicDependencyError: if the source graph contains a cycle
                                       through required constructor arguments.
        """
        return Resolution(self, self.resolvers).run(value, target_type)

    def map_to(self, value: typing.Any, target_type: typing.Type[T]) -> T:
        """
        Same as :py:meth:`map` but returns the instance itself.

        :raises UnmappableError: if no mapping could be found.
        """
        for result in self.map(value, target_type):
            return typing.cast(T, result)
        raise UnmappableError(value, target_type)

    def map_string_to(self, text: str, target_type: typing.Type[T]) -> T:
        """
        Coerces a string to one of the scalar kinds.

        :raises CoercionError: if the string does not represent such a value.
        """
        return typing.cast(T, self.coercer.coerce(text, target_type))

    def __init__(
        self,
        *resolvers: Resolver,
        type_descriptor: typing.Optional[TypeDescriptor] = None,
        coercer: typing.Optional[Coercer] = None,
        name_normalizer: typing.Callable[[str], str] = default_normalize_name,
    ):
        self.type_descriptor = (
            type_descriptor if type_descriptor is not None else DefaultTypeDescriptorImpl()
        )
        self.coercer = coercer if coercer is not None else DefaultCoercerImpl()
        self._name_normalizer = name_normalizer
        self.resolvers = [*resolvers, *default_resolvers(self.coercer)]


def map_to(value: typing.Any, target_type: typing.Type[T], *resolvers: Resolver) -> T:
    """
    Maps ``value`` to ``target_type`` with a freshly configured :py:class:`Mapper`.

    :raises UnmappableError: if no mapping could be found.
    """
    return Mapper(*resolvers).map_to(value, target_type)
