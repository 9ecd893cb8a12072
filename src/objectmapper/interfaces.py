"""
This module contains the interface definitions the resolution engine is built
upon.  Built-in implementations live in :py:mod:`objectmapper.mappings`,
:py:mod:`objectmapper.resolvers` and :py:mod:`objectmapper.defaults`.

"""
import abc
import typing

from .models import (
    Dependency,
    DictShape,
    Environment,
    SequenceShape,
    TypeDescription,
)
from .option import Option


class Mapping(metaclass=abc.ABCMeta):
    """
    A :py:class:`Mapping` is a plan for producing one instance: a set of named
    :py:class:`Dependency` objects plus a :py:meth:`create` step that receives
    their resolved values.

    This class has nothing to do with :py:class:`collections.abc.Mapping`.
    """

    @abc.abstractmethod
    def dependencies(self) -> typing.Sequence[Dependency]:
        """
        Returns the dependencies that need to be resolved before :py:meth:`create`
        is called.
        """
        ...  # pragma: nocover

    @abc.abstractmethod
    def create(self, env: Environment) -> Option[typing.Any]:
        """
        Produces the instance.

        :param Environment env: resolved values of the dependencies.
        :return: the instance, or absence if it cannot be produced.
        """
        ...  # pragma: nocover

    def can_defer(self, name: str) -> bool:
        """
        Tells whether the named dependency may still be unresolved when
        :py:meth:`create` is called, to be supplied later through :py:meth:`complete`.
        """
        return False

    def copies(self, name: str) -> bool:
        """
        Tells whether :py:meth:`create` copies the contents of the named dependency
        instead of keeping a reference to it.  Such a dependency is deferred as long
        as its value is still awaiting completion, provided :py:meth:`can_defer`
        allows it.
        """
        return False

    def complete(self, instance: typing.Any, env: Environment) -> bool:
        """
        Supplies the dependencies that were deferred at :py:meth:`create` time.

        :param Any instance: the instance previously returned by :py:meth:`create`.
        :param Environment env: the deferred dependencies; those that could not be
                                mapped in the end are absent.
        :return: ``False`` if the instance cannot do without an absent dependency.
                 The instance is then discarded along with everything built on it.
        """
        return True


class Mappable(metaclass=abc.ABCMeta):
    """
    A :py:class:`Mappable` wraps a source value and knows how to plan its mapping
    to a requested target type.
    """

    @abc.abstractmethod
    def to(self, ctx: "MappingContext", target_type: typing.Any) -> Option[Mapping]:
        """
        Returns a :py:class:`Mapping` that yields an instance of ``target_type``,
        or absence if the target type is not supported.
        """
        ...  # pragma: nocover


class Resolver(metaclass=abc.ABCMeta):
    """
    A :py:class:`Resolver` recognizes a source shape and wraps it in a
    :py:class:`Mappable`.
    """

    @abc.abstractmethod
    def resolve(self, value: typing.Any) -> Option[Mappable]:
        ...  # pragma: nocover


class TypeDescriptor(metaclass=abc.ABCMeta):
    """
    A :py:class:`TypeDescriptor` answers structural questions about target types.
    """

    @abc.abstractmethod
    def describe(self, type_: typing.Any) -> Option[TypeDescription]:
        """
        Lists the constructors and fields of a type.  Returns absence for types
        that cannot be constructed from named values.
        """
        ...  # pragma: nocover

    @abc.abstractmethod
    def nullable_of(self, type_: typing.Any) -> Option[typing.Any]:
        """
        Returns ``T`` if the type is a nullable wrapper of ``T``.
        """
        ...  # pragma: nocover

    @abc.abstractmethod
    def sequence_of(self, type_: typing.Any) -> Option[SequenceShape]:
        """
        Returns the element type and container factory if the type is a
        homogeneous container.
        """
        ...  # pragma: nocover

    @abc.abstractmethod
    def dict_of(self, type_: typing.Any) -> Option[DictShape]:
        ...  # pragma: nocover

    @abc.abstractmethod
    def zero_value(self, type_: typing.Any) -> Option[typing.Any]:
        """
        Returns the value a missing constructor argument of the given type
        defaults to, or absence if there is none.
        """
        ...  # pragma: nocover


class Coercer(metaclass=abc.ABCMeta):
    """
    A :py:class:`Coercer` converts scalar values between the fixed set of
    scalar kinds it supports.
    """

    @abc.abstractmethod
    def supports(self, type_: typing.Any) -> bool:
        """
        Tells whether the type is one of the scalar kinds.
        """
        ...  # pragma: nocover

    @abc.abstractmethod
    def is_scalar_value(self, value: typing.Any) -> bool:
        ...  # pragma: nocover

    @abc.abstractmethod
    def coerce(self, value: typing.Any, type_: typing.Any) -> typing.Any:
        """
        :raises CoercionError: if the value cannot be represented as ``type_``.
        """
        ...  # pragma: nocover


class MappingContext(typing.Protocol):
    type_descriptor: TypeDescriptor
    coercer: Coercer

    def normalize_name(self, name: str) -> str:
        ...  # pragma: nocover
