import logging
import typing

from .exceptions import ConstructionError
from .interfaces import Mapping, MappingContext
from .models import (
    ConstructorDescriptor,
    Dependency,
    DictShape,
    Environment,
    FieldDescriptor,
    ParameterDescriptor,
    SequenceShape,
    TypeDescription,
)
from .option import Option, all_some, none, some
from .utils import type_name

log = logging.getLogger(__name__)


class TerminalMapping(Mapping):
    """
    A mapping that has nothing left to resolve.
    """

    value: typing.Any

    def dependencies(self) -> typing.Sequence[Dependency]:
        return ()

    def create(self, env: Environment) -> Option[typing.Any]:
        return some(self.value)

    def __repr__(self) -> str:
        return f"TerminalMapping({self.value!r})"

    def __init__(self, value: typing.Any):
        self.value = value


class NullableMapping(Mapping):
    """
    Maps to ``Optional[T]`` by delegating to a single dependency on ``T``.
    """

    dependency: Dependency

    def dependencies(self) -> typing.Sequence[Dependency]:
        return (self.dependency,)

    def create(self, env: Environment) -> Option[typing.Any]:
        return env[self.dependency.name]

    def __init__(self, value: typing.Any, underlying_type: typing.Any):
        self.dependency = Dependency("value", value, underlying_type)


class SequenceMapping(Mapping):
    """
    Maps each element of the source to the element type, in order.  When the
    container is a list, elements that are still being resolved (back-references
    in a cycle) are left as placeholders and filled in by :py:meth:`complete`;
    if such an element cannot be mapped in the end, the list is discarded.
    """

    shape: SequenceShape
    _dependencies: typing.Sequence[Dependency]
    _indices: typing.Mapping[str, int]

    def dependencies(self) -> typing.Sequence[Dependency]:
        return self._dependencies

    def create(self, env: Environment) -> Option[typing.Any]:
        items: typing.List[typing.Any] = []
        for dep in self._dependencies:
            value = env[dep.name]
            if value.is_some:
                items.append(value.get())
            elif env.is_deferred(dep.name) and self.shape.mutable:
                items.append(None)
            else:
                log.debug("element %s of %s could not be mapped", dep.name, type_name(dep.target_type))
                return none()
        return some(self.shape.factory(items))

    def can_defer(self, name: str) -> bool:
        return self.shape.mutable

    def complete(self, instance: typing.Any, env: Environment) -> bool:
        for name, value in env.items():
            if value.is_none:
                log.debug("deferred element %s could not be mapped", name)
                return False
            instance[self._indices[name]] = value.get()
        return True

    def __init__(self, elements: typing.Iterable[typing.Any], shape: SequenceShape):
        self.shape = shape
        self._dependencies = [
            Dependency(f"[{i}]", element, shape.element_type) for i, element in enumerate(elements)
        ]
        self._indices = {dep.name: i for i, dep in enumerate(self._dependencies)}


class DictMapping(Mapping):
    """
    Maps every entry of a source mapping, coercing both keys and values.
    """

    shape: DictShape
    _entries: typing.Sequence[typing.Tuple[Dependency, Dependency]]
    _keys: typing.Dict[str, typing.Any]

    def dependencies(self) -> typing.Sequence[Dependency]:
        return [dep for entry in self._entries for dep in entry]

    def create(self, env: Environment) -> Option[typing.Any]:
        result: typing.Dict[typing.Any, typing.Any] = {}
        for key_dep, value_dep in self._entries:
            key = env[key_dep.name]
            value = env[value_dep.name]
            if key.is_none or (value.is_none and not env.is_deferred(value_dep.name)):
                log.debug("entry %r could not be mapped", key_dep.value)
                return none()
            self._keys[value_dep.name] = key.get()
            result[key.get()] = value.or_else(None)
        return some(result)

    def can_defer(self, name: str) -> bool:
        return name.startswith("value[")

    def complete(self, instance: typing.Any, env: Environment) -> bool:
        for name, value in env.items():
            if value.is_none:
                log.debug("deferred entry %s could not be mapped", name)
                return False
            instance[self._keys[name]] = value.get()
        return True

    def __init__(
        self, pairs: typing.Iterable[typing.Tuple[typing.Any, typing.Any]], shape: DictShape
    ):
        self.shape = shape
        self._entries = [
            (
                Dependency(f"key[{i}]", k, shape.key_type),
                Dependency(f"value[{i}]", v, shape.value_type),
            )
            for i, (k, v) in enumerate(pairs)
        ]
        self._keys = {}


class ObjectMapping(Mapping):
    """
    Populates a plain object: matching source values become constructor arguments,
    and the remaining matches are assigned to fields once the instance exists.
    """

    ctx: MappingContext
    description: TypeDescription
    constructor: ConstructorDescriptor
    _parameter_dependencies: typing.Mapping[str, Dependency]
    _field_dependencies: typing.Sequence[typing.Tuple[FieldDescriptor, Dependency]]
    _deferrable: typing.Mapping[str, FieldDescriptor]
    _copied: typing.FrozenSet[str]

    def dependencies(self) -> typing.Sequence[Dependency]:
        return [
            *self._parameter_dependencies.values(),
            *(dep for _, dep in self._field_dependencies),
        ]

    def _argument(
        self, param: ParameterDescriptor, env: Environment
    ) -> Option[typing.Optional[typing.Tuple[str, typing.Any]]]:
        dep = self._parameter_dependencies.get(param.name)
        if dep is not None:
            value = env[dep.name]
            if value.is_some:
                return some((param.name, value.get()))
        if param.has_default:
            return some(None)
        return self.ctx.type_descriptor.zero_value(param.type).map(lambda v: (param.name, v))

    def _apply(self, field: FieldDescriptor, instance: typing.Any, value: typing.Any) -> None:
        if field.writable:
            field.set_value(instance, value)
        elif value is None or not field.add_elements(instance, value):
            log.debug(
                "field %s of %s is read-only; left untouched",
                field.name,
                type_name(self.description.type),
            )

    def create(self, env: Environment) -> Option[typing.Any]:
        arguments = all_some(self._argument(param, env) for param in self.constructor.parameters)
        if arguments.is_none:
            log.debug(
                "missing constructor argument(s) %s for %s",
                [p.name for p in self.constructor.parameters if self._argument(p, env).is_none],
                type_name(self.description.type),
            )
            return none()
        try:
            instance = self.constructor.invoke(dict(a for a in arguments.get() if a is not None))
        except ConstructionError as e:
            log.debug("%s", e.message)
            return none()
        for field, dep in self._field_dependencies:
            for value in env[dep.name]:
                self._apply(field, instance, value)
        return some(instance)

    def can_defer(self, name: str) -> bool:
        return name in self._deferrable

    def copies(self, name: str) -> bool:
        return name in self._copied

    def complete(self, instance: typing.Any, env: Environment) -> bool:
        for name, value in env.items():
            for v in value:
                self._apply(self._deferrable[name], instance, v)
        return True

    def __init__(
        self,
        ctx: MappingContext,
        description: TypeDescription,
        constructor: ConstructorDescriptor,
        parameter_dependencies: typing.Mapping[str, Dependency],
        field_dependencies: typing.Sequence[typing.Tuple[FieldDescriptor, Dependency]],
    ):
        self.ctx = ctx
        self.description = description
        self.constructor = constructor
        self._parameter_dependencies = parameter_dependencies
        self._field_dependencies = field_dependencies

        deferrable = {dep.name: field for field, dep in field_dependencies}
        for param in constructor.parameters:
            dep = parameter_dependencies.get(param.name)
            if dep is None:
                continue
            if not (param.has_default or ctx.type_descriptor.zero_value(param.type).is_some):
                continue
            field = description.field(param.name)
            if field is not None and field.writable:
                deferrable[dep.name] = field
        self._deferrable = deferrable
        self._copied = frozenset(
            dep.name for field, dep in field_dependencies if not field.writable
        )


def map_object(
    ctx: MappingContext,
    pairs: typing.Iterable[typing.Tuple[str, typing.Any]],
    target_type: typing.Any,
) -> Option[Mapping]:
    """
    Plans the population of ``target_type`` from named source values.

    The constructor with the fewest parameters is chosen (the first declared one
    on ties).  Source names are matched against parameter and field names through
    the context's name normalizer; a name claimed by a constructor parameter is
    never assigned to a field as well.

    :param MappingContext ctx: the mapping context.
    :param pairs: ``(name, value)`` pairs read from the source.
    :param target_type: the type to be populated.
    :return: an :py:class:`ObjectMapping`, or absence if the type cannot be described.
    """
    description = ctx.type_descriptor.describe(target_type)
    if description.is_none:
        return none()
    descr = description.get()
    if not descr.constructors:
        return none()
    constructor = min(descr.constructors, key=lambda c: len(c.parameters))

    source: typing.Dict[str, typing.Any] = {}
    for name, value in pairs:
        source.setdefault(ctx.normalize_name(name), value)

    parameter_dependencies: typing.Dict[str, Dependency] = {}
    claimed: typing.Set[str] = set()
    for param in constructor.parameters:
        normalized = ctx.normalize_name(param.name)
        if normalized in source:
            parameter_dependencies[param.name] = Dependency(param.name, source[normalized], param.type)
            claimed.add(normalized)

    field_dependencies: typing.List[typing.Tuple[FieldDescriptor, Dependency]] = []
    for field in descr.fields:
        normalized = ctx.normalize_name(field.name)
        if normalized in claimed or normalized not in source:
            continue
        if not (field.writable or field.is_collection):
            continue
        claimed.add(normalized)
        field_dependencies.append((field, Dependency(field.name, source[normalized], field.type)))

    return some(
        ObjectMapping(ctx, descr, constructor, parameter_dependencies, field_dependencies)
    )
