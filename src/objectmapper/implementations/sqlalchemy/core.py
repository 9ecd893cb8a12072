import typing

import sqlalchemy as sa  # type: ignore
from sqlalchemy import orm  # type: ignore

from ...defaults import DefaultTypeDescriptorImpl
from ...interfaces import Mappable, Resolver
from ...models import ConstructorDescriptor, FieldDescriptor, TypeDescription
from ...option import Option, none, some
from ...resolvers import MappablePairs


def mapper_of(type_: typing.Any) -> typing.Optional[orm.Mapper]:
    """
    Returns the ORM mapper of a mapped class, or :py:const:`None`.
    """
    if not isinstance(type_, type) or typing.get_origin(type_) is not None:
        return None
    try:
        insp = sa.inspect(type_)
    except sa.exc.NoInspectionAvailable:
        return None
    return insp if isinstance(insp, orm.Mapper) else None


def column_type(prop: orm.ColumnProperty) -> typing.Any:
    column = prop.columns[0]
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return typing.Any
    if getattr(column, "nullable", False):
        return typing.Optional[python_type]
    return python_type


def relationship_type(prop: orm.RelationshipProperty) -> typing.Any:
    destination = prop.mapper.class_
    if not prop.uselist:
        return typing.Optional[destination]
    if prop.collection_class is set:
        return typing.Set[destination]
    return typing.List[destination]


def mapped_properties(
    sa_mapper: orm.Mapper,
) -> typing.Iterator[orm.interfaces.MapperProperty]:
    for prop in sa_mapper.attrs:
        if isinstance(prop, (orm.ColumnProperty, orm.RelationshipProperty)):
            yield prop


class SQLAFieldDescriptor(FieldDescriptor):
    property: orm.interfaces.MapperProperty

    def __init__(self, property: orm.interfaces.MapperProperty):
        if isinstance(property, orm.RelationshipProperty):
            type_ = relationship_type(property)
        else:
            type_ = column_type(property)
        super().__init__(property.key, type_, writable=True)
        self.property = property


class SQLATypeDescriptorImpl(DefaultTypeDescriptorImpl):
    """
    Describes ORM-mapped classes through their mapper: the declarative
    constructor is used without arguments, and every column attribute and
    relationship is a writable field.  Other types are described by reflection.
    """

    def describe(self, type_: typing.Any) -> Option[TypeDescription]:
        sa_mapper = mapper_of(type_)
        if sa_mapper is None:
            return super().describe(type_)
        return some(
            TypeDescription(
                type_,
                [ConstructorDescriptor(type_, [])],
                [SQLAFieldDescriptor(prop) for prop in mapped_properties(sa_mapper)],
            )
        )


class MappableSQLAInstance(MappablePairs):
    """
    Reads the loaded attributes of an ORM instance.  Attributes that are not
    loaded yet are skipped, so that mapping never emits a lazy load.
    """

    def pairs(self) -> typing.Iterable[typing.Tuple[typing.Any, typing.Any]]:
        state = sa.inspect(self.source)
        loaded = state.dict
        return [
            (prop.key, loaded[prop.key])
            for prop in mapped_properties(state.mapper)
            if prop.key in loaded
        ]


class SQLAResolver(Resolver):
    def resolve(self, value: typing.Any) -> Option[Mappable]:
        try:
            state = sa.inspect(value)
        except sa.exc.NoInspectionAvailable:
            return none()
        if not isinstance(state, orm.InstanceState):
            return none()
        return some(MappableSQLAInstance(value))
