from .exceptions import (  # noqa
    CoercionError,
    ConstructionError,
    CyclicDependencyError,
    ObjectMapperException,
    UnmappableError,
)
from .interfaces import Coercer, Mappable, Mapping, Resolver, TypeDescriptor  # noqa
from .mapper import Mapper, map_to  # noqa
from .models import Dependency, Environment, MappingKey  # noqa
from .option import Option, all_some, none, some  # noqa
from .resolvers import MappableDict, MappableObject, MappableScalar  # noqa
