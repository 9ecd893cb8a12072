from ...interfaces import Resolver
from ...mapper import Mapper
from .core import SQLAResolver, SQLATypeDescriptorImpl


def create_sqla_mapper(*resolvers: Resolver) -> Mapper:
    """
    Returns a :py:class:`Mapper` that reads ORM instances through their loaded
    attributes and populates ORM-mapped classes through their mapper.

    :param Resolver resolvers: additional custom resolvers, consulted first.
    """
    return Mapper(*resolvers, SQLAResolver(), type_descriptor=SQLATypeDescriptorImpl())
