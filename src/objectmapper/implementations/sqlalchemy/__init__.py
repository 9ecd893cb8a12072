from .core import (  # noqa
    MappableSQLAInstance,
    SQLAFieldDescriptor,
    SQLAResolver,
    SQLATypeDescriptorImpl,
)
from .defaults import create_sqla_mapper  # noqa
