from .typing import (  # noqa
    dict_shape,
    is_any,
    is_union,
    sequence_shape,
    type_name,
    unwrap_optional,
)
