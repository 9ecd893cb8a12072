import abc
import typing

from .utils import type_name


class ObjectMapperException(Exception, metaclass=abc.ABCMeta):
    @property
    @abc.abstractmethod
    def message(self) -> str:
        ...  # pragma: nocover

    def __str__(self) -> str:
        return self.message


class CoercionError(ObjectMapperException):
    value: typing.Any
    target_type: typing.Any
    detail: typing.Optional[str]

    @property
    def message(self) -> str:
        return f'cannot coerce {self.value!r} to {type_name(self.target_type)}{" (" + self.detail + ")" if self.detail is not None else ""}'

    def __init__(self, value: typing.Any, target_type: typing.Any, detail: typing.Optional[str] = None):
        self.value = value
        self.target_type = target_type
        self.detail = detail


class ConstructionError(ObjectMapperException):
    target_type: typing.Any
    arguments: typing.Mapping[str, typing.Any]

    @property
    def message(self) -> str:
        return f"construction of {type_name(self.target_type)} failed ({self.__cause__!s})"

    def __init__(self, target_type: typing.Any, arguments: typing.Mapping[str, typing.Any]):
        self.target_type = target_type
        self.arguments = arguments


class CyclicDependencyError(ObjectMapperException):
    keys: typing.Sequence["models.MappingKey"]

    @property
    def message(self) -> str:
        targets = ", ".join(sorted({type_name(key.target_type) for key in self.keys}))
        return f"cyclic required dependency among {len(self.keys)} mapping(s) targeting {targets}"

    def __init__(self, keys: typing.Sequence["models.MappingKey"]):
        self.keys = keys


class UnmappableError(ObjectMapperException):
    value: typing.Any
    target_type: typing.Any

    @property
    def message(self) -> str:
        return f"no mapping found from {type(self.value).__qualname__} to {type_name(self.target_type)}"

    def __init__(self, value: typing.Any, target_type: typing.Any):
        self.value = value
        self.target_type = target_type


if typing.TYPE_CHECKING:
    from . import models  # noqa: E402
