import datetime
import decimal
import enum
import inspect
import logging
import typing
import uuid

from .exceptions import CoercionError
from .interfaces import Coercer, Resolver, TypeDescriptor
from .models import (
    ConstructorDescriptor,
    DictShape,
    FieldDescriptor,
    ParameterDescriptor,
    SequenceShape,
    TypeDescription,
)
from .option import Option, none, some
from .resolvers import NullableResolver, ObjectResolver, SequenceResolver, TerminalResolver
from .utils import dict_shape, sequence_shape, type_name, unwrap_optional

log = logging.getLogger(__name__)


def normalize_name(name: str) -> str:
    """
    Folds a member name so that ``firstName``, ``FirstName`` and ``first_name``
    compare equal.
    """
    return name.replace("_", "").casefold()


Tc = typing.TypeVar("Tc")


class DefaultCoercerImpl(Coercer):
    """
    Coerces between ``bool``, ``int``, ``float``, ``Decimal``, ``str``, ``bytes``,
    ``datetime``, ``date``, ``time``, ``UUID`` and enumerations.
    """

    _converters: typing.Mapping[type, typing.Callable[[typing.Any], typing.Any]]

    scalar_value_types: typing.ClassVar[typing.Tuple[type, ...]] = (
        bool,
        int,
        float,
        decimal.Decimal,
        str,
        bytes,
        bytearray,
        datetime.date,
        datetime.time,
        uuid.UUID,
        enum.Enum,
    )

    def supports(self, type_: typing.Any) -> bool:
        if not isinstance(type_, type) or typing.get_origin(type_) is not None:
            return False
        return type_ in self._converters or issubclass(type_, enum.Enum)

    def is_scalar_value(self, value: typing.Any) -> bool:
        return isinstance(value, self.scalar_value_types)

    def coerce(self, value: typing.Any, type_: typing.Type[Tc]) -> Tc:
        if type(value) is type_:
            return value
        if not self.supports(type_):
            raise CoercionError(value, type_, "unsupported scalar kind")
        try:
            if issubclass(type_, enum.Enum):
                return typing.cast(Tc, self._to_enum(value, type_))
            if isinstance(value, enum.Enum):
                value = value.value
            return self._converters[type_](value)
        except (ArithmeticError, TypeError, ValueError) as e:
            raise CoercionError(value, type_, str(e)) from e

    def _to_enum(self, value: typing.Any, type_: typing.Type[enum.Enum]) -> enum.Enum:
        if isinstance(value, type_):
            return value
        try:
            return type_(value)
        except ValueError:
            if isinstance(value, str) and value in type_.__members__:
                return type_[value]
            raise

    def _to_bool(self, value: typing.Any) -> bool:
        if isinstance(value, str):
            v = value.strip().lower()
            if v in ("true", "1", "yes", "on"):
                return True
            if v in ("false", "0", "no", "off"):
                return False
            raise ValueError(f"{value!r} is not a boolean literal")
        if isinstance(value, (bool, int, float, decimal.Decimal)):
            return bool(value)
        raise TypeError(f"unsupported conversion from {type(value)} to bool")

    def _to_int(self, value: typing.Any) -> int:
        if isinstance(value, int):
            return int(value)
        if isinstance(value, float) and not value.is_integer():
            raise ValueError(f"{value!r} is not integral")
        if isinstance(value, decimal.Decimal) and value != value.to_integral_value():
            raise ValueError(f"{value!r} is not integral")
        if isinstance(value, (float, decimal.Decimal)):
            return int(value)
        if isinstance(value, str):
            return int(value.strip())
        raise TypeError(f"unsupported conversion from {type(value)} to int")

    def _to_float(self, value: typing.Any) -> float:
        if isinstance(value, (int, float, decimal.Decimal)):
            return float(value)
        if isinstance(value, str):
            return float(value.strip())
        raise TypeError(f"unsupported conversion from {type(value)} to float")

    def _to_decimal(self, value: typing.Any) -> decimal.Decimal:
        if isinstance(value, bool):
            return decimal.Decimal(int(value))
        if isinstance(value, (int, decimal.Decimal)):
            return decimal.Decimal(value)
        if isinstance(value, (float, str)):
            return decimal.Decimal(str(value).strip())
        raise TypeError(f"unsupported conversion from {type(value)} to Decimal")

    def _to_str(self, value: typing.Any) -> str:
        if isinstance(value, (bytes, bytearray)):
            return value.decode("utf-8")
        if isinstance(value, (datetime.date, datetime.time)):
            return value.isoformat()
        if isinstance(value, (str, bool, int, float, decimal.Decimal, uuid.UUID)):
            return str(value)
        raise TypeError(f"unsupported conversion from {type(value)} to str")

    def _to_bytes(self, value: typing.Any) -> bytes:
        if isinstance(value, (bytes, bytearray)):
            return bytes(value)
        if isinstance(value, str):
            return value.encode("utf-8")
        raise TypeError(f"unsupported conversion from {type(value)} to bytes")

    def _to_datetime(self, value: typing.Any) -> datetime.datetime:
        if isinstance(value, datetime.datetime):
            return value
        if isinstance(value, datetime.date):
            return datetime.datetime.combine(value, datetime.time())
        if isinstance(value, str):
            return datetime.datetime.fromisoformat(value.strip())
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return datetime.datetime.fromtimestamp(value, tz=datetime.timezone.utc)
        raise TypeError(f"unsupported conversion from {type(value)} to datetime")

    def _to_date(self, value: typing.Any) -> datetime.date:
        if isinstance(value, datetime.datetime):
            return value.date()
        if isinstance(value, datetime.date):
            return value
        if isinstance(value, str):
            return datetime.date.fromisoformat(value.strip())
        raise TypeError(f"unsupported conversion from {type(value)} to date")

    def _to_time(self, value: typing.Any) -> datetime.time:
        if isinstance(value, datetime.datetime):
            return value.time()
        if isinstance(value, datetime.time):
            return value
        if isinstance(value, str):
            return datetime.time.fromisoformat(value.strip())
        raise TypeError(f"unsupported conversion from {type(value)} to time")

    def _to_uuid(self, value: typing.Any) -> uuid.UUID:
        if isinstance(value, uuid.UUID):
            return value
        if isinstance(value, str):
            return uuid.UUID(value.strip())
        if isinstance(value, (bytes, bytearray)):
            return uuid.UUID(bytes=bytes(value))
        raise TypeError(f"unsupported conversion from {type(value)} to UUID")

    def __init__(self):
        self._converters = {
            bool: self._to_bool,
            int: self._to_int,
            float: self._to_float,
            decimal.Decimal: self._to_decimal,
            str: self._to_str,
            bytes: self._to_bytes,
            datetime.datetime: self._to_datetime,
            datetime.date: self._to_date,
            datetime.time: self._to_time,
            uuid.UUID: self._to_uuid,
        }


def _is_class_var(type_: typing.Any) -> bool:
    return type_ is typing.ClassVar or typing.get_origin(type_) is typing.ClassVar


def _safe_type_hints(obj: typing.Any) -> typing.Dict[str, typing.Any]:
    try:
        return typing.get_type_hints(obj)
    except (AttributeError, NameError, TypeError) as e:
        log.debug("type hints of %r are unavailable (%s)", obj, e)
        return {}


class DefaultTypeDescriptorImpl(TypeDescriptor):
    """
    Describes plain classes, dataclasses and named tuples by reflection.

    The constructor is ``__init__`` (or ``__new__``) as reported by
    :py:func:`inspect.signature`; parameter types come from the class annotations
    first and from the constructor annotations otherwise.  Fields are the public
    class annotations and properties; a property without a setter, a field of a
    frozen dataclass and a named tuple field are read-only.
    Attributes that are only assigned inside ``__init__`` are not fields unless
    they are also annotated on the class.
    """

    def describe(self, type_: typing.Any) -> Option[TypeDescription]:
        if not isinstance(type_, type) or typing.get_origin(type_) is not None:
            return none()
        if (
            type_.__module__ == "builtins"
            or inspect.isabstract(type_)
            or issubclass(type_, enum.Enum)
            or getattr(type_, "_is_protocol", False)
        ):
            return none()
        hints = _safe_type_hints(type_)
        constructor = self._constructor(type_, hints)
        if constructor is None:
            return none()
        return some(TypeDescription(type_, [constructor], self._fields(type_, hints)))

    def _constructor(
        self, type_: type, hints: typing.Mapping[str, typing.Any]
    ) -> typing.Optional[ConstructorDescriptor]:
        try:
            signature = inspect.signature(type_)
        except (TypeError, ValueError):
            log.debug("no constructor signature available for %s", type_name(type_))
            return None
        init_hints = _safe_type_hints(type_.__init__) if "__init__" in vars(type_) else {}
        parameters: typing.List[ParameterDescriptor] = []
        for param in signature.parameters.values():
            if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
                continue
            has_default = param.default is not inspect.Parameter.empty
            if param.kind is inspect.Parameter.POSITIONAL_ONLY:
                if not has_default:
                    return None
                continue
            parameters.append(
                ParameterDescriptor(
                    param.name,
                    hints.get(param.name, init_hints.get(param.name, typing.Any)),
                    has_default,
                )
            )
        return ConstructorDescriptor(type_, parameters)

    def _fields(
        self, type_: type, hints: typing.Mapping[str, typing.Any]
    ) -> typing.List[FieldDescriptor]:
        dataclass_params = getattr(type_, "__dataclass_params__", None)
        read_only = (dataclass_params is not None and dataclass_params.frozen) or (
            issubclass(type_, tuple) and hasattr(type_, "_fields")
        )
        fields: typing.Dict[str, FieldDescriptor] = {}
        for name, hint in hints.items():
            if name.startswith("_") or _is_class_var(hint):
                continue
            fields[name] = FieldDescriptor(name, hint, writable=not read_only)
        for klass in reversed(type_.__mro__):
            for name, attr in vars(klass).items():
                if name.startswith("_") or not isinstance(attr, property):
                    continue
                fields[name] = FieldDescriptor(
                    name,
                    _safe_type_hints(attr.fget).get("return", typing.Any),
                    writable=attr.fset is not None,
                )
        return list(fields.values())

    def nullable_of(self, type_: typing.Any) -> Option[typing.Any]:
        underlying = unwrap_optional(type_)
        return none() if underlying is None else some(underlying)

    def sequence_of(self, type_: typing.Any) -> Option[SequenceShape]:
        shape = sequence_shape(type_)
        return none() if shape is None else some(SequenceShape(*shape))

    def dict_of(self, type_: typing.Any) -> Option[DictShape]:
        shape = dict_shape(type_)
        return none() if shape is None else some(DictShape(*shape))

    def zero_value(self, type_: typing.Any) -> Option[typing.Any]:
        if unwrap_optional(type_) is not None:
            return some(None)
        return none()


def default_resolvers(coercer: Coercer) -> typing.List[Resolver]:
    """
    Returns the built-in resolver chain, in priority order.
    """
    return [
        TerminalResolver(),
        NullableResolver(),
        SequenceResolver(),
        ObjectResolver(coercer),
    ]
