import dataclasses
import datetime
import decimal
import enum
import itertools
import types
import typing

import pytest

from ..exceptions import CoercionError, UnmappableError
from ..interfaces import Mappable, Resolver
from ..mapper import Mapper, map_to
from ..option import Option, none, some
from ..resolvers import MappableDict, MappableScalar


@dataclasses.dataclass
class Person:
    first_name: typing.Optional[str] = None
    last_name: typing.Optional[str] = None
    parent: typing.Optional["Person"] = None
    child: typing.Optional["Person"] = None


@dataclasses.dataclass
class Contact:
    numbers: typing.Optional[typing.List[decimal.Decimal]] = None
    names: typing.Optional[typing.Iterable[int]] = None


class Container:
    def __init__(self):
        self._items: typing.List[int] = []

    @property
    def items(self) -> typing.List[int]:
        return self._items


class Money:
    def __init__(self, amount: decimal.Decimal, currency: str = "EUR"):
        self.amount = amount
        self.currency = currency


class Tag:
    def __init__(self, name: str, note: typing.Optional[str]):
        self.name = name
        self.note = note


class Priority(enum.Enum):
    LOW = 1
    HIGH = 2


@dataclasses.dataclass
class Ticket:
    title: str
    priority: Priority = Priority.LOW
    labels: typing.Set[str] = dataclasses.field(default_factory=set)
    attributes: typing.Dict[str, int] = dataclasses.field(default_factory=dict)
    due: typing.Optional[datetime.date] = None


class Badge:
    def __init__(self, level: int):
        if level < 0:
            raise ValueError("level must not be negative")
        self.level = level


@dataclasses.dataclass
class Profile:
    name: str = ""
    badge: typing.Optional[Badge] = None


class Settings:
    timeout: int

    def __init__(self):
        self.timeout = 30
        self.retries = 3


class GraphSON:
    def __init__(self, properties=None, edges=None):
        self.properties = properties or {}
        self.edges = edges or {}


class GraphSONResolver(Resolver):
    def resolve(self, value: typing.Any) -> Option[Mappable]:
        if isinstance(value, GraphSON):
            return some(
                MappableDict(list(itertools.chain(value.properties.items(), value.edges.items())))
            )
        return none()


class IntAsNameResolver(Resolver):
    def resolve(self, value: typing.Any) -> Option[Mappable]:
        if isinstance(value, int) and not isinstance(value, bool):
            return some(MappableScalar(f"Ibrahim {value}"))
        return none()


@pytest.fixture
def target():
    return Mapper()


class TestScalars:
    @pytest.mark.parametrize(
        ("value", "type_", "expected"),
        [
            ("123", int, 123),
            (1, float, 1.0),
            ("1", decimal.Decimal, decimal.Decimal("1")),
            (decimal.Decimal(1), float, 1.0),
            ("true", bool, True),
            (2, Priority, Priority.HIGH),
            (1, typing.Optional[float], 1.0),
            ("2020-01-02", typing.Optional[datetime.date], datetime.date(2020, 1, 2)),
        ],
    )
    def test_coercion(self, target, value, type_, expected):
        assert target.map(value, type_) == some(expected)

    def test_datetime(self, target):
        now = datetime.datetime.now()
        assert target.map(now.isoformat(), datetime.datetime) == some(now)

    def test_none(self, target):
        assert target.map(None, typing.Optional[int]) == some(None)
        assert target.map(None, Person) == some(None)

    def test_failed_coercion_is_absent(self, target):
        assert target.map("abc", int) == none()

    def test_any_passes_through(self, target):
        value = {"a": 1}
        assert target.map(value, typing.Any).get() is value
        assert target.map(value, object).get() is value

    @pytest.mark.parametrize(
        "type_", [typing.Callable[[int], int], typing.Union[int, str], type, 42]
    )
    def test_unsupported_target_is_absent(self, target, type_):
        assert target.map("1", type_) == none()

    def test_map_string_to(self, target):
        assert target.map_string_to("12", int) == 12
        with pytest.raises(CoercionError):
            target.map_string_to("twelve", int)


class TestObjects:
    def test_dict_to_object(self, target):
        result = target.map(
            {"firstName": "Ibrahim", "lastName": "ben Salah", "parent": {"firstName": "MFadel"}},
            Person,
        )
        assert result == some(
            Person(first_name="Ibrahim", last_name="ben Salah", parent=Person(first_name="MFadel"))
        )

    def test_object_to_object(self, target):
        source = types.SimpleNamespace(
            firstName="Ibrahim",
            lastName="ben Salah",
            Parent=types.SimpleNamespace(firstName="Mfadel", lastName="ben Salah"),
        )
        result = target.map_to(source, Person)
        assert result.first_name == "Ibrahim"
        assert result.last_name == "ben Salah"
        assert result.parent == Person(first_name="Mfadel", last_name="ben Salah")
        assert result.child is None

    def test_dataclass_to_dataclass(self, target):
        @dataclasses.dataclass
        class PersonSummary:
            first_name: str
            parent: typing.Optional[typing.Any] = None

        result = target.map_to(Person(first_name="Ibrahim", last_name="ben Salah"), PersonSummary)
        assert result == PersonSummary(first_name="Ibrahim")

    def test_names_are_matched_loosely(self, target):
        result = target.map_to({"FIRST_NAME": "Ibrahim", "LastName": "ben Salah"}, Person)
        assert result == Person(first_name="Ibrahim", last_name="ben Salah")

    def test_custom_name_normalizer(self):
        target = Mapper(name_normalizer=lambda name: name)
        result = target.map_to({"firstName": "Ibrahim", "last_name": "ben Salah"}, Person)
        assert result == Person(last_name="ben Salah")

    def test_default_mapper_matches_names(self):
        mapper = Mapper()
        assert mapper.normalize_name("First_Name") == mapper.normalize_name("firstName")
        result = mapper.map({"first_name": "Ibrahim", "LastName": "ben Salah"}, Person)
        assert result == some(Person(first_name="Ibrahim", last_name="ben Salah"))

    def test_instance_of_target_type_passes_through(self, target):
        person = Person(first_name="Ibrahim")
        assert target.map_to(person, Person) is person

    def test_constructor_arguments(self, target):
        money = target.map_to({"amount": "12.50"}, Money)
        assert money.amount == decimal.Decimal("12.50")
        assert money.currency == "EUR"

    def test_missing_required_argument_is_absent(self, target):
        assert target.map({"currency": "USD"}, Money) == none()
        assert target.map({"amount": "twelve"}, Money) == none()

    def test_missing_optional_argument_is_none(self, target):
        tag = target.map_to({"name": "urgent"}, Tag)
        assert tag.name == "urgent"
        assert tag.note is None

    def test_unmappable_nested_value_falls_back_to_default(self, target):
        assert target.map_to({"firstName": "Ibrahim", "parent": 42}, Person) == Person(
            first_name="Ibrahim"
        )

    def test_failing_constructor_is_absent(self, target):
        assert target.map({"level": -1}, Badge) == none()
        assert target.map_to({"level": 2}, Badge).level == 2

    def test_failing_constructor_in_optional_subtree(self, target):
        result = target.map_to({"name": "x", "badge": {"level": -1}}, Profile)
        assert result == Profile(name="x")

    def test_attributes_set_in_init_are_not_populated(self, target):
        settings = target.map_to({"timeout": "10", "retries": "5"}, Settings)
        assert settings.timeout == 10
        assert settings.retries == 3

    def test_scalar_source_cannot_populate_object(self, target):
        assert target.map(42, Person) == none()

    def test_containers_enums_and_dates(self, target):
        ticket = target.map_to(
            {
                "title": "Broken build",
                "priority": "HIGH",
                "labels": ["ci", "ci", "infra"],
                "attributes": {"retries": "3"},
                "due": "2021-03-04",
            },
            Ticket,
        )
        assert ticket == Ticket(
            title="Broken build",
            priority=Priority.HIGH,
            labels={"ci", "infra"},
            attributes={"retries": 3},
            due=datetime.date(2021, 3, 4),
        )

    def test_read_only_collection_is_filled(self, target):
        container = target.map_to({"items": ("1", 2, 3.0)}, Container)
        assert container.items == [1, 2, 3]


class TestSequences:
    def test_sequences(self, target):
        source = types.SimpleNamespace(
            numbers=[decimal.Decimal(1), decimal.Decimal(2), decimal.Decimal(3)],
            names=["1", "2", "3"],
        )
        result = target.map_to(source, Contact)
        assert result.numbers == [decimal.Decimal(1), decimal.Decimal(2), decimal.Decimal(3)]
        assert list(result.names) == [1, 2, 3]

    @pytest.mark.parametrize(
        ("value", "type_", "expected"),
        [
            (["1", 2], typing.List[int], [1, 2]),
            (["1", 2], typing.Tuple[int, ...], (1, 2)),
            (["a", "a"], typing.FrozenSet[str], frozenset({"a"})),
            ("abc", typing.List[str], ["abc"]),
            (5, typing.List[int], [5]),
            ({"firstName": "Ibrahim"}, typing.List[Person], [Person(first_name="Ibrahim")]),
            ((x for x in "12"), typing.List[int], [1, 2]),
            ([], typing.List[int], []),
        ],
    )
    def test_sequence(self, target, value, type_, expected):
        assert target.map(value, type_) == some(expected)

    def test_unmappable_element_is_absent(self, target):
        assert target.map(["1", "x"], typing.List[int]) == none()

    def test_dict(self, target):
        assert target.map({"a": "1", "b": 2}, typing.Dict[str, int]) == some({"a": 1, "b": 2})
        assert target.map(types.SimpleNamespace(a="1"), typing.Mapping[str, int]) == some(
            {"a": 1}
        )


class TestCustomResolvers:
    def test_graphson(self):
        target = Mapper(GraphSONResolver())
        source = GraphSON(
            properties={"firstName": "Ibrahim", "lastName": "ben Salah"},
            edges={"parent": GraphSON(properties={"firstName": "MFadel"})},
        )
        assert target.map_to(source, Person) == Person(
            first_name="Ibrahim", last_name="ben Salah", parent=Person(first_name="MFadel")
        )

    def test_custom_resolver_takes_precedence(self):
        target = Mapper(IntAsNameResolver())
        assert target.map(123, str) == some("Ibrahim 123")
        result = target.map_to(
            types.SimpleNamespace(firstName=123, Parent=Contact()), Person
        )
        assert result.first_name == "Ibrahim 123"
        assert result.parent == Person()

    def test_module_level_map_to(self):
        assert map_to(123, str, IntAsNameResolver()) == "Ibrahim 123"
        assert map_to("123", int) == 123


class TestErrors:
    def test_map_to_raises_on_absence(self, target):
        with pytest.raises(UnmappableError) as excinfo:
            target.map_to("abc", int)
        assert excinfo.value.value == "abc"
        assert excinfo.value.target_type is int
        assert "int" in str(excinfo.value)

    def test_map_returns_absence(self, target):
        assert target.map(object(), int) == none()
