"""
The resolution engine turns a root ``(value, target_type)`` request into a
materialized instance.

The walk is iterative: an explicit stack holds three kinds of frames.

* A :py:class:`_Request` asks for a key to be resolved.  The resolver chain is
  consulted and, if it produces a :py:class:`Mapping`, an :py:class:`_Expand`
  frame is pushed.
* An :py:class:`_Expand` pushes a :py:class:`_Finalize` frame for its mapping,
  followed by one :py:class:`_Request` per dependency, so that the dependencies
  are processed first.
* A :py:class:`_Finalize` builds the :py:class:`Environment` from the cache and
  calls :py:meth:`Mapping.create`.

Every key is materialized at most once per walk; a request for a key that is
already cached, in flight or failed is dropped.  A request for a key that is in
flight is a back-reference: the dependent sees it as *deferred* and, if its
mapping allows it, is created without the value and patched afterwards by
:py:meth:`Mapping.complete`.  Dependents that cannot defer wait until the key
settles.  A dependent that copies the contents of a value still awaiting
completion is deferred the same way, so that it copies the completed value.

If a deferred dependency fails in the end and its dependent cannot do without
it, the dependent is discarded, together with every instance that was built on
it.  No instance holding an unfilled placeholder is ever returned.
"""
import dataclasses
import logging
import typing

from .exceptions import CyclicDependencyError
from .interfaces import Mapping, MappingContext, Resolver
from .models import Dependency, Environment, MappingKey
from .option import Option, none, some
from .utils import type_name

log = logging.getLogger(__name__)


@dataclasses.dataclass
class _Request:
    key: MappingKey


@dataclasses.dataclass
class _Expand:
    key: MappingKey
    mapping: Mapping


@dataclasses.dataclass
class _Finalize:
    key: MappingKey
    mapping: Mapping


@dataclasses.dataclass
class _Completion:
    key: MappingKey
    mapping: Mapping
    instance: typing.Any
    dependencies: typing.Sequence[Dependency]


_Frame = typing.Union[_Request, _Expand, _Finalize]


class Resolution:
    """
    The state of a single mapping call: the work stack and the resolution cache.
    A :py:class:`Resolution` is not reusable; create one per call.
    """

    ctx: MappingContext
    resolvers: typing.Sequence[Resolver]
    cache: typing.Dict[MappingKey, typing.Any]
    in_flight: typing.Set[MappingKey]
    failed: typing.Set[MappingKey]
    _consumers: typing.Dict[MappingKey, typing.List[MappingKey]]
    _pending: typing.Set[int]
    _stack: typing.List[_Frame]
    _waiting: typing.List[_Finalize]
    _completions: typing.List[_Completion]

    def run(self, value: typing.Any, target_type: typing.Any) -> Option[typing.Any]:
        """
        Resolves ``value`` to ``target_type``.

        :return: the instance, or absence if no mapping could be found.
        :raises CyclicDependencyError: if a cycle runs through dependencies that
                                       cannot be supplied after construction.
        """
        root = MappingKey(value, target_type)
        self._stack.append(_Request(root))
        self._drain()
        self._settle()
        self._complete()
        if root in self.cache:
            return some(self.cache[root])
        return none()

    def _drain(self) -> None:
        while self._stack:
            frame = self._stack.pop()
            if isinstance(frame, _Request):
                self._request(frame)
            elif isinstance(frame, _Expand):
                self._expand(frame)
            else:
                self._finalize(frame)

    def _resolve_mapping(self, key: MappingKey) -> Option[Mapping]:
        for resolver in self.resolvers:
            for mappable in resolver.resolve(key.source):
                mapping = mappable.to(self.ctx, key.target_type)
                if mapping.is_some:
                    return mapping
        return none()

    def _request(self, frame: _Request) -> None:
        key = frame.key
        if key in self.cache or key in self.in_flight or key in self.failed:
            return
        if key.source is None:
            self.cache[key] = None
            return
        mapping = self._resolve_mapping(key)
        if mapping.is_none:
            log.debug(
                "no resolver maps %s to %s", type(key.source).__qualname__, type_name(key.target_type)
            )
            self.failed.add(key)
            return
        self.in_flight.add(key)
        self._stack.append(_Expand(key, mapping.get()))

    def _expand(self, frame: _Expand) -> None:
        self._stack.append(_Finalize(frame.key, frame.mapping))
        for dep in reversed(frame.mapping.dependencies()):
            self._stack.append(_Request(dep.key))

    def _environment(
        self, mapping: Mapping, dependencies: typing.Iterable[Dependency]
    ) -> typing.Tuple[Environment, typing.List[Dependency]]:
        entries: typing.List[typing.Tuple[str, Option[typing.Any]]] = []
        deferred: typing.List[Dependency] = []
        for dep in dependencies:
            key = dep.key
            if key in self.cache:
                value = self.cache[key]
                if (
                    id(value) in self._pending
                    and mapping.copies(dep.name)
                    and mapping.can_defer(dep.name)
                ):
                    deferred.append(dep)
                    entries.append((dep.name, none()))
                else:
                    entries.append((dep.name, some(value)))
            else:
                if key in self.in_flight:
                    deferred.append(dep)
                entries.append((dep.name, none()))
        env = Environment(
            entries, (dep.name for dep in deferred), normalizer=self.ctx.normalize_name
        )
        return env, deferred

    def _finalize(self, frame: _Finalize) -> bool:
        """
        :return: ``False`` if the frame has to wait for a back-reference.
        """
        mapping = frame.mapping
        dependencies = mapping.dependencies()
        env, deferred = self._environment(mapping, dependencies)
        blocking = [dep for dep in deferred if not mapping.can_defer(dep.name)]
        if blocking:
            log.debug(
                "%s waits for %s",
                frame.key,
                ", ".join(repr(dep.key) for dep in blocking),
            )
            self._waiting.append(frame)
            return False
        self.in_flight.discard(frame.key)
        result = mapping.create(env)
        if result.is_none:
            self.failed.add(frame.key)
            return True
        instance = result.get()
        self.cache[frame.key] = instance
        deferred_names = {dep.name for dep in deferred}
        for dep in dependencies:
            if dep.name not in deferred_names and dep.key in self.cache:
                self._consumers.setdefault(dep.key, []).append(frame.key)
        if deferred:
            log.debug(
                "%s created with deferred dependencies %s",
                frame.key,
                ", ".join(dep.name for dep in deferred),
            )
            self._completions.append(_Completion(frame.key, mapping, instance, deferred))
            self._pending.add(id(instance))
        return True

    def _settle(self) -> None:
        while self._waiting:
            waiting, self._waiting = self._waiting, []
            progressed = False
            for frame in waiting:
                if self._finalize(frame):
                    progressed = True
            if not progressed:
                raise CyclicDependencyError([frame.key for frame in self._waiting])

    def _invalidate(self, key: MappingKey) -> None:
        """
        Discards a cached instance and, transitively, every instance built on it.
        """
        keys = [key]
        while keys:
            k = keys.pop()
            if k not in self.cache:
                continue
            log.debug("%s discarded", k)
            del self.cache[k]
            self.failed.add(k)
            keys.extend(self._consumers.pop(k, ()))

    def _complete(self) -> None:
        for completion in self._completions:
            self._pending.discard(id(completion.instance))
            if completion.key not in self.cache:
                continue
            env = Environment(
                (
                    (dep.name, some(self.cache[dep.key]) if dep.key in self.cache else none())
                    for dep in completion.dependencies
                ),
                normalizer=self.ctx.normalize_name,
            )
            if not completion.mapping.complete(completion.instance, env):
                self._invalidate(completion.key)
                continue
            for dep in completion.dependencies:
                if dep.key in self.cache:
                    self._consumers.setdefault(dep.key, []).append(completion.key)

    def __init__(self, ctx: MappingContext, resolvers: typing.Sequence[Resolver]):
        self.ctx = ctx
        self.resolvers = resolvers
        self.cache = {}
        self.in_flight = set()
        self.failed = set()
        self._consumers = {}
        self._pending = set()
        self._stack = []
        self._waiting = []
        self._completions = []
