"""
Plan computation against a persisted state snapshot.

The synthesizer only describes the network; the engine owns state. This module
holds the pieces that make that description safe to re-apply:

- snapshot(): entity id -> (kind, AZ index, edges, attributes), JSON serializable
- diff(): what must change to move from one snapshot to another. Any change
  inside AZ bundle i replaces the whole bundle, so a subnet is never resized
  in place. Shared entities that depend on a replaced member are updated.
  Unchanged input yields an empty ChangeSet.
- creation_waves() / teardown_waves(): dependency layers. Entities of
  different AZ bundles land in the same wave and can be created concurrently.
  Teardown removes endpoints, routes and associations first and the VPC last.
- retry_scope(): after a partial apply, the subset worth retrying: only the
  bundles whose failures were transient. Succeeded bundles are left alone.
"""

import json
from dataclasses import dataclass, field
from graphlib import CycleError, TopologicalSorter
from typing import Any, Iterable, Mapping, Sequence

from assistant_iac.exceptions import ProvisionError, TopologyError
from assistant_iac.topology.models import entity_attributes
from assistant_iac.utils.logger import get_logger

logger = get_logger(__name__)

SNAPSHOT_VERSION = 1


@dataclass(frozen=True)
class EntityState:
    """What the engine records for one materialized entity."""
    kind: str
    index: int | None
    depends_on: tuple[str, ...]
    attributes: Mapping[str, Any]


@dataclass(frozen=True)
class StateSnapshot:
    """Ordered map of entity id to recorded state."""
    entities: Mapping[str, EntityState] = field(default_factory=dict)

    def __contains__(self, entity_id: str) -> bool:
        return entity_id in self.entities

    def __len__(self) -> int:
        return len(self.entities)

    def dump(self) -> str:
        """Serialize to JSON."""
        payload = {
            "version": SNAPSHOT_VERSION,
            "entities": {
                entity_id: {
                    "kind": state.kind,
                    "index": state.index,
                    "depends_on": list(state.depends_on),
                    "attributes": dict(state.attributes),
                }
                for entity_id, state in self.entities.items()
            },
        }
        return json.dumps(payload, indent=2)

    @classmethod
    def load(cls, text: str) -> "StateSnapshot":
        """Deserialize a snapshot written by dump()."""
        payload = json.loads(text)
        version = payload.get("version")
        if version != SNAPSHOT_VERSION:
            raise ValueError(f"Unsupported snapshot version: {version!r}")
        return cls({
            entity_id: EntityState(
                kind=raw["kind"],
                index=raw["index"],
                depends_on=tuple(raw["depends_on"]),
                attributes=raw["attributes"],
            )
            for entity_id, raw in payload["entities"].items()
        })


def snapshot(*sources: Any) -> StateSnapshot:
    """
    Record the entities of one or more Topology / SecurityBoundary values.

    Attributes go through a JSON round trip so a fresh snapshot compares equal
    to one loaded from disk.
    """
    entities: dict[str, EntityState] = {}
    for source in sources:
        for entity in source.entities():
            entities[entity.id] = EntityState(
                kind=entity.kind,
                index=getattr(entity, "index", None),
                depends_on=tuple(entity.depends_on),
                attributes=json.loads(json.dumps(entity_attributes(entity))),
            )
    return StateSnapshot(entities)


@dataclass(frozen=True)
class ChangeSet:
    """
    Changes needed to converge current state to desired state.

    Attributes:
        create: Ids to create
        delete: Ids to delete
        replace: Ids to delete and recreate (members of a touched AZ bundle)
        update: Shared ids whose attributes changed in place
        bundles: AZ indices whose bundle is added, removed or replaced
        indices: AZ index of every id mentioned above (None for shared ids)
    """
    create: tuple[str, ...] = ()
    delete: tuple[str, ...] = ()
    replace: tuple[str, ...] = ()
    update: tuple[str, ...] = ()
    bundles: tuple[int, ...] = ()
    indices: Mapping[str, int | None] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not (self.create or self.delete or self.replace or self.update)

    def summary(self) -> dict[str, int]:
        return {
            "create": len(self.create),
            "delete": len(self.delete),
            "replace": len(self.replace),
            "update": len(self.update),
        }

    def restrict(self, keep: Iterable[str]) -> "ChangeSet":
        """Sub-change-set limited to the given ids."""
        keep = set(keep)
        indices = {i: idx for i, idx in self.indices.items() if i in keep}
        return ChangeSet(
            create=tuple(i for i in self.create if i in keep),
            delete=tuple(i for i in self.delete if i in keep),
            replace=tuple(i for i in self.replace if i in keep),
            update=tuple(i for i in self.update if i in keep),
            bundles=tuple(b for b in self.bundles if b in set(indices.values())),
            indices=indices,
        )


def _differs(a: EntityState, b: EntityState) -> bool:
    return (a.kind, a.index, a.depends_on, dict(a.attributes)) != (
        b.kind, b.index, b.depends_on, dict(b.attributes)
    )


def diff(desired: StateSnapshot, current: StateSnapshot | None = None) -> ChangeSet:
    """
    Compute the changes that turn `current` into `desired`.

    Args:
        desired: Snapshot of the freshly synthesized entities
        current: Snapshot kept by the engine, None before the first apply

    Returns:
        ChangeSet; empty when both snapshots describe the same entities
    """
    current = current or StateSnapshot()
    want, have = desired.entities, current.entities

    touched: set[int] = set()
    changed_shared: list[str] = []
    for entity_id, state in want.items():
        old = have.get(entity_id)
        if old is not None and not _differs(state, old):
            continue
        if state.index is not None:
            touched.add(state.index)
        if old is not None and old.index is not None:
            touched.add(old.index)
        if old is not None and state.index is None:
            changed_shared.append(entity_id)
    for entity_id, state in have.items():
        if entity_id not in want and state.index is not None:
            touched.add(state.index)

    def in_touched(state: EntityState) -> bool:
        return state.index is not None and state.index in touched

    create = tuple(i for i, s in want.items() if i not in have)
    delete = tuple(i for i, s in have.items() if i not in want)
    replace = tuple(i for i, s in want.items() if i in have and in_touched(s))

    # Shared entities pointing at a recreated bundle member must pick up its new provider id
    recreated = set(replace)
    for entity_id, state in want.items():
        if (state.index is None and entity_id in have and entity_id not in changed_shared
                and recreated.intersection(state.depends_on)):
            changed_shared.append(entity_id)
    update = tuple(changed_shared)

    indices: dict[str, int | None] = {}
    for entity_id in (*create, *replace, *update):
        indices[entity_id] = want[entity_id].index
    for entity_id in delete:
        indices[entity_id] = have[entity_id].index

    change_set = ChangeSet(
        create=create,
        delete=delete,
        replace=replace,
        update=update,
        bundles=tuple(sorted(touched)),
        indices=indices,
    )
    logger.info("Plan: %s, bundles touched %s", change_set.summary(), list(change_set.bundles))
    return change_set


def _waves(graph: Mapping[str, Iterable[str]], order: Sequence[str]) -> list[list[str]]:
    position = {entity_id: i for i, entity_id in enumerate(order)}
    sorter = TopologicalSorter(graph)
    try:
        sorter.prepare()
    except CycleError as e:
        raise TopologyError(
            "Entity dependencies contain a cycle",
            invariant="acyclic",
            details={"cycle": list(e.args[1])},
        ) from e

    waves: list[list[str]] = []
    while sorter.is_active():
        ready = sorted(sorter.get_ready(), key=lambda i: position.get(i, len(position)))
        waves.append(ready)
        sorter.done(*ready)
    return waves


def _dependency_graph(entities: Iterable[Any]) -> tuple[dict[str, tuple[str, ...]], list[str]]:
    graph: dict[str, tuple[str, ...]] = {}
    for entity in entities:
        if entity.id in graph:
            raise TopologyError(
                f"Entity id {entity.id} is defined more than once",
                invariant="unique-ids",
                entity_id=entity.id,
            )
        graph[entity.id] = tuple(entity.depends_on)
    for entity_id, deps in graph.items():
        missing = [d for d in deps if d not in graph]
        if missing:
            raise TopologyError(
                f"{entity_id} depends on unknown entities {missing}",
                invariant="dangling-edge",
                entity_id=entity_id,
            )
    return graph, list(graph)


def creation_waves(entities: Iterable[Any]) -> list[list[str]]:
    """
    Group entity ids into layers that can be created in order.

    Every id in a wave depends only on ids of earlier waves, so a wave may be
    materialized concurrently.
    """
    graph, order = _dependency_graph(entities)
    return _waves(graph, order)


def teardown_waves(entities: Iterable[Any]) -> list[list[str]]:
    """Group entity ids into layers for destruction, dependents before dependencies."""
    graph, order = _dependency_graph(entities)
    dependents: dict[str, list[str]] = {entity_id: [] for entity_id in graph}
    for entity_id, deps in graph.items():
        for dep in deps:
            dependents[dep].append(entity_id)
    return _waves(dependents, order)


def teardown_order(entities: Iterable[Any]) -> list[str]:
    """Flat destruction order: endpoints, routes and associations first, VPC last."""
    return [entity_id for wave in teardown_waves(entities) for entity_id in wave]


@dataclass(frozen=True)
class RetryScope:
    """Outcome of a partially failed apply."""
    change_set: ChangeSet
    permanent: tuple[ProvisionError, ...]

    @property
    def retryable(self) -> bool:
        return not self.change_set.is_empty

    def raise_for_permanent(self) -> None:
        """Re-raise the first permanent failure unchanged, if there is one."""
        if self.permanent:
            raise self.permanent[0]


def retry_scope(change_set: ChangeSet, failures: Sequence[ProvisionError]) -> RetryScope:
    """
    Work out what to retry after some entities failed to materialize.

    Transient failures schedule their whole AZ bundle again (or just the
    shared entity, for shared failures). Permanent failures are logged and
    returned unchanged in RetryScope.permanent, never retried; callers
    surface them with RetryScope.raise_for_permanent(). Entities of bundles
    that did not fail are excluded either way.

    Args:
        change_set: The change set that was being applied
        failures: Errors reported by the engine, one per failed entity

    Returns:
        RetryScope with the restricted change set and the permanent errors
    """
    transient = [f for f in failures if f.transient]
    permanent = tuple(f for f in failures if not f.transient)

    failed_bundles = {f.bundle_index for f in transient if f.bundle_index is not None}
    failed_shared = {f.entity_id for f in transient if f.bundle_index is None}
    keep = [
        entity_id for entity_id, index in change_set.indices.items()
        if (index is not None and index in failed_bundles) or entity_id in failed_shared
    ]

    for failure in permanent:
        logger.error("Permanent provisioning failure on %s: %s", failure.entity_id, failure)
    scope = RetryScope(change_set=change_set.restrict(keep), permanent=permanent)
    logger.info(
        "Retry scope: bundles %s, %d shared entities, %d permanent failure(s)",
        sorted(failed_bundles), len(failed_shared), len(permanent),
    )
    return scope
