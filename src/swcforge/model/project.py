"""ProjectGraph - The live, identified architecture model.

The graph owns every top-level collection of a project (SWCs, interfaces,
data types, the data element catalog, connections and ECU compositions),
assigns identities, keeps cross references resolvable and removes
dependents when an entity is deleted.

All public operations hold a re-entrant lock for their full duration.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from swcforge.core import naming
from swcforge.core.models import (
    AccessMode,
    AccessType,
    InterfaceType,
    PortDirection,
    RunnableType,
    SwcCategory,
)
from swcforge.model.entities import (
    DATA_TYPE_CATEGORIES,
    SWC,
    AccessPoint,
    DataElement,
    DataType,
    ECUComposition,
    ECUConnector,
    Interface,
    Port,
    RecordElement,
    Runnable,
    SWCConnection,
    SWCInstance,
    entity_state,
    new_id,
)
from swcforge.model.mutations import (
    MutationEntry,
    MutationLog,
    UnresolvedReference,
    UnresolvedReferenceError,
)
from swcforge.model.validation import ValidationResult, validate_project
from swcforge.synthesis.artifacts import ArtifactSet, DataElementArtifact

logger = logging.getLogger(__name__)


def _mirrored_props(type_ref: str) -> dict[str, str]:
    return {"base_type_ref": type_ref, "implementation_data_type_ref": type_ref}


def _element_from_artifact(artifact: DataElementArtifact) -> DataElement:
    return DataElement(
        name=artifact.name,
        application_data_type_ref=artifact.application_data_type_ref,
        category=artifact.category,
        description=artifact.description,
        sw_data_def_props=dict(artifact.sw_data_def_props),
    )


@dataclass
class _IntegrationPlan:
    """Entities built during resolution, attached only once everything resolved."""

    swcs: list[SWC] = field(default_factory=list)
    runnables: list[Runnable] = field(default_factory=list)
    ports: list[Port] = field(default_factory=list)
    access_points: list[tuple[Runnable, AccessPoint]] = field(default_factory=list)
    interfaces: list[Interface] = field(default_factory=list)
    data_types: list[DataType] = field(default_factory=list)
    data_elements: list[DataElement] = field(default_factory=list)
    composition: Optional[ECUComposition] = None
    new_composition: bool = False
    instances: list[SWCInstance] = field(default_factory=list)
    unresolved: list[UnresolvedReference] = field(default_factory=list)

    def added(self) -> dict[str, int]:
        return {
            "swcs": len(self.swcs),
            "runnables": len(self.runnables),
            "ports": len(self.ports),
            "access_points": len(self.access_points),
            "interfaces": len(self.interfaces),
            "data_types": len(self.data_types),
            "data_elements": len(self.data_elements),
            "ecu_compositions": 1 if self.new_composition else 0,
            "swc_instances": len(self.instances),
        }


class ProjectGraph:
    """Identified AUTOSAR project model with referential integrity.

    Mutations return a MutationEntry (also appended to mutation_log).
    Conventions:
        - duplicate name in scope: ValueError
        - unknown id: KeyError
        - reference that does not resolve: UnresolvedReferenceError
    """

    def __init__(self, name: str = "Untitled", autosar_version: str = "4.3.1") -> None:
        self.id = new_id()
        self.name = name
        self.autosar_version = autosar_version
        self._swcs: dict[str, SWC] = {}
        self._interfaces: dict[str, Interface] = {}
        self._data_types: dict[str, DataType] = {}
        self._data_elements: dict[str, DataElement] = {}
        self._connections: dict[str, SWCConnection] = {}
        self._compositions: dict[str, ECUComposition] = {}
        self._mutation_log = MutationLog()
        self._lock = threading.RLock()

    # ─────────────────────────────────────────────────────────────────────────
    # Lookups
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def mutation_log(self) -> MutationLog:
        return self._mutation_log

    @property
    def lock(self):
        """Re-entrant lock held by every operation; hold it to read a consistent graph."""
        return self._lock

    def iter_swcs(self) -> Iterator[SWC]:
        yield from list(self._swcs.values())

    def iter_ports(self) -> Iterator[Port]:
        for swc in self.iter_swcs():
            yield from list(swc.ports)

    def iter_runnables(self) -> Iterator[Runnable]:
        for swc in self.iter_swcs():
            yield from list(swc.runnables)

    def iter_access_points(self) -> Iterator[AccessPoint]:
        for runnable in self.iter_runnables():
            yield from list(runnable.access_points)

    def iter_interfaces(self) -> Iterator[Interface]:
        yield from list(self._interfaces.values())

    def iter_data_types(self) -> Iterator[DataType]:
        yield from list(self._data_types.values())

    def iter_data_elements(self, include_embedded: bool = False) -> Iterator[DataElement]:
        """Catalog data elements, optionally followed by interface-embedded ones."""
        yield from list(self._data_elements.values())
        if include_embedded:
            for interface in self.iter_interfaces():
                yield from list(interface.data_elements)

    def iter_connections(self) -> Iterator[SWCConnection]:
        yield from list(self._connections.values())

    def iter_ecu_compositions(self) -> Iterator[ECUComposition]:
        yield from list(self._compositions.values())

    def iter_swc_instances(self) -> Iterator[SWCInstance]:
        for composition in self.iter_ecu_compositions():
            yield from list(composition.swc_instances)

    def iter_ecu_connectors(self) -> Iterator[ECUConnector]:
        for composition in self.iter_ecu_compositions():
            yield from list(composition.connectors)

    def counts(self) -> dict[str, int]:
        """Number of entities per kind (catalog data elements only)."""
        return {
            "swcs": len(self._swcs),
            "ports": sum(1 for _ in self.iter_ports()),
            "interfaces": len(self._interfaces),
            "data_types": len(self._data_types),
            "data_elements": len(self._data_elements),
            "runnables": sum(1 for _ in self.iter_runnables()),
            "access_points": sum(1 for _ in self.iter_access_points()),
            "connections": len(self._connections),
            "ecu_compositions": len(self._compositions),
            "swc_instances": sum(1 for _ in self.iter_swc_instances()),
            "ecu_connectors": sum(1 for _ in self.iter_ecu_connectors()),
        }

    def find_swc(self, swc_id: str) -> Optional[SWC]:
        return self._swcs.get(swc_id)

    def find_swc_by_name(self, name: str) -> Optional[SWC]:
        """Find an SWC by canonical name (case and suffix casing ignored)."""
        key = naming.component_key(name)
        return next((s for s in self._swcs.values() if naming.component_key(s.name) == key), None)

    def find_port(self, port_id: str) -> Optional[Port]:
        return next((p for p in self.iter_ports() if p.id == port_id), None)

    def find_port_by_name(self, swc_id: str, name: str) -> Optional[Port]:
        swc = self._swcs.get(swc_id)
        return swc.find_port(name) if swc else None

    def find_runnable(self, runnable_id: str) -> Optional[Runnable]:
        return next((r for r in self.iter_runnables() if r.id == runnable_id), None)

    def find_runnable_by_name(self, swc_id: str, name: str) -> Optional[Runnable]:
        swc = self._swcs.get(swc_id)
        return swc.find_runnable(name) if swc else None

    def find_access_point(self, access_point_id: str) -> Optional[AccessPoint]:
        return next((a for a in self.iter_access_points() if a.id == access_point_id), None)

    def find_interface(self, interface_id: str) -> Optional[Interface]:
        return self._interfaces.get(interface_id)

    def find_interface_by_name(self, name: str) -> Optional[Interface]:
        key = naming.name_key(name)
        return next((i for i in self._interfaces.values() if naming.name_key(i.name) == key), None)

    def find_data_type(self, data_type_id: str) -> Optional[DataType]:
        return self._data_types.get(data_type_id)

    def find_data_type_by_name(self, name: str) -> Optional[DataType]:
        key = naming.name_key(name)
        return next((d for d in self._data_types.values() if naming.name_key(d.name) == key), None)

    def find_data_element(self, element_id: str) -> Optional[DataElement]:
        """Find a catalog or interface-embedded data element by id."""
        return next(
            (e for e in self.iter_data_elements(include_embedded=True) if e.id == element_id),
            None,
        )

    def find_data_element_by_name(self, name: str) -> Optional[DataElement]:
        """Find a catalog data element by name."""
        key = naming.name_key(name)
        return next(
            (e for e in self._data_elements.values() if naming.name_key(e.name) == key), None
        )

    def find_connection(self, connection_id: str) -> Optional[SWCConnection]:
        return self._connections.get(connection_id)

    def find_ecu_composition(self, composition_id: str) -> Optional[ECUComposition]:
        return self._compositions.get(composition_id)

    def find_ecu_composition_by_name(self, name: str) -> Optional[ECUComposition]:
        key = naming.name_key(name)
        return next(
            (c for c in self._compositions.values() if naming.name_key(c.name) == key), None
        )

    def find_swc_instance(self, instance_id: str) -> Optional[SWCInstance]:
        return next((i for i in self.iter_swc_instances() if i.id == instance_id), None)

    def find_ecu_connector(self, connector_id: str) -> Optional[ECUConnector]:
        return next((c for c in self.iter_ecu_connectors() if c.id == connector_id), None)

    # ─────────────────────────────────────────────────────────────────────────
    # Validation
    # ─────────────────────────────────────────────────────────────────────────

    def validate(self) -> ValidationResult:
        """Check every invariant. Never mutates."""
        with self._lock:
            return validate_project(self)

    def _validate_after(self, operation: str) -> None:
        result = validate_project(self)
        if not result.is_valid:
            logger.warning(
                "Validation failed after %s: %s", operation, "; ".join(result.errors)
            )

    # ─────────────────────────────────────────────────────────────────────────
    # Integration
    # ─────────────────────────────────────────────────────────────────────────

    def integrate(self, artifacts: ArtifactSet) -> MutationEntry:
        """Merge a synthesized ArtifactSet into the graph.

        Every name reference of the batch is resolved (against the batch
        itself and the existing graph) before anything is attached.
        Entities whose name already exists in scope are skipped. Data
        types are created for every referenced type name that is missing.

        Args:
            artifacts: Synthesizer output

        Returns:
            MutationEntry with the number of added entities per kind.

        Raises:
            TypeError: If artifacts is None.
            UnresolvedReferenceError: If any reference cannot be resolved;
                the graph is left untouched.
        """
        if artifacts is None:
            raise TypeError("artifacts must be an ArtifactSet, not None")

        with self._lock:
            before = self.counts()
            plan = self._plan_integration(artifacts)
            if plan.unresolved:
                raise UnresolvedReferenceError(plan.unresolved)
            self._apply_plan(plan)

            entry = MutationEntry(
                operation="integrate",
                target_id=self.id,
                before_state={"counts": before},
                after_state={"counts": self.counts(), "added": plan.added()},
            )
            self._mutation_log.append(entry)
            logger.info("Integrated artifacts: %s", plan.added())
            return entry

    def _plan_integration(self, artifacts: ArtifactSet) -> _IntegrationPlan:
        plan = _IntegrationPlan()

        swcs: dict[str, SWC] = {naming.component_key(s.name): s for s in self._swcs.values()}
        for art in artifacts.swcs:
            key = naming.component_key(art.name)
            if key in swcs:
                continue
            swc = SWC(
                name=art.name, description=art.description, category=art.category, type=art.type
            )
            swcs[key] = swc
            plan.swcs.append(swc)

        interfaces: dict[str, Interface] = {
            naming.name_key(i.name): i for i in self._interfaces.values()
        }
        for art in artifacts.interfaces:
            key = naming.name_key(art.name)
            if key in interfaces:
                continue
            elements: list[DataElement] = []
            for element_art in art.data_elements:
                if not any(naming.name_key(e.name) == naming.name_key(element_art.name)
                           for e in elements):
                    elements.append(_element_from_artifact(element_art))
            interface = Interface(name=art.name, type=art.type, data_elements=elements)
            interfaces[key] = interface
            plan.interfaces.append(interface)
        interfaces_by_id = {i.id: i for i in interfaces.values()}

        catalog: dict[str, DataElement] = {
            naming.name_key(e.name): e for e in self._data_elements.values()
        }
        for element_art in artifacts.data_elements:
            key = naming.name_key(element_art.name)
            if key in catalog:
                continue
            element = _element_from_artifact(element_art)
            catalog[key] = element
            plan.data_elements.append(element)

        type_names: dict[str, DataType] = {
            naming.name_key(d.name): d for d in self._data_types.values()
        }
        new_elements = plan.data_elements + [
            e for interface in plan.interfaces for e in interface.data_elements
        ]
        for element in new_elements:
            type_ref = element.application_data_type_ref
            if naming.name_key(type_ref) not in type_names:
                data_type = DataType(name=type_ref, category="primitive", base_type=type_ref)
                type_names[naming.name_key(type_ref)] = data_type
                plan.data_types.append(data_type)

        pending_runnables: dict[tuple[str, str], Runnable] = {}

        def runnable_of(swc: SWC, name: str) -> Optional[Runnable]:
            return pending_runnables.get((swc.id, naming.name_key(name))) or swc.find_runnable(
                name
            )

        for art in artifacts.runnables:
            swc = swcs.get(naming.component_key(art.swc_name))
            if swc is None:
                plan.unresolved.append(UnresolvedReference(art.name, "swc", art.swc_name))
                continue
            if runnable_of(swc, art.name) is not None:
                continue
            runnable = Runnable(
                name=art.name,
                swc_id=swc.id,
                runnable_type=art.runnable_type,
                period=art.period,
                can_be_invoked_concurrently=art.can_be_invoked_concurrently,
            )
            pending_runnables[(swc.id, naming.name_key(art.name))] = runnable
            plan.runnables.append(runnable)

        pending_ports: dict[tuple[str, str], Port] = {}

        def port_of(swc: SWC, name: str) -> Optional[Port]:
            return pending_ports.get((swc.id, naming.name_key(name))) or swc.find_port(name)

        for art in artifacts.ports:
            swc = swcs.get(naming.component_key(art.swc_name))
            interface = interfaces.get(naming.name_key(art.interface_ref))
            if swc is None:
                plan.unresolved.append(UnresolvedReference(art.name, "swc", art.swc_name))
            if interface is None:
                plan.unresolved.append(
                    UnresolvedReference(art.name, "interface", art.interface_ref)
                )
            if swc is None or interface is None or port_of(swc, art.name) is not None:
                continue
            port = Port(
                name=art.name, direction=art.direction, interface_ref=interface.id, swc_id=swc.id
            )
            pending_ports[(swc.id, naming.name_key(art.name))] = port
            plan.ports.append(port)

        pending_access_points: set[tuple[str, str]] = set()
        for art in artifacts.access_points:
            swc = swcs.get(naming.component_key(art.swc_name))
            if swc is None:
                plan.unresolved.append(UnresolvedReference(art.name, "swc", art.swc_name))
                continue
            runnable = runnable_of(swc, art.runnable_name)
            port = port_of(swc, art.port_ref)
            if runnable is None:
                plan.unresolved.append(
                    UnresolvedReference(art.name, "runnable", art.runnable_name)
                )
            if port is None:
                plan.unresolved.append(UnresolvedReference(art.name, "port", art.port_ref))
                continue
            # Access points only ever target an element of their port's interface
            interface = interfaces_by_id.get(port.interface_ref)
            name = art.name
            element = interface.find_data_element(art.data_element_ref) if interface else None
            if element is None and interface is not None and interface.data_elements:
                element = interface.data_elements[0]
                name = naming.access_point_name(
                    art.type == AccessType.IWRITE, art.runnable_name, port.name, element.name
                )
            if element is None:
                plan.unresolved.append(
                    UnresolvedReference(art.name, "data_element", art.data_element_ref)
                )
            if runnable is None or element is None:
                continue
            key = (runnable.id, naming.name_key(name))
            exists = any(
                naming.name_key(ap.name) == key[1] for ap in runnable.access_points
            )
            if exists or key in pending_access_points:
                continue
            pending_access_points.add(key)
            plan.access_points.append(
                (
                    runnable,
                    AccessPoint(
                        name=name,
                        type=art.type,
                        swc_id=swc.id,
                        runnable_id=runnable.id,
                        port_ref=port.id,
                        data_element_ref=element.id,
                        access=art.access,
                    ),
                )
            )

        composition_art = artifacts.ecu_composition
        if composition_art is not None:
            composition = self.find_ecu_composition_by_name(composition_art.name)
            if composition is None:
                composition = ECUComposition(
                    name=composition_art.name, ecu_name=composition_art.ecu_name
                )
                plan.new_composition = True
            plan.composition = composition
            instance_names = {naming.name_key(i.name) for i in composition.swc_instances}
            for instance_art in composition_art.swc_instances:
                swc = swcs.get(naming.component_key(instance_art.swc_ref))
                if swc is None:
                    plan.unresolved.append(
                        UnresolvedReference(instance_art.name, "swc", instance_art.swc_ref)
                    )
                    continue
                if naming.name_key(instance_art.name) in instance_names:
                    continue
                instance_names.add(naming.name_key(instance_art.name))
                plan.instances.append(SWCInstance(name=instance_art.name, swc_ref=swc.id))

        return plan

    def _apply_plan(self, plan: _IntegrationPlan) -> None:
        for swc in plan.swcs:
            self._swcs[swc.id] = swc
        for runnable in plan.runnables:
            self._swcs[runnable.swc_id].runnables.append(runnable)
        for port in plan.ports:
            self._swcs[port.swc_id].ports.append(port)
        for runnable, access_point in plan.access_points:
            runnable.access_points.append(access_point)
        for interface in plan.interfaces:
            self._interfaces[interface.id] = interface
        for data_type in plan.data_types:
            self._data_types[data_type.id] = data_type
        for element in plan.data_elements:
            self._data_elements[element.id] = element
        if plan.composition is not None:
            if plan.new_composition:
                self._compositions[plan.composition.id] = plan.composition
            plan.composition.swc_instances.extend(plan.instances)

    # ─────────────────────────────────────────────────────────────────────────
    # Mutation helpers
    # ─────────────────────────────────────────────────────────────────────────

    def _record(
        self,
        operation: str,
        target_id: str,
        before_state: dict[str, Any],
        after_state: dict[str, Any],
        cascaded: Optional[list[str]] = None,
    ) -> MutationEntry:
        entry = MutationEntry(
            operation=operation,
            target_id=target_id,
            before_state=before_state,
            after_state=after_state,
            cascaded=cascaded if cascaded is not None else [],
        )
        self._mutation_log.append(entry)
        logger.debug("%s", entry)
        return entry

    @staticmethod
    def _require(entity: Any, kind: str, entity_id: str) -> Any:
        if entity is None:
            raise KeyError(f"{kind} '{entity_id}' not found")
        return entity

    @staticmethod
    def _check_unique(
        kind: str,
        name: str,
        existing: list[Any],
        scope: str,
        key: Callable[[str], str] = naming.name_key,
        exclude_id: Optional[str] = None,
    ) -> None:
        if name is None:
            raise TypeError(f"{kind} name must be a string, not None")
        wanted = key(name)
        for entity in existing:
            if entity.id != exclude_id and key(entity.name) == wanted:
                raise ValueError(f"{kind} '{name}' already exists in {scope}")

    def _check_data_type_ref(self, source: str, type_ref: str) -> None:
        if self.find_data_type_by_name(type_ref) is None:
            raise UnresolvedReferenceError([UnresolvedReference(source, "data_type", type_ref)])

    def _interface_carries(self, interface_id: str, element_id: str) -> bool:
        interface = self._interfaces.get(interface_id)
        return interface is not None and any(e.id == element_id for e in interface.data_elements)

    def _update(
        self,
        operation: str,
        entity: Any,
        changes: dict[str, Any],
        allowed: set[str],
        cascaded: Optional[list[str]] = None,
    ) -> MutationEntry:
        unknown = set(changes) - allowed
        if unknown:
            raise ValueError(
                f"Cannot update {', '.join(sorted(unknown))} on {type(entity).__name__}"
            )
        before = {k: v for k, v in entity_state(entity).items() if k in changes}
        for attr, value in changes.items():
            setattr(entity, attr, value)
        after = {k: v for k, v in entity_state(entity).items() if k in changes}
        return self._record(operation, entity.id, before, after, cascaded)

    # ─────────────────────────────────────────────────────────────────────────
    # SWC
    # ─────────────────────────────────────────────────────────────────────────

    def create_swc(
        self,
        name: str,
        description: str = "",
        category: SwcCategory = SwcCategory.APPLICATION,
        type: str = "atomic",
    ) -> MutationEntry:
        """Add an empty SWC.

        Raises:
            ValueError: If an SWC with the same canonical name exists.
        """
        with self._lock:
            self._check_unique(
                "SWC", name, list(self._swcs.values()), "project", key=naming.component_key
            )
            swc = SWC(name=name, description=description, category=category, type=type)
            self._swcs[swc.id] = swc
            return self._record("create_swc", swc.id, {}, entity_state(swc))

    def update_swc(self, swc_id: str, **changes: Any) -> MutationEntry:
        """Update name, description, category or type of an SWC."""
        with self._lock:
            swc = self._require(self._swcs.get(swc_id), "SWC", swc_id)
            if "name" in changes:
                self._check_unique(
                    "SWC",
                    changes["name"],
                    list(self._swcs.values()),
                    "project",
                    key=naming.component_key,
                    exclude_id=swc_id,
                )
            return self._update(
                "update_swc", swc, changes, {"name", "description", "category", "type"}
            )

    def delete_swc(self, swc_id: str) -> MutationEntry:
        """Delete an SWC with its ports, runnables, access points,
        connections touching it and instances referencing it."""
        with self._lock:
            swc = self._require(self._swcs.get(swc_id), "SWC", swc_id)
            before = entity_state(swc)
            cascaded = self._remove_swc(swc)
            entry = self._record("delete_swc", swc_id, before, {}, cascaded)
            self._validate_after("delete_swc")
            return entry

    def _remove_swc(self, swc: SWC) -> list[str]:
        removed: list[str] = []
        for port in list(swc.ports):
            removed.extend(self._remove_port(port))
        for runnable in list(swc.runnables):
            removed.extend(self._remove_runnable(runnable))
        for conn in list(self._connections.values()):
            if swc.id in (conn.source_swc_id, conn.target_swc_id):
                removed.append(self._connections.pop(conn.id).id)
        for composition in self.iter_ecu_compositions():
            for instance in list(composition.swc_instances):
                if instance.swc_ref == swc.id:
                    removed.extend(self._remove_instance(composition, instance))
        del self._swcs[swc.id]
        logger.debug("Removed SWC %s", swc.name)
        return removed

    # ─────────────────────────────────────────────────────────────────────────
    # Port
    # ─────────────────────────────────────────────────────────────────────────

    def create_port(
        self, swc_id: str, name: str, direction: PortDirection, interface_id: str
    ) -> MutationEntry:
        """Add a port to an SWC.

        Raises:
            KeyError: If the SWC does not exist.
            ValueError: If the SWC already has a port with that name.
            UnresolvedReferenceError: If the interface does not exist.
        """
        with self._lock:
            swc = self._require(self._swcs.get(swc_id), "SWC", swc_id)
            self._check_unique("Port", name, swc.ports, f"SWC {swc.name}")
            if interface_id not in self._interfaces:
                raise UnresolvedReferenceError(
                    [UnresolvedReference(name, "interface", interface_id)]
                )
            port = Port(name=name, direction=direction, interface_ref=interface_id, swc_id=swc_id)
            swc.ports.append(port)
            return self._record("create_port", port.id, {}, entity_state(port))

    def update_port(self, port_id: str, **changes: Any) -> MutationEntry:
        """Update name, direction or interface_ref of a port.

        Retargeting the port removes its access points whose data element
        the new interface does not carry.
        """
        with self._lock:
            port = self._require(self.find_port(port_id), "Port", port_id)
            swc = self._swcs[port.swc_id]
            if "name" in changes:
                self._check_unique(
                    "Port", changes["name"], swc.ports, f"SWC {swc.name}", exclude_id=port_id
                )
            if "interface_ref" in changes and changes["interface_ref"] not in self._interfaces:
                raise UnresolvedReferenceError(
                    [UnresolvedReference(port.name, "interface", changes["interface_ref"])]
                )
            cascaded: list[str] = []
            entry = self._update(
                "update_port", port, changes, {"name", "direction", "interface_ref"}, cascaded
            )
            if "interface_ref" in changes:
                for runnable in swc.runnables:
                    for ap in list(runnable.access_points):
                        if ap.port_ref == port_id and not self._interface_carries(
                            port.interface_ref, ap.data_element_ref
                        ):
                            runnable.access_points.remove(ap)
                            cascaded.append(ap.id)
                self._validate_after("update_port")
            return entry

    def delete_port(self, port_id: str) -> MutationEntry:
        """Delete a port with the access points, connections and ECU connectors using it."""
        with self._lock:
            port = self._require(self.find_port(port_id), "Port", port_id)
            before = entity_state(port)
            cascaded = self._remove_port(port)
            entry = self._record("delete_port", port_id, before, {}, cascaded)
            self._validate_after("delete_port")
            return entry

    def _remove_port(self, port: Port) -> list[str]:
        removed: list[str] = []
        for runnable in self.iter_runnables():
            for ap in list(runnable.access_points):
                if ap.port_ref == port.id:
                    runnable.access_points.remove(ap)
                    removed.append(ap.id)
        for conn in list(self._connections.values()):
            if port.id in (conn.source_port_id, conn.target_port_id):
                removed.append(self._connections.pop(conn.id).id)
        for composition in self.iter_ecu_compositions():
            for connector in list(composition.connectors):
                if port.id in (connector.source_port_id, connector.target_port_id):
                    composition.connectors.remove(connector)
                    removed.append(connector.id)
        owner = self._swcs.get(port.swc_id)
        if owner is not None and port in owner.ports:
            owner.ports.remove(port)
        removed.append(port.id)
        return removed

    # ─────────────────────────────────────────────────────────────────────────
    # Interface
    # ─────────────────────────────────────────────────────────────────────────

    def create_interface(
        self,
        name: str,
        type: InterfaceType = InterfaceType.SENDER_RECEIVER,
        data_elements: Optional[list[DataElement]] = None,
    ) -> MutationEntry:
        """Add an interface, optionally with embedded data elements.

        Raises:
            ValueError: If the name exists or two elements share a name.
            UnresolvedReferenceError: If an element names a missing data type.
        """
        with self._lock:
            self._check_unique("Interface", name, list(self._interfaces.values()), "project")
            elements = list(data_elements or [])
            missing = [
                UnresolvedReference(e.name, "data_type", e.application_data_type_ref)
                for e in elements
                if self.find_data_type_by_name(e.application_data_type_ref) is None
            ]
            if missing:
                raise UnresolvedReferenceError(missing)
            for i, element in enumerate(elements):
                self._check_unique(
                    "Data element", element.name, elements[:i], f"interface {name}"
                )
            interface = Interface(name=name, type=type, data_elements=elements)
            self._interfaces[interface.id] = interface
            return self._record("create_interface", interface.id, {}, entity_state(interface))

    def update_interface(self, interface_id: str, **changes: Any) -> MutationEntry:
        """Update name or type of an interface."""
        with self._lock:
            interface = self._require(
                self._interfaces.get(interface_id), "Interface", interface_id
            )
            if "name" in changes:
                self._check_unique(
                    "Interface",
                    changes["name"],
                    list(self._interfaces.values()),
                    "project",
                    exclude_id=interface_id,
                )
            return self._update("update_interface", interface, changes, {"name", "type"})

    def delete_interface(self, interface_id: str) -> MutationEntry:
        """Delete an interface and every port typed by it (each through the port cascade)."""
        with self._lock:
            interface = self._require(
                self._interfaces.get(interface_id), "Interface", interface_id
            )
            before = entity_state(interface)
            cascaded: list[str] = []
            for port in list(self.iter_ports()):
                if port.interface_ref == interface_id:
                    cascaded.extend(self._remove_port(port))
            cascaded.extend(
                self._remove_access_points_to({e.id for e in interface.data_elements})
            )
            del self._interfaces[interface_id]
            entry = self._record("delete_interface", interface_id, before, {}, cascaded)
            self._validate_after("delete_interface")
            return entry

    def _remove_access_points_to(self, element_ids: set[str]) -> list[str]:
        removed: list[str] = []
        for runnable in self.iter_runnables():
            for ap in list(runnable.access_points):
                if ap.data_element_ref in element_ids:
                    runnable.access_points.remove(ap)
                    removed.append(ap.id)
        return removed

    # ─────────────────────────────────────────────────────────────────────────
    # Data types and data elements
    # ─────────────────────────────────────────────────────────────────────────

    def create_data_type(
        self,
        name: str,
        category: str = "primitive",
        base_type: Optional[str] = None,
        array_size: Optional[int] = None,
        elements: Optional[list[RecordElement]] = None,
        description: str = "",
    ) -> MutationEntry:
        """Add a data type; its implementation layout is derived.

        Raises:
            ValueError: If the name is taken, the category is not one of
                primitive, array, record or typedef, or array_size is not positive.
        """
        with self._lock:
            self._check_unique("Data type", name, list(self._data_types.values()), "project")
            self._check_data_type_shape(category, array_size)
            data_type = DataType(
                name=name,
                category=category,
                base_type=base_type,
                array_size=array_size,
                elements=list(elements or []),
                description=description,
            )
            self._data_types[data_type.id] = data_type
            return self._record("create_data_type", data_type.id, {}, entity_state(data_type))

    @staticmethod
    def _check_data_type_shape(category: str, array_size: Optional[int]) -> None:
        if category not in DATA_TYPE_CATEGORIES:
            raise ValueError(
                f"Unknown data type category: {category} "
                f"(expected one of {', '.join(DATA_TYPE_CATEGORIES)})"
            )
        if array_size is not None and array_size < 1:
            raise ValueError(f"Array size must be positive: {array_size}")

    def update_data_type(self, data_type_id: str, **changes: Any) -> MutationEntry:
        """Update the fields of a data type; the implementation layout follows.

        Renaming rewrites ``application_data_type_ref`` (and the mirrored
        ``sw_data_def_props``) of every element that referenced the old name.
        """
        with self._lock:
            data_type = self._require(
                self._data_types.get(data_type_id), "Data type", data_type_id
            )
            old_name = data_type.name
            if "name" in changes:
                self._check_unique(
                    "Data type",
                    changes["name"],
                    list(self._data_types.values()),
                    "project",
                    exclude_id=data_type_id,
                )
            self._check_data_type_shape(
                changes.get("category", data_type.category),
                changes.get("array_size", data_type.array_size),
            )
            entry = self._update(
                "update_data_type",
                data_type,
                changes,
                {"name", "category", "base_type", "array_size", "elements", "description"},
            )
            if {"name", "category", "base_type"} & set(changes):
                data_type.refresh_implementation()
            if "name" in changes and changes["name"] != old_name:
                for element in self.iter_data_elements(include_embedded=True):
                    if naming.name_key(element.application_data_type_ref) == naming.name_key(
                        old_name
                    ):
                        element.application_data_type_ref = data_type.name
                        element.sw_data_def_props = {
                            k: data_type.name if v == old_name else v
                            for k, v in element.sw_data_def_props.items()
                        }
            return entry

    def delete_data_type(self, data_type_id: str) -> MutationEntry:
        """Delete a data type, every data element typed by it (catalog and
        embedded) and the access points to those elements."""
        with self._lock:
            data_type = self._require(
                self._data_types.get(data_type_id), "Data type", data_type_id
            )
            before = entity_state(data_type)
            key = naming.name_key(data_type.name)
            removed_elements: set[str] = set()
            for element in list(self._data_elements.values()):
                if naming.name_key(element.application_data_type_ref) == key:
                    del self._data_elements[element.id]
                    removed_elements.add(element.id)
            for interface in self.iter_interfaces():
                for element in list(interface.data_elements):
                    if naming.name_key(element.application_data_type_ref) == key:
                        interface.data_elements.remove(element)
                        removed_elements.add(element.id)
            cascaded = sorted(removed_elements) + self._remove_access_points_to(removed_elements)
            del self._data_types[data_type_id]
            entry = self._record("delete_data_type", data_type_id, before, {}, cascaded)
            self._validate_after("delete_data_type")
            return entry

    def create_data_element(
        self,
        name: str,
        application_data_type_ref: str,
        category: str = "VALUE",
        description: str = "",
        interface_id: Optional[str] = None,
    ) -> MutationEntry:
        """Add a data element to the catalog, or to an interface if interface_id is given.

        Raises:
            KeyError: If interface_id is given but unknown.
            ValueError: If the name exists in the catalog (or interface).
            UnresolvedReferenceError: If the data type does not exist.
        """
        with self._lock:
            if interface_id is not None:
                interface = self._require(
                    self._interfaces.get(interface_id), "Interface", interface_id
                )
                scope_elements = interface.data_elements
                scope = f"interface {interface.name}"
            else:
                scope_elements = list(self._data_elements.values())
                scope = "catalog"
            self._check_unique("Data element", name, scope_elements, scope)
            self._check_data_type_ref(name, application_data_type_ref)
            element = DataElement(
                name=name,
                application_data_type_ref=application_data_type_ref,
                category=category,
                description=description,
                sw_data_def_props=_mirrored_props(application_data_type_ref),
            )
            if interface_id is not None:
                interface.data_elements.append(element)
            else:
                self._data_elements[element.id] = element
            return self._record("create_data_element", element.id, {}, entity_state(element))

    def update_data_element(self, element_id: str, **changes: Any) -> MutationEntry:
        """Update name, application_data_type_ref, category or description."""
        with self._lock:
            element = self._require(self.find_data_element(element_id), "Data element", element_id)
            if "name" in changes:
                self._check_unique(
                    "Data element",
                    changes["name"],
                    self._element_scope(element),
                    "catalog" if element_id in self._data_elements else "interface",
                    exclude_id=element_id,
                )
            if "application_data_type_ref" in changes:
                type_ref = changes["application_data_type_ref"]
                self._check_data_type_ref(element.name, type_ref)
                changes["sw_data_def_props"] = _mirrored_props(type_ref)
            return self._update(
                "update_data_element",
                element,
                changes,
                {"name", "application_data_type_ref", "category", "description",
                 "sw_data_def_props"},
            )

    def _element_scope(self, element: DataElement) -> list[DataElement]:
        if element.id in self._data_elements:
            return list(self._data_elements.values())
        for interface in self.iter_interfaces():
            if element in interface.data_elements:
                return interface.data_elements
        return []

    def delete_data_element(self, element_id: str) -> MutationEntry:
        """Delete a data element and the access points to it."""
        with self._lock:
            element = self._require(self.find_data_element(element_id), "Data element", element_id)
            before = entity_state(element)
            if element_id in self._data_elements:
                del self._data_elements[element_id]
            else:
                for interface in self.iter_interfaces():
                    if element in interface.data_elements:
                        interface.data_elements.remove(element)
            cascaded = self._remove_access_points_to({element_id})
            entry = self._record("delete_data_element", element_id, before, {}, cascaded)
            self._validate_after("delete_data_element")
            return entry

    # ─────────────────────────────────────────────────────────────────────────
    # Runnables and access points
    # ─────────────────────────────────────────────────────────────────────────

    def create_runnable(
        self,
        swc_id: str,
        name: str,
        runnable_type: RunnableType = RunnableType.PERIODIC,
        period: int = 0,
        can_be_invoked_concurrently: bool = False,
    ) -> MutationEntry:
        with self._lock:
            swc = self._require(self._swcs.get(swc_id), "SWC", swc_id)
            self._check_unique("Runnable", name, swc.runnables, f"SWC {swc.name}")
            runnable = Runnable(
                name=name,
                swc_id=swc_id,
                runnable_type=runnable_type,
                period=period,
                can_be_invoked_concurrently=can_be_invoked_concurrently,
            )
            swc.runnables.append(runnable)
            return self._record("create_runnable", runnable.id, {}, entity_state(runnable))

    def update_runnable(self, runnable_id: str, **changes: Any) -> MutationEntry:
        """Update name, runnable_type, period or can_be_invoked_concurrently."""
        with self._lock:
            runnable = self._require(self.find_runnable(runnable_id), "Runnable", runnable_id)
            swc = self._swcs[runnable.swc_id]
            if "name" in changes:
                self._check_unique(
                    "Runnable",
                    changes["name"],
                    swc.runnables,
                    f"SWC {swc.name}",
                    exclude_id=runnable_id,
                )
            return self._update(
                "update_runnable",
                runnable,
                changes,
                {"name", "runnable_type", "period", "can_be_invoked_concurrently"},
            )

    def delete_runnable(self, runnable_id: str) -> MutationEntry:
        """Delete a runnable with its access points."""
        with self._lock:
            runnable = self._require(self.find_runnable(runnable_id), "Runnable", runnable_id)
            before = entity_state(runnable)
            cascaded = self._remove_runnable(runnable)
            entry = self._record("delete_runnable", runnable_id, before, {}, cascaded)
            self._validate_after("delete_runnable")
            return entry

    def _remove_runnable(self, runnable: Runnable) -> list[str]:
        removed = [ap.id for ap in runnable.access_points]
        runnable.access_points.clear()
        owner = self._swcs.get(runnable.swc_id)
        if owner is not None and runnable in owner.runnables:
            owner.runnables.remove(runnable)
        removed.append(runnable.id)
        return removed

    def create_access_point(
        self,
        runnable_id: str,
        name: str,
        type: AccessType,
        port_id: str,
        data_element_id: str,
        access: AccessMode = AccessMode.IMPLICIT,
    ) -> MutationEntry:
        """Add an access point to a runnable.

        Raises:
            KeyError: If the runnable does not exist.
            ValueError: If the runnable already has an access point with that name.
            UnresolvedReferenceError: If the port is not a port of the runnable's
                SWC or the data element is not carried by the port's interface.
        """
        with self._lock:
            runnable = self._require(self.find_runnable(runnable_id), "Runnable", runnable_id)
            self._check_unique(
                "Access point", name, runnable.access_points, f"runnable {runnable.name}"
            )
            missing = []
            port = self.find_port(port_id)
            if port is None or port.swc_id != runnable.swc_id:
                missing.append(UnresolvedReference(name, "port", port_id))
            elif not self._interface_carries(port.interface_ref, data_element_id):
                missing.append(UnresolvedReference(name, "data_element", data_element_id))
            if missing:
                raise UnresolvedReferenceError(missing)
            access_point = AccessPoint(
                name=name,
                type=type,
                swc_id=runnable.swc_id,
                runnable_id=runnable_id,
                port_ref=port_id,
                data_element_ref=data_element_id,
                access=access,
            )
            runnable.access_points.append(access_point)
            return self._record(
                "create_access_point", access_point.id, {}, entity_state(access_point)
            )

    def update_access_point(self, access_point_id: str, **changes: Any) -> MutationEntry:
        """Update name, type or access of an access point."""
        with self._lock:
            access_point = self._require(
                self.find_access_point(access_point_id), "Access point", access_point_id
            )
            if "name" in changes:
                runnable = self.find_runnable(access_point.runnable_id)
                self._check_unique(
                    "Access point",
                    changes["name"],
                    runnable.access_points if runnable else [],
                    "runnable",
                    exclude_id=access_point_id,
                )
            return self._update(
                "update_access_point", access_point, changes, {"name", "type", "access"}
            )

    def delete_access_point(self, access_point_id: str) -> MutationEntry:
        with self._lock:
            access_point = self._require(
                self.find_access_point(access_point_id), "Access point", access_point_id
            )
            before = entity_state(access_point)
            self._remove_access_points_to_ids({access_point_id})
            return self._record("delete_access_point", access_point_id, before, {})

    def _remove_access_points_to_ids(self, access_point_ids: set[str]) -> None:
        for runnable in self.iter_runnables():
            runnable.access_points[:] = [
                ap for ap in runnable.access_points if ap.id not in access_point_ids
            ]

    # ─────────────────────────────────────────────────────────────────────────
    # Connections
    # ─────────────────────────────────────────────────────────────────────────

    def create_connection(
        self,
        name: str,
        source_swc_id: str,
        source_port_id: str,
        target_swc_id: str,
        target_port_id: str,
    ) -> MutationEntry:
        """Connect a port of one SWC to a port of another.

        Raises:
            ValueError: If a connection with that name exists.
            UnresolvedReferenceError: If an endpoint SWC or port does not resolve.
        """
        with self._lock:
            self._check_unique("Connection", name, list(self._connections.values()), "project")
            missing = []
            for end, swc_id, port_id in (
                ("source", source_swc_id, source_port_id),
                ("target", target_swc_id, target_port_id),
            ):
                swc = self._swcs.get(swc_id)
                if swc is None:
                    missing.append(UnresolvedReference(name, f"{end}_swc", swc_id))
                elif not any(p.id == port_id for p in swc.ports):
                    missing.append(UnresolvedReference(name, f"{end}_port", port_id))
            if missing:
                raise UnresolvedReferenceError(missing)
            conn = SWCConnection(
                name=name,
                source_swc_id=source_swc_id,
                source_port_id=source_port_id,
                target_swc_id=target_swc_id,
                target_port_id=target_port_id,
            )
            self._connections[conn.id] = conn
            return self._record("create_connection", conn.id, {}, entity_state(conn))

    def update_connection(self, connection_id: str, **changes: Any) -> MutationEntry:
        """Rename a connection."""
        with self._lock:
            conn = self._require(self._connections.get(connection_id), "Connection", connection_id)
            if "name" in changes:
                self._check_unique(
                    "Connection",
                    changes["name"],
                    list(self._connections.values()),
                    "project",
                    exclude_id=connection_id,
                )
            return self._update("update_connection", conn, changes, {"name"})

    def delete_connection(self, connection_id: str) -> MutationEntry:
        with self._lock:
            conn = self._require(self._connections.get(connection_id), "Connection", connection_id)
            before = entity_state(conn)
            del self._connections[connection_id]
            return self._record("delete_connection", connection_id, before, {})

    # ─────────────────────────────────────────────────────────────────────────
    # ECU compositions, instances and connectors
    # ─────────────────────────────────────────────────────────────────────────

    def create_ecu_composition(self, name: str, ecu_name: str) -> MutationEntry:
        with self._lock:
            self._check_unique(
                "ECU composition", name, list(self._compositions.values()), "project"
            )
            composition = ECUComposition(name=name, ecu_name=ecu_name)
            self._compositions[composition.id] = composition
            return self._record(
                "create_ecu_composition", composition.id, {}, entity_state(composition)
            )

    def update_ecu_composition(self, composition_id: str, **changes: Any) -> MutationEntry:
        """Update name or ecu_name of a composition."""
        with self._lock:
            composition = self._require(
                self._compositions.get(composition_id), "ECU composition", composition_id
            )
            if "name" in changes:
                self._check_unique(
                    "ECU composition",
                    changes["name"],
                    list(self._compositions.values()),
                    "project",
                    exclude_id=composition_id,
                )
            return self._update(
                "update_ecu_composition", composition, changes, {"name", "ecu_name"}
            )

    def delete_ecu_composition(self, composition_id: str) -> MutationEntry:
        """Delete a composition; its instances and connectors go with it."""
        with self._lock:
            composition = self._require(
                self._compositions.get(composition_id), "ECU composition", composition_id
            )
            before = entity_state(composition)
            cascaded = [i.id for i in composition.swc_instances] + [
                c.id for c in composition.connectors
            ]
            del self._compositions[composition_id]
            return self._record("delete_ecu_composition", composition_id, before, {}, cascaded)

    def _composition_of(self, child_id: str) -> Optional[ECUComposition]:
        for composition in self.iter_ecu_compositions():
            if any(i.id == child_id for i in composition.swc_instances) or any(
                c.id == child_id for c in composition.connectors
            ):
                return composition
        return None

    def create_swc_instance(self, composition_id: str, name: str, swc_id: str) -> MutationEntry:
        """Place an SWC into an ECU composition.

        Raises:
            KeyError: If the composition does not exist.
            ValueError: If the composition already has an instance with that name.
            UnresolvedReferenceError: If the SWC does not exist.
        """
        with self._lock:
            composition = self._require(
                self._compositions.get(composition_id), "ECU composition", composition_id
            )
            self._check_unique(
                "SWC instance", name, composition.swc_instances, f"composition {composition.name}"
            )
            if swc_id not in self._swcs:
                raise UnresolvedReferenceError([UnresolvedReference(name, "swc", swc_id)])
            instance = SWCInstance(name=name, swc_ref=swc_id)
            composition.swc_instances.append(instance)
            return self._record("create_swc_instance", instance.id, {}, entity_state(instance))

    def update_swc_instance(self, instance_id: str, **changes: Any) -> MutationEntry:
        """Rename an SWC instance."""
        with self._lock:
            instance = self._require(
                self.find_swc_instance(instance_id), "SWC instance", instance_id
            )
            composition = self._composition_of(instance_id)
            if "name" in changes:
                self._check_unique(
                    "SWC instance",
                    changes["name"],
                    composition.swc_instances,
                    f"composition {composition.name}",
                    exclude_id=instance_id,
                )
            return self._update("update_swc_instance", instance, changes, {"name"})

    def delete_swc_instance(self, instance_id: str) -> MutationEntry:
        """Delete an SWC instance and the connectors of its composition that use it."""
        with self._lock:
            instance = self._require(
                self.find_swc_instance(instance_id), "SWC instance", instance_id
            )
            before = entity_state(instance)
            cascaded = self._remove_instance(self._composition_of(instance_id), instance)
            entry = self._record("delete_swc_instance", instance_id, before, {}, cascaded)
            self._validate_after("delete_swc_instance")
            return entry

    @staticmethod
    def _remove_instance(composition: ECUComposition, instance: SWCInstance) -> list[str]:
        removed: list[str] = []
        for connector in list(composition.connectors):
            if instance.id in (connector.source_instance_id, connector.target_instance_id):
                composition.connectors.remove(connector)
                removed.append(connector.id)
        composition.swc_instances.remove(instance)
        removed.append(instance.id)
        return removed

    def create_ecu_connector(
        self,
        composition_id: str,
        name: str,
        source_instance_id: str,
        source_port_id: str,
        target_instance_id: str,
        target_port_id: str,
    ) -> MutationEntry:
        """Connect two instance ports inside one ECU composition."""
        with self._lock:
            composition = self._require(
                self._compositions.get(composition_id), "ECU composition", composition_id
            )
            self._check_unique(
                "ECU connector", name, composition.connectors, f"composition {composition.name}"
            )
            missing = []
            for end, instance_id, port_id in (
                ("source", source_instance_id, source_port_id),
                ("target", target_instance_id, target_port_id),
            ):
                if composition.find_instance(instance_id) is None:
                    missing.append(UnresolvedReference(name, f"{end}_instance", instance_id))
                if self.find_port(port_id) is None:
                    missing.append(UnresolvedReference(name, f"{end}_port", port_id))
            if missing:
                raise UnresolvedReferenceError(missing)
            connector = ECUConnector(
                name=name,
                source_instance_id=source_instance_id,
                source_port_id=source_port_id,
                target_instance_id=target_instance_id,
                target_port_id=target_port_id,
            )
            composition.connectors.append(connector)
            return self._record("create_ecu_connector", connector.id, {}, entity_state(connector))

    def update_ecu_connector(self, connector_id: str, **changes: Any) -> MutationEntry:
        """Rename an ECU connector."""
        with self._lock:
            connector = self._require(
                self.find_ecu_connector(connector_id), "ECU connector", connector_id
            )
            composition = self._composition_of(connector_id)
            if "name" in changes:
                self._check_unique(
                    "ECU connector",
                    changes["name"],
                    composition.connectors,
                    f"composition {composition.name}",
                    exclude_id=connector_id,
                )
            return self._update("update_ecu_connector", connector, changes, {"name"})

    def delete_ecu_connector(self, connector_id: str) -> MutationEntry:
        with self._lock:
            connector = self._require(
                self.find_ecu_connector(connector_id), "ECU connector", connector_id
            )
            before = entity_state(connector)
            self._composition_of(connector_id).connectors.remove(connector)
            return self._record("delete_ecu_connector", connector_id, before, {})


__all__ = ["ProjectGraph"]
