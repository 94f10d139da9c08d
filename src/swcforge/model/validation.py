"""Referential validation - Check a ProjectGraph against its invariants.

Checks:
- required_field: SWCs carry a name and a category
- unique_name: SWCs, interfaces, data types, compositions and connections
  per project; ports and runnables per SWC; access points per runnable;
  instances and connectors per composition
- interface_ref: every port names an existing interface
- access_point_swc / access_point_runnable: access points sit under an
  existing SWC and one of its runnables
- access_point_port / access_point_data_element: access point targets resolve
- access_point_interface: the data element belongs to the interface of
  the access point's port
- data_type_ref: every data element names an existing data type
- data_type_category: data types are primitive, array, record or typedef
- connection_swc / connection_port: connection endpoints resolve
- instance_swc: every SWC instance names an existing SWC
- connector_instance / connector_port: ECU connector endpoints resolve

Validation walks the whole graph, collects every violation and never
mutates anything.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from swcforge.core import naming
from swcforge.model.entities import DATA_TYPE_CATEGORIES

if TYPE_CHECKING:
    from swcforge.model.project import ProjectGraph


@dataclass
class IntegrityViolation:
    """An invariant violation found during validation.

    Attributes:
        rule: The check that failed
        message: Human-readable description
        entity_id: Id of the offending entity
        details: Additional context
    """

    rule: str
    message: str
    entity_id: str = ""
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message


@dataclass
class ValidationResult:
    """Outcome of validate(): valid iff no violation was found."""

    violations: list[IntegrityViolation] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.violations

    @property
    def errors(self) -> list[str]:
        return [v.message for v in self.violations]

    def by_rule(self, rule: str) -> list[IntegrityViolation]:
        return [v for v in self.violations if v.rule == rule]


def _duplicates(names: list[str], key=naming.name_key) -> list[str]:
    counts = Counter(key(name) for name in names)
    seen: set[str] = set()
    result = []
    for name in names:
        k = key(name)
        if counts[k] > 1 and k not in seen:
            seen.add(k)
            result.append(name)
    return result


def _unique(
    violations: list[IntegrityViolation],
    kind: str,
    names: list[str],
    scope: str,
    scope_id: str = "",
    key=naming.name_key,
) -> None:
    for name in _duplicates(names, key):
        violations.append(
            IntegrityViolation(
                rule="unique_name",
                message=f"Duplicate {kind} name in {scope}: {name}",
                entity_id=scope_id,
                details={"kind": kind, "name": name},
            )
        )


def validate_project(graph: ProjectGraph) -> ValidationResult:
    """Validate every invariant of a project graph.

    Args:
        graph: The graph to check (read only)

    Returns:
        ValidationResult listing every violation
    """
    violations: list[IntegrityViolation] = []

    swcs = list(graph.iter_swcs())
    swc_ids = {swc.id for swc in swcs}
    interface_ids = {interface.id for interface in graph.iter_interfaces()}
    data_type_keys = {naming.name_key(dt.name) for dt in graph.iter_data_types()}
    port_owner = {port.id: swc.id for swc in swcs for port in swc.ports}
    runnable_owner = {runnable.id: swc.id for swc in swcs for runnable in swc.runnables}
    element_ids = {element.id for element in graph.iter_data_elements(include_embedded=True)}
    port_interface = {port.id: port.interface_ref for swc in swcs for port in swc.ports}
    interface_elements = {
        interface.id: {element.id for element in interface.data_elements}
        for interface in graph.iter_interfaces()
    }

    _unique(violations, "SWC", [s.name for s in swcs], "project", key=naming.component_key)
    _unique(violations, "interface", [i.name for i in graph.iter_interfaces()], "project")
    _unique(violations, "data type", [d.name for d in graph.iter_data_types()], "project")
    _unique(violations, "connection", [c.name for c in graph.iter_connections()], "project")
    _unique(
        violations,
        "ECU composition",
        [c.name for c in graph.iter_ecu_compositions()],
        "project",
    )

    for swc in swcs:
        if not swc.name:
            violations.append(
                IntegrityViolation("required_field", f"SWC missing name: {swc.id}", swc.id)
            )
        if not swc.category:
            violations.append(
                IntegrityViolation("required_field", f"SWC missing category: {swc.name}", swc.id)
            )
        _unique(violations, "port", [p.name for p in swc.ports], f"SWC {swc.name}", swc.id)
        _unique(
            violations, "runnable", [r.name for r in swc.runnables], f"SWC {swc.name}", swc.id
        )

        for port in swc.ports:
            if port.interface_ref not in interface_ids:
                violations.append(
                    IntegrityViolation(
                        rule="interface_ref",
                        message=(
                            f"Port {port.name} references non-existent interface: "
                            f"{port.interface_ref}"
                        ),
                        entity_id=port.id,
                    )
                )

        for runnable in swc.runnables:
            _unique(
                violations,
                "access point",
                [ap.name for ap in runnable.access_points],
                f"runnable {runnable.name}",
                runnable.id,
            )
            for ap in runnable.access_points:
                if ap.swc_id not in swc_ids:
                    violations.append(
                        IntegrityViolation(
                            "access_point_swc",
                            f"Access point {ap.name} references non-existent SWC: {ap.swc_id}",
                            ap.id,
                        )
                    )
                if runnable_owner.get(ap.runnable_id) != ap.swc_id:
                    violations.append(
                        IntegrityViolation(
                            "access_point_runnable",
                            f"Access point {ap.name} references non-existent runnable: "
                            f"{ap.runnable_id}",
                            ap.id,
                        )
                    )
                if port_owner.get(ap.port_ref) != ap.swc_id:
                    violations.append(
                        IntegrityViolation(
                            "access_point_port",
                            f"Access point {ap.name} references non-existent port: {ap.port_ref}",
                            ap.id,
                        )
                    )
                if ap.data_element_ref not in element_ids:
                    violations.append(
                        IntegrityViolation(
                            "access_point_data_element",
                            f"Access point {ap.name} references non-existent data element: "
                            f"{ap.data_element_ref}",
                            ap.id,
                        )
                    )
                elif (
                    port_interface.get(ap.port_ref) in interface_elements
                    and ap.data_element_ref
                    not in interface_elements[port_interface[ap.port_ref]]
                ):
                    violations.append(
                        IntegrityViolation(
                            "access_point_interface",
                            f"Access point {ap.name} references data element "
                            f"{ap.data_element_ref} outside the interface of its port",
                            ap.id,
                        )
                    )

    for interface in graph.iter_interfaces():
        _unique(
            violations,
            "data element",
            [e.name for e in interface.data_elements],
            f"interface {interface.name}",
            interface.id,
        )
    for data_type in graph.iter_data_types():
        if data_type.category not in DATA_TYPE_CATEGORIES:
            violations.append(
                IntegrityViolation(
                    rule="data_type_category",
                    message=(
                        f"Data type {data_type.name} has unknown category: {data_type.category}"
                    ),
                    entity_id=data_type.id,
                )
            )
    for element in graph.iter_data_elements(include_embedded=True):
        if naming.name_key(element.application_data_type_ref) not in data_type_keys:
            violations.append(
                IntegrityViolation(
                    rule="data_type_ref",
                    message=(
                        f"Data element {element.name} references non-existent data type: "
                        f"{element.application_data_type_ref}"
                    ),
                    entity_id=element.id,
                )
            )

    for conn in graph.iter_connections():
        for end, swc_id, port_id in (
            ("source", conn.source_swc_id, conn.source_port_id),
            ("target", conn.target_swc_id, conn.target_port_id),
        ):
            if swc_id not in swc_ids:
                violations.append(
                    IntegrityViolation(
                        "connection_swc",
                        f"Connection {conn.name} references non-existent {end} SWC: {swc_id}",
                        conn.id,
                    )
                )
            elif port_owner.get(port_id) != swc_id:
                violations.append(
                    IntegrityViolation(
                        "connection_port",
                        f"Connection {conn.name} references non-existent {end} port: {port_id}",
                        conn.id,
                    )
                )

    for composition in graph.iter_ecu_compositions():
        scope = f"ECU composition {composition.name}"
        _unique(
            violations,
            "SWC instance",
            [i.name for i in composition.swc_instances],
            scope,
            composition.id,
        )
        _unique(
            violations,
            "ECU connector",
            [c.name for c in composition.connectors],
            scope,
            composition.id,
        )
        instance_ids = {i.id for i in composition.swc_instances}
        for instance in composition.swc_instances:
            if instance.swc_ref not in swc_ids:
                violations.append(
                    IntegrityViolation(
                        "instance_swc",
                        f"SWC instance {instance.name} references non-existent SWC: "
                        f"{instance.swc_ref}",
                        instance.id,
                    )
                )
        for connector in composition.connectors:
            for end, instance_id, port_id in (
                ("source", connector.source_instance_id, connector.source_port_id),
                ("target", connector.target_instance_id, connector.target_port_id),
            ):
                if instance_id not in instance_ids:
                    violations.append(
                        IntegrityViolation(
                            "connector_instance",
                            f"ECU connector {connector.name} references non-existent "
                            f"{end} instance: {instance_id}",
                            connector.id,
                        )
                    )
                if port_id not in port_owner:
                    violations.append(
                        IntegrityViolation(
                            "connector_port",
                            f"ECU connector {connector.name} references non-existent "
                            f"{end} port: {port_id}",
                            connector.id,
                        )
                    )

    return ValidationResult(violations=violations)


__all__ = ["IntegrityViolation", "ValidationResult", "validate_project"]
