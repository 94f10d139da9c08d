"""Artifact set - Synthesized architecture model before identity assignment.

Cross references are by name. ``swc_name`` and ``runnable_name`` are
temporary foreign keys that the integrity engine resolves to ids.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from swcforge.core.models import (
    AccessMode,
    AccessType,
    InterfaceType,
    PortDirection,
    RunnableType,
    SwcCategory,
)


@dataclass
class SwcArtifact:
    name: str
    description: str
    category: SwcCategory = SwcCategory.APPLICATION
    type: str = "atomic"


@dataclass
class DataElementArtifact:
    """A data element with its type reference mirrored into swDataDefProps."""

    name: str
    application_data_type_ref: str
    category: str = "VALUE"
    description: str = ""
    sw_data_def_props: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.sw_data_def_props:
            self.sw_data_def_props = {
                "base_type_ref": self.application_data_type_ref,
                "implementation_data_type_ref": self.application_data_type_ref,
            }


@dataclass
class InterfaceArtifact:
    name: str
    type: InterfaceType = InterfaceType.SENDER_RECEIVER
    data_elements: list[DataElementArtifact] = field(default_factory=list)


@dataclass
class PortArtifact:
    name: str
    direction: PortDirection
    interface_ref: str
    swc_name: str


@dataclass
class RunnableArtifact:
    name: str
    period: int
    runnable_type: RunnableType
    swc_name: str
    can_be_invoked_concurrently: bool = False


@dataclass
class AccessPointArtifact:
    name: str
    type: AccessType
    port_ref: str
    data_element_ref: str
    runnable_name: str
    swc_name: str
    access: AccessMode = AccessMode.IMPLICIT


@dataclass
class SwcInstanceArtifact:
    name: str
    swc_ref: str


@dataclass
class EcuCompositionArtifact:
    name: str
    ecu_name: str
    swc_instances: list[SwcInstanceArtifact] = field(default_factory=list)


@dataclass
class ArtifactSet:
    """Synthesizer output: one deduplicated batch of architecture artifacts."""

    swcs: list[SwcArtifact] = field(default_factory=list)
    interfaces: list[InterfaceArtifact] = field(default_factory=list)
    data_elements: list[DataElementArtifact] = field(default_factory=list)
    ports: list[PortArtifact] = field(default_factory=list)
    runnables: list[RunnableArtifact] = field(default_factory=list)
    access_points: list[AccessPointArtifact] = field(default_factory=list)
    ecu_composition: Optional[EcuCompositionArtifact] = None

    def counts(self) -> dict[str, int]:
        """Number of artifacts per collection."""
        return {
            "swcs": len(self.swcs),
            "interfaces": len(self.interfaces),
            "data_elements": len(self.data_elements),
            "ports": len(self.ports),
            "runnables": len(self.runnables),
            "access_points": len(self.access_points),
            "ecu_compositions": 1 if self.ecu_composition else 0,
        }

    def is_empty(self) -> bool:
        return not any(self.counts().values())

    def ports_of(self, swc_name: str) -> list[PortArtifact]:
        return [p for p in self.ports if p.swc_name == swc_name]

    def runnables_of(self, swc_name: str) -> list[RunnableArtifact]:
        return [r for r in self.runnables if r.swc_name == swc_name]
