"""ArtifactSynthesizer - Build an architecture model from requirement records.

Requirements are processed in input order. Every artifact is created
only if no artifact with the same canonical name (and owning component,
where applicable) exists yet, so synthesizing a superset of earlier
requirements never duplicates anything.

Per requirement, in order:
1. Components
2. Interfaces, with
3. their data elements
4. Ports
5. Runnables
6. Access points

An ECU composition holding one instance per component is derived once
for the whole batch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from swcforge.config.defaults import DEFAULT_CONFIG
from swcforge.core import naming
from swcforge.core.models import (
    AccessType,
    Direction,
    InterfaceType,
    PortDirection,
    RequirementDocument,
    RunnableType,
    SwcCategory,
)
from swcforge.synthesis.artifacts import (
    AccessPointArtifact,
    ArtifactSet,
    DataElementArtifact,
    EcuCompositionArtifact,
    InterfaceArtifact,
    PortArtifact,
    RunnableArtifact,
    SwcArtifact,
    SwcInstanceArtifact,
)

logger = logging.getLogger(__name__)

_DEFAULTS = DEFAULT_CONFIG["synthesis"]

# Description keywords -> component category, first hit wins
SWC_CATEGORY_KEYWORDS: tuple[tuple[SwcCategory, tuple[str, ...]], ...] = (
    (SwcCategory.SENSOR_ACTUATOR, ("sensor", "actuator")),
    (SwcCategory.COMPLEX_DRIVER, ("driver", "hardware")),
    (SwcCategory.SERVICE, ("service", "diagnostic")),
    (SwcCategory.ECU_ABSTRACTION, ("abstraction", "layer")),
)


def infer_swc_category(description: str) -> SwcCategory:
    """Component category from keywords in the requirement text."""
    lower = description.lower()
    for category, keywords in SWC_CATEGORY_KEYWORDS:
        if any(keyword in lower for keyword in keywords):
            return category
    return SwcCategory.APPLICATION


@dataclass
class SynthesisConfig:
    """Configuration for artifact synthesis ([synthesis] config section)."""

    default_ecu_name: str = _DEFAULTS["default_ecu_name"]
    default_period_ms: int = _DEFAULTS["default_period_ms"]
    signal_data_type: str = _DEFAULTS["signal_data_type"]
    fallback_data_type: str = _DEFAULTS["fallback_data_type"]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SynthesisConfig":
        """Create SynthesisConfig from a full configuration dictionary."""
        section = data.get("synthesis", {})
        return cls(
            default_ecu_name=section.get("default_ecu_name", _DEFAULTS["default_ecu_name"]),
            default_period_ms=section.get("default_period_ms", _DEFAULTS["default_period_ms"]),
            signal_data_type=section.get("signal_data_type", _DEFAULTS["signal_data_type"]),
            fallback_data_type=section.get("fallback_data_type", _DEFAULTS["fallback_data_type"]),
        )


class _Batch:
    """Name indexes over the ArtifactSet being built by one generate() call."""

    def __init__(self) -> None:
        self.artifacts = ArtifactSet()
        self._swcs: dict[str, SwcArtifact] = {}
        self._interfaces: dict[str, InterfaceArtifact] = {}
        self._catalog: set[str] = set()
        self._ports: set[tuple[str, str]] = set()
        self._runnables: set[tuple[str, str]] = set()
        self._access_points: set[tuple[str, str, str]] = set()

    def swc(self, name: str) -> Optional[SwcArtifact]:
        return self._swcs.get(naming.component_key(name))

    def add_swc(self, swc: SwcArtifact) -> SwcArtifact:
        self._swcs[naming.component_key(swc.name)] = swc
        self.artifacts.swcs.append(swc)
        return swc

    def interface(self, name: str) -> Optional[InterfaceArtifact]:
        return self._interfaces.get(naming.name_key(name))

    def add_interface(self, interface: InterfaceArtifact) -> None:
        self._interfaces[naming.name_key(interface.name)] = interface
        self.artifacts.interfaces.append(interface)
        for element in interface.data_elements:
            if naming.name_key(element.name) not in self._catalog:
                self._catalog.add(naming.name_key(element.name))
                self.artifacts.data_elements.append(element)

    def add_port(self, port: PortArtifact) -> bool:
        key = (naming.component_key(port.swc_name), naming.name_key(port.name))
        if key in self._ports:
            return False
        self._ports.add(key)
        self.artifacts.ports.append(port)
        return True

    def add_runnable(self, runnable: RunnableArtifact) -> bool:
        key = (naming.component_key(runnable.swc_name), naming.name_key(runnable.name))
        if key in self._runnables:
            return False
        self._runnables.add(key)
        self.artifacts.runnables.append(runnable)
        return True

    def add_access_point(self, access_point: AccessPointArtifact) -> bool:
        key = (
            naming.component_key(access_point.swc_name),
            naming.name_key(access_point.runnable_name),
            naming.name_key(access_point.name),
        )
        if key in self._access_points:
            return False
        self._access_points.add(key)
        self.artifacts.access_points.append(access_point)
        return True


class ArtifactSynthesizer:
    """
    Generates a deduplicated ArtifactSet from requirement records.
    """

    def __init__(self, config: Optional[SynthesisConfig] = None):
        """
        Initialize synthesizer.

        Args:
            config: Synthesis configuration (defaults if None)
        """
        self.config = config or SynthesisConfig()

    def generate(self, requirements: Iterable[RequirementDocument]) -> ArtifactSet:
        """
        Synthesize artifacts for a batch of requirements.

        Args:
            requirements: Requirement records in processing order

        Returns:
            ArtifactSet (empty when nothing was derivable)

        Raises:
            TypeError: If requirements is None
        """
        if requirements is None:
            raise TypeError("requirements must be an iterable, not None")

        requirements = list(requirements)
        batch = _Batch()
        for requirement in requirements:
            logger.debug("Processing requirement: %s", requirement)
            self._process(requirement, batch)

        self._add_ecu_composition(requirements, batch)
        logger.info("Generated artifacts: %s", batch.artifacts.counts())
        return batch.artifacts

    def _process(self, req: RequirementDocument, batch: _Batch) -> None:
        components = self._create_components(req, batch)
        self._create_interfaces(req, batch)
        self._create_ports(req, components, batch)
        self._create_runnables(req, components, batch)
        self._create_access_points(components, batch)

    # ─────────────────────────────────────────────────────────────────────
    # Steps
    # ─────────────────────────────────────────────────────────────────────

    def _create_components(self, req: RequirementDocument, batch: _Batch) -> list[SwcArtifact]:
        """Resolve or create every component of the requirement, without repeats."""
        components: list[SwcArtifact] = []
        for raw_name in req.derived_elements.swcs:
            swc = batch.swc(raw_name)
            if swc is None:
                name = naming.component_name(raw_name)
                base = naming.component_base(name)
                swc = batch.add_swc(
                    SwcArtifact(
                        name=name,
                        description=(
                            f"Software component for {base.lower()} functionality "
                            f"(Generated from {req.id})"
                        ),
                        category=infer_swc_category(req.description),
                    )
                )
                logger.debug("Created SWC: %s", name)
            if swc not in components:
                components.append(swc)
        return components

    def _create_interfaces(self, req: RequirementDocument, batch: _Batch) -> None:
        interface_type = (
            req.communication.interface_type
            if req.communication
            else InterfaceType.SENDER_RECEIVER
        )
        for name in req.derived_elements.interfaces:
            if batch.interface(name) is not None:
                continue
            elements = self._data_elements_for(req, name)
            batch.add_interface(
                InterfaceArtifact(name=name, type=interface_type, data_elements=elements)
            )
            logger.debug("Created Interface: %s with %d data elements", name, len(elements))

    def _data_elements_for(
        self, req: RequirementDocument, interface_name: str
    ) -> list[DataElementArtifact]:
        """Explicit elements first, then one per signal, then a generic fallback."""
        if req.communication and req.communication.data_elements:
            return [
                DataElementArtifact(
                    name=element.name,
                    application_data_type_ref=element.type,
                    category=element.category or "VALUE",
                    description=f"Data element {element.name} from {req.id}",
                )
                for element in req.communication.data_elements
            ]
        if req.derived_elements.signals:
            return [
                DataElementArtifact(
                    name=signal,
                    application_data_type_ref=self.config.signal_data_type,
                    description=f"Data element for {signal} signal from {req.id}",
                )
                for signal in req.derived_elements.signals
            ]
        return [
            DataElementArtifact(
                name="DataElement",
                application_data_type_ref=self.config.fallback_data_type,
                description=f"Default data element for {interface_name}",
            )
        ]

    def _create_ports(
        self, req: RequirementDocument, components: list[SwcArtifact], batch: _Batch
    ) -> None:
        interfaces = req.derived_elements.interfaces
        if not components or not interfaces:
            return
        primary = batch.interface(interfaces[0])
        interface_ref = primary.name if primary else interfaces[0]

        if len(components) == 1:
            swc = components[0]
            direction = req.communication.direction if req.communication else None
            if direction in (Direction.SENDER, Direction.BOTH):
                self._add_port(batch, swc, PortDirection.PROVIDED, interface_ref)
            if direction in (Direction.RECEIVER, Direction.BOTH):
                self._add_port(batch, swc, PortDirection.REQUIRED, interface_ref)
            return

        self._add_port(batch, components[0], PortDirection.PROVIDED, interface_ref)
        self._add_port(batch, components[1], PortDirection.REQUIRED, interface_ref)

    @staticmethod
    def _add_port(
        batch: _Batch, swc: SwcArtifact, direction: PortDirection, interface_ref: str
    ) -> None:
        if direction == PortDirection.PROVIDED:
            name = naming.provided_port_name(swc.name)
        else:
            name = naming.required_port_name(swc.name)
        port = PortArtifact(
            name=name, direction=direction, interface_ref=interface_ref, swc_name=swc.name
        )
        if batch.add_port(port):
            logger.debug("Created %s Port: %s for SWC: %s", direction.value, name, swc.name)

    def _create_runnables(
        self, req: RequirementDocument, components: list[SwcArtifact], batch: _Batch
    ) -> None:
        for swc in components:
            batch.add_runnable(
                RunnableArtifact(
                    name=naming.init_runnable_name(swc.name),
                    period=0,
                    runnable_type=RunnableType.INIT,
                    swc_name=swc.name,
                )
            )
            name, runnable_type, period = naming.main_runnable(
                swc.name, req.timing, self.config.default_period_ms
            )
            if batch.add_runnable(
                RunnableArtifact(
                    name=name, period=period, runnable_type=runnable_type, swc_name=swc.name
                )
            ):
                logger.debug(
                    "Created Runnable: %s (%s, %dms) for SWC: %s",
                    name,
                    runnable_type.value,
                    period,
                    swc.name,
                )

    def _create_access_points(self, components: list[SwcArtifact], batch: _Batch) -> None:
        """Cross product of each component's ports and non-init runnables."""
        for swc in components:
            runnables = [
                r
                for r in batch.artifacts.runnables_of(swc.name)
                if r.runnable_type != RunnableType.INIT
            ]
            for runnable in runnables:
                for port in batch.artifacts.ports_of(swc.name):
                    interface = batch.interface(port.interface_ref)
                    if interface is None or not interface.data_elements:
                        continue
                    element = interface.data_elements[0]
                    provided = port.direction == PortDirection.PROVIDED
                    batch.add_access_point(
                        AccessPointArtifact(
                            name=naming.access_point_name(
                                provided, runnable.name, port.name, element.name
                            ),
                            type=AccessType.IWRITE if provided else AccessType.IREAD,
                            port_ref=port.name,
                            data_element_ref=element.name,
                            runnable_name=runnable.name,
                            swc_name=swc.name,
                        )
                    )

    def _add_ecu_composition(
        self, requirements: list[RequirementDocument], batch: _Batch
    ) -> None:
        if not batch.artifacts.swcs:
            return
        ecu_name = next(
            (
                req.ecu_behavior.ecu_name
                for req in requirements
                if req.ecu_behavior and req.ecu_behavior.ecu_name
            ),
            self.config.default_ecu_name,
        )
        batch.artifacts.ecu_composition = EcuCompositionArtifact(
            name=naming.composition_name(ecu_name),
            ecu_name=ecu_name,
            swc_instances=[
                SwcInstanceArtifact(name=naming.instance_name(swc.name), swc_ref=swc.name)
                for swc in batch.artifacts.swcs
            ],
        )
        logger.debug(
            "Created ECU Composition: %s with %d SWC instances",
            batch.artifacts.ecu_composition.name,
            len(batch.artifacts.swcs),
        )


def generate_artifacts(
    requirements: Iterable[RequirementDocument], config: Optional[SynthesisConfig] = None
) -> ArtifactSet:
    """Synthesize artifacts with a one-off synthesizer."""
    return ArtifactSynthesizer(config).generate(requirements)
