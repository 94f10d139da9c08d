"""RequirementExtractor - Turn requirement text into RequirementDocument records.

Each non-blank line long enough to be a requirement is parsed on its
own. Lines that yield no component, interface or signal are dropped
without error; extraction never raises for unparseable content.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

from swcforge.config.defaults import DEFAULT_CONFIG
from swcforge.core import naming
from swcforge.core.models import (
    Communication,
    DataElementSpec,
    DerivedElements,
    EcuBehavior,
    RequirementDocument,
    Timing,
)
from swcforge.extraction import patterns
from swcforge.extraction.patterns import Candidate, CandidateExtractor

logger = logging.getLogger(__name__)

_DEFAULTS = DEFAULT_CONFIG["extraction"]


@dataclass
class ExtractionConfig:
    """Configuration for requirement extraction.

    Loaded from the [extraction] config section.
    """

    min_line_length: int = _DEFAULTS["min_line_length"]
    min_token_length: int = _DEFAULTS["min_token_length"]
    stopwords: list[str] = field(default_factory=lambda: list(_DEFAULTS["stopwords"]))
    excluded_interface_tokens: list[str] = field(
        default_factory=lambda: list(_DEFAULTS["excluded_interface_tokens"])
    )
    default_interface: str = _DEFAULTS["default_interface"]
    default_period_ms: int = DEFAULT_CONFIG["synthesis"]["default_period_ms"]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ExtractionConfig":
        """Create ExtractionConfig from a full configuration dictionary.

        Args:
            data: Configuration dict with an optional "extraction" section

        Returns:
            ExtractionConfig instance
        """
        section = data.get("extraction", {})
        return cls(
            min_line_length=section.get("min_line_length", _DEFAULTS["min_line_length"]),
            min_token_length=section.get("min_token_length", _DEFAULTS["min_token_length"]),
            stopwords=list(section.get("stopwords", _DEFAULTS["stopwords"])),
            excluded_interface_tokens=list(
                section.get("excluded_interface_tokens", _DEFAULTS["excluded_interface_tokens"])
            ),
            default_interface=section.get("default_interface", _DEFAULTS["default_interface"]),
            default_period_ms=data.get("synthesis", {}).get(
                "default_period_ms", DEFAULT_CONFIG["synthesis"]["default_period_ms"]
            ),
        )


class RequirementExtractor:
    """
    Extracts structured requirements from plain text.
    """

    def __init__(self, config: Optional[ExtractionConfig] = None):
        """
        Initialize extractor.

        Args:
            config: Extraction configuration (defaults if None)
        """
        self.config = config or ExtractionConfig()
        self._stopwords = {word.lower() for word in self.config.stopwords}

    def parse(self, text: str, source: str = "parsed") -> list[RequirementDocument]:
        """
        Parse a text block into requirement records.

        Args:
            text: Decoded requirement text, one requirement per line
            source: Source label recorded on every record

        Returns:
            RequirementDocument list in input order (possibly empty)

        Raises:
            TypeError: If text is None
        """
        if text is None:
            raise TypeError("text must be a string, not None")

        lines = [line.strip() for line in text.splitlines() if line.strip()]
        requirements = []
        for index, line in enumerate(lines):
            if len(line) < self.config.min_line_length:
                continue
            requirement = self.parse_unit(line, f"REQ_{index + 1}", source)
            if requirement is not None:
                requirements.append(requirement)

        logger.info("Extracted %d requirement(s) from %d line(s)", len(requirements), len(lines))
        return requirements

    def parse_unit(
        self, line: str, req_id: str, source: str = "parsed"
    ) -> Optional[RequirementDocument]:
        """Parse one requirement unit; None if it names no entity."""
        swcs = self.extract_components(line)
        interfaces = self.extract_interfaces(line, swcs)
        signals = self.extract_signals(line)

        if not (swcs or interfaces or signals):
            logger.debug("%s: no extractable entity, skipped", req_id)
            return None

        timing = patterns.timing(line)
        derived = DerivedElements(
            swcs=tuple(swcs),
            interfaces=tuple(interfaces),
            signals=tuple(signals),
            ports=tuple(self._derive_ports(swcs, interfaces)),
            runnables=tuple(self._derive_runnables(swcs, timing)),
        )
        requirement = RequirementDocument(
            id=req_id,
            short_name=f"Requirement {req_id}",
            description=line,
            source=source,
            category=patterns.classify_category(line),
            priority=patterns.classify_priority(line),
            derived_elements=derived,
            communication=self.extract_communication(line, signals),
            timing=timing,
            ecu_behavior=self.extract_ecu_behavior(line, swcs),
        )
        logger.debug(
            "%s: %d component(s), %d interface(s), %d signal(s)",
            req_id,
            len(swcs),
            len(interfaces),
            len(signals),
        )
        return requirement

    # ─────────────────────────────────────────────────────────────────────
    # Entity families
    # ─────────────────────────────────────────────────────────────────────

    def extract_components(self, text: str) -> list[str]:
        """Canonical component names in order of first appearance."""
        return self._union(
            text, patterns.COMPONENT_EXTRACTORS, naming.extracted_component_name
        )

    def extract_interfaces(self, text: str, swcs: list[str]) -> list[str]:
        """Interface names: the component-pair interface, then free-text ones."""
        found: list[str] = []
        if len(swcs) >= 2:
            found.append(naming.port_interface_name(swcs[0], swcs[1]))

        excluded = [token.lower() for token in self.config.excluded_interface_tokens]

        def canonicalize(token: str) -> Optional[str]:
            if any(word in token.lower() for word in excluded):
                return None
            return naming.interface_name(token)

        for name in self._union(text, patterns.INTERFACE_EXTRACTORS, canonicalize):
            if name.lower() not in {f.lower() for f in found}:
                found.append(name)

        if not found and patterns.mentions_communication(text):
            found.append(self.config.default_interface)
        return found

    def extract_signals(self, text: str) -> list[str]:
        """Title-cased signal names."""
        return self._union(text, patterns.SIGNAL_EXTRACTORS, str.capitalize)

    def extract_data_elements(self, text: str, signals: list[str]) -> list[DataElementSpec]:
        """Typed data elements, or elements inferred from the signal list."""
        candidates = self._ordered(text, patterns.TYPED_ELEMENT_EXTRACTORS)
        elements: list[DataElementSpec] = []
        seen: set[str] = set()
        for candidate in candidates:
            if patterns.is_base_type(candidate.value) or not self._accept(candidate.value):
                continue
            name = candidate.value.capitalize()
            if name.lower() in seen:
                continue
            seen.add(name.lower())
            elements.append(DataElementSpec(name=name, type=candidate.type or "uint16"))

        if elements:
            return elements
        return [
            DataElementSpec(name=signal, type=patterns.infer_signal_type(signal))
            for signal in signals
        ]

    def extract_communication(self, text: str, signals: list[str]) -> Optional[Communication]:
        """Communication block, or None without direction and data elements."""
        direction = patterns.direction(text)
        data_elements = self.extract_data_elements(text, signals)
        if direction is None and not data_elements:
            return None
        return Communication(
            interface_type=patterns.interface_type(text),
            direction=direction,
            data_elements=tuple(data_elements),
        )

    def extract_ecu_behavior(self, text: str, swcs: list[str]) -> Optional[EcuBehavior]:
        """ECU hint from the first acceptable ECU name match."""
        for candidate in patterns.ecu_name_candidates(text):
            if self._accept(candidate.value):
                ecu_name = candidate.value[:1].upper() + candidate.value[1:]
                return EcuBehavior(ecu_name=ecu_name, swc_instances=tuple(swcs))
        return None

    # ─────────────────────────────────────────────────────────────────────
    # Derived names
    # ─────────────────────────────────────────────────────────────────────

    @staticmethod
    def _derive_ports(swcs: list[str], interfaces: list[str]) -> list[str]:
        if len(swcs) < 2 or not interfaces:
            return []
        return [naming.provided_port_name(swcs[0]), naming.required_port_name(swcs[1])]

    def _derive_runnables(self, swcs: list[str], timing: Optional[Timing]) -> list[str]:
        runnables = []
        for swc in swcs:
            runnables.append(naming.init_runnable_name(swc))
            name, _, _ = naming.main_runnable(swc, timing, self.config.default_period_ms)
            runnables.append(name)
        return runnables

    # ─────────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────────

    def _accept(self, token: str) -> bool:
        """Reject short tokens and stopwords."""
        return len(token) >= self.config.min_token_length and token.lower() not in self._stopwords

    @staticmethod
    def _ordered(text: str, extractors: Iterable[CandidateExtractor]) -> list[Candidate]:
        """All candidates of a family, sorted by position (family order breaks ties)."""
        candidates = [c for extract in extractors for c in extract(text)]
        return sorted(candidates, key=lambda c: c.position)

    def _union(
        self,
        text: str,
        extractors: Iterable[CandidateExtractor],
        canonicalize: Callable[[str], Optional[str]],
    ) -> list[str]:
        """Run a family, canonicalize and deduplicate case-insensitively."""
        names: list[str] = []
        seen: set[str] = set()
        for candidate in self._ordered(text, extractors):
            if not self._accept(candidate.value):
                continue
            name = canonicalize(candidate.value)
            if not name or name.lower() in seen:
                continue
            seen.add(name.lower())
            names.append(name)
        return names


def parse_text(text: str, config: Optional[ExtractionConfig] = None) -> list[RequirementDocument]:
    """Parse requirement text with a one-off extractor."""
    return RequirementExtractor(config).parse(text)
