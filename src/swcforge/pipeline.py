"""Pipeline - Requirement text to an integrated, validated project graph.

Chains RequirementExtractor, ArtifactSynthesizer and ProjectGraph.integrate
and reports what was generated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from swcforge.config import DEFAULT_CONFIG
from swcforge.core.models import RequirementDocument
from swcforge.extraction import ExtractionConfig, RequirementExtractor
from swcforge.model import MutationEntry, ProjectGraph, ValidationResult
from swcforge.synthesis import ArtifactSet, ArtifactSynthesizer, SynthesisConfig

logger = logging.getLogger(__name__)


@dataclass
class CompilationReport:
    """Result of compile_requirements().

    Attributes:
        requirements: Extracted requirement records
        artifacts: Synthesized artifact set
        graph: The project graph the artifacts were integrated into
        mutation: The integrate mutation record
        validation: Graph validation after integration
    """

    requirements: list[RequirementDocument]
    artifacts: ArtifactSet
    graph: ProjectGraph
    mutation: MutationEntry
    validation: ValidationResult

    @property
    def counts(self) -> dict[str, int]:
        """Generated artifact counts, plus the number of requirements."""
        return {"requirements": len(self.requirements), **self.artifacts.counts()}

    def summary(self) -> str:
        counts = self.counts
        return (
            f"Generated {counts['swcs']} SWCs, {counts['interfaces']} interfaces, "
            f"{counts['ports']} ports, {counts['runnables']} runnables and "
            f"{counts['access_points']} access points from "
            f"{counts['requirements']} requirements"
        )


def compile_requirements(
    text: str,
    graph: Optional[ProjectGraph] = None,
    config: Optional[dict[str, Any]] = None,
    source: str = "parsed",
) -> CompilationReport:
    """Extract, synthesize and integrate requirement text.

    Args:
        text: Decoded requirement text
        graph: Graph to integrate into (a new one if None)
        config: Full configuration dict (defaults if None)
        source: Source label for the extracted requirements

    Returns:
        CompilationReport

    Raises:
        TypeError: If text is None.
        UnresolvedReferenceError: If the synthesized batch does not resolve.
    """
    config = config if config is not None else DEFAULT_CONFIG
    if graph is None:
        project = config.get("project", {})
        graph = ProjectGraph(
            name=project.get("name") or "Untitled",
            autosar_version=project.get("autosar_version", "4.3.1"),
        )

    requirements = RequirementExtractor(ExtractionConfig.from_dict(config)).parse(text, source)
    artifacts = ArtifactSynthesizer(SynthesisConfig.from_dict(config)).generate(requirements)
    mutation = graph.integrate(artifacts)
    validation = graph.validate()

    report = CompilationReport(
        requirements=requirements,
        artifacts=artifacts,
        graph=graph,
        mutation=mutation,
        validation=validation,
    )
    logger.info(report.summary())
    if not validation.is_valid:
        logger.warning("Project has %d integrity error(s)", len(validation.errors))
    return report


__all__ = ["CompilationReport", "compile_requirements"]
