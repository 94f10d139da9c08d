"""Synthesis module - Requirement records to a deduplicated artifact set.

Exports:
- ArtifactSynthesizer / generate_artifacts: Artifact generation
- SynthesisConfig: [synthesis] config section
- ArtifactSet and the per-kind artifact dataclasses
"""

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
from swcforge.synthesis.synthesizer import (
    ArtifactSynthesizer,
    SynthesisConfig,
    generate_artifacts,
    infer_swc_category,
)

__all__ = [
    "AccessPointArtifact",
    "ArtifactSet",
    "ArtifactSynthesizer",
    "DataElementArtifact",
    "EcuCompositionArtifact",
    "InterfaceArtifact",
    "PortArtifact",
    "RunnableArtifact",
    "SwcArtifact",
    "SwcInstanceArtifact",
    "SynthesisConfig",
    "generate_artifacts",
    "infer_swc_category",
]
