"""
swcforge - Requirement-to-model compiler for AUTOSAR software components

swcforge extracts components, interfaces, signals and timing from
natural-language requirements, synthesizes a deduplicated AUTOSAR
architecture model from them and keeps the resulting project graph
referentially consistent under editing.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("swcforge")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"  # Not installed

from swcforge.core.models import RequirementDocument
from swcforge.extraction import RequirementExtractor, parse_text
from swcforge.model import (
    ProjectGraph,
    ProjectValidationError,
    UnresolvedReferenceError,
    serialize_project,
)
from swcforge.pipeline import CompilationReport, compile_requirements
from swcforge.synthesis import ArtifactSet, ArtifactSynthesizer, generate_artifacts

__all__ = [
    "__version__",
    "ArtifactSet",
    "ArtifactSynthesizer",
    "CompilationReport",
    "ProjectGraph",
    "ProjectValidationError",
    "RequirementDocument",
    "RequirementExtractor",
    "UnresolvedReferenceError",
    "compile_requirements",
    "generate_artifacts",
    "parse_text",
    "serialize_project",
]
