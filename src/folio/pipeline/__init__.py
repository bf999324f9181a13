from .dag import DEFAULT_PHASES, validate_phases
from .runner import assemble_document, run_pipeline

__all__ = ["DEFAULT_PHASES", "assemble_document", "run_pipeline", "validate_phases"]
