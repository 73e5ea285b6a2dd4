from .loader import apply_overrides, load_config, load_config_with_overrides
from .schema import (
    PipelineConfig,
    InputPaths,
    AnnotationConfig,
    SummaryConfig,
    OutputConfig,
)

__all__ = [
    "apply_overrides",
    "load_config",
    "load_config_with_overrides",
    "PipelineConfig",
    "InputPaths",
    "AnnotationConfig",
    "SummaryConfig",
    "OutputConfig",
]
