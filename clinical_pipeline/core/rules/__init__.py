"""
Validation rule engine and pipeline configuration.
"""

from .category_mapping import CategoryMapping
from .rule_config import (
    PipelineConfig,
    PipelineConfigLoader,
    RuleConfigBuilder,
    load_config,
)
from .rule_engine import RuleEngine

__all__ = [
    "CategoryMapping",
    "PipelineConfig",
    "PipelineConfigLoader",
    "RuleConfigBuilder",
    "RuleEngine",
    "load_config",
]
