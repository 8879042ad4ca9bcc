"""
Quality metrics computed after cleaning.
"""

from .reporter import completeness_pct, compute_quality_metrics

__all__ = [
    "completeness_pct",
    "compute_quality_metrics",
]
