"""
Clinical data cleaning pipeline.

Imports a raw clinical CSV, validates and cleans it through a fixed sequence
of auditable stages, and exports the cleaned data with an audit trail and a
quality report.
"""

__version__ = "0.1.0"
