"""
Validation engine and options configuration management.
"""

from .rule_config import ConfigurationError, OptionsBuilder, OptionsLoader
from .rule_engine import ReferenceLookup, ValidationEngine

__all__ = [
    "ValidationEngine",
    "ReferenceLookup",
    "OptionsLoader",
    "OptionsBuilder",
    "ConfigurationError",
]
