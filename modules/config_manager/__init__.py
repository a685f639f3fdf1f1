"""
Configuration Manager Module
============================

Responsibility:
- Centralized loading and validation of JSON configuration files.
- Enforcement of schema constraints and logical rules (grid axes, expressions).
- Defaults for every optional setting.
- Resource checks (CPU count vs. requested parallelism).
"""

from .config_manager import ConfigurationManager

__all__ = ['ConfigurationManager']
