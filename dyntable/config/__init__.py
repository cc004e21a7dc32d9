"""
Config package for dyntable.

Responsible for:
- reading table configs from JSON (single file or a config directory)
"""

from .io import load_table_config, load_table_configs, parse_table_config

__all__ = ["load_table_config", "load_table_configs", "parse_table_config"]
