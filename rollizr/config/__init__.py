"""Configuration helpers: YAML loading with environment placeholders."""

from .loader import get_section, load_config, resolve_placeholders

__all__ = ["get_section", "load_config", "resolve_placeholders"]
