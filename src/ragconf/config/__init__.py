"""Configuration defaults, file and env layering, validated settings."""

from ragconf.config.hierarchy import load_config_hierarchy
from ragconf.config.schema import EngineSettings, VectorizerBackend

__all__ = ["EngineSettings", "VectorizerBackend", "load_config_hierarchy"]
