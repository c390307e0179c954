"""Configuration profile loading and the profile data model."""

from shoptools.configs.loader import (
    ConfigError,
    ConfigProfile,
    MaterialType,
    ToolTypeDefinition,
    UserTool,
    load_config,
    parse_operation,
)

__all__ = [
    "ConfigError",
    "ConfigProfile",
    "MaterialType",
    "ToolTypeDefinition",
    "UserTool",
    "load_config",
    "parse_operation",
]
