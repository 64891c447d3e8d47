from .loader import DEFAULT_CONFIG_TEMPLATE, config_search_paths, load_config
from .models import (
    ArchiveConfig,
    BackendOptions,
    ConverterConfig,
    MarkdownOptions,
    PageRange,
)

__all__ = [
    "ArchiveConfig",
    "BackendOptions",
    "ConverterConfig",
    "DEFAULT_CONFIG_TEMPLATE",
    "MarkdownOptions",
    "PageRange",
    "config_search_paths",
    "load_config",
]
