"""Configuration package."""

from .settings import (
    clear_ai_config,
    get_ai_config_path,
    get_ai_enabled,
    get_ai_endpoint,
    get_ai_key,
    get_ai_model,
    get_ai_provider,
    get_app_name,
    get_app_version,
    get_data_dir,
    get_store_path,
    load_ai_config,
    save_ai_config,
    set_ai_config,
)

__all__ = [
    'clear_ai_config',
    'get_ai_config_path',
    'get_ai_enabled',
    'get_ai_endpoint',
    'get_ai_key',
    'get_ai_model',
    'get_ai_provider',
    'get_app_name',
    'get_app_version',
    'get_data_dir',
    'get_store_path',
    'load_ai_config',
    'save_ai_config',
    'set_ai_config',
]
