"""Central configuration for signflow."""

import json
import logging
import os
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

# signflow/config/settings.py -> signflow/config -> signflow -> root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


def get_app_name() -> str:
    """Get application name."""
    return "signflow"


def get_app_version() -> str:
    """Get application version from pyproject.toml."""
    try:
        import tomli
        pyproject_path = _PROJECT_ROOT / "pyproject.toml"
        with open(pyproject_path, "rb") as f:
            pyproject = tomli.load(f)
            return pyproject.get("project", {}).get("version", "0.1.0")
    except (OSError, ImportError, ValueError):
        # Installed without the source tree
        return "0.1.0"


def get_data_dir() -> Path:
    """Get directory holding the document store.

    Returns:
        Path from SIGNFLOW_DATA_DIR, or project root / "data" (created if needed)
    """
    env_path = os.getenv('SIGNFLOW_DATA_DIR')
    data_dir = Path(env_path) if env_path else _PROJECT_ROOT / "data"
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def get_store_path() -> Path:
    """Get path to the JSON document store.

    Returns:
        Path from SIGNFLOW_STORE_PATH, or data dir / "documents.json"
    """
    env_path = os.getenv('SIGNFLOW_STORE_PATH')
    if env_path:
        return Path(env_path)
    return get_data_dir() / "documents.json"


def get_ai_enabled() -> bool:
    """Check if AI metadata analysis is enabled.

    Returns:
        True if AI_ENABLED environment variable is set to 'true' (case-insensitive).
        Falls back to the saved config file, then to whether a key or endpoint is set.
    """
    env_value = os.getenv('AI_ENABLED')
    if env_value is not None:
        return env_value.lower() == 'true'

    config = load_ai_config()
    if 'enabled' in config:
        return bool(config['enabled'])
    return bool(get_ai_key() or get_ai_endpoint())


def get_ai_endpoint() -> Optional[str]:
    """Get AI metadata service endpoint URL.

    Returns:
        AI endpoint URL from AI_ENDPOINT environment variable, or None
    """
    return os.getenv('AI_ENDPOINT')


def get_ai_provider() -> str:
    """Get AI provider name.

    Returns:
        Provider name ("openai" or "claude"), default "openai"
    """
    provider = os.getenv('AI_PROVIDER') or load_ai_config().get('provider') or 'openai'
    provider = provider.lower()
    if provider not in ['openai', 'claude']:
        logger.warning("Invalid AI provider: %s, using 'openai'", provider)
        return 'openai'
    return provider


def get_ai_model() -> str:
    """Get AI model name.

    Returns:
        Model name from AI_MODEL, the saved config, or a provider-specific default
    """
    model = os.getenv('AI_MODEL')
    if model:
        return model

    config = load_ai_config()
    model = config.get('model')
    if model:
        return model

    if get_ai_provider() == 'claude':
        return 'claude-3-5-haiku-latest'
    return 'gpt-4o-mini'


def get_ai_key() -> Optional[str]:
    """Get AI service API key.

    Returns:
        API key from AI_KEY environment variable, or from saved config, or None
    """
    key = os.getenv('AI_KEY')
    if key:
        return key
    return load_ai_config().get('api_key')


def get_ai_config_path() -> Path:
    """Get path to AI configuration file.

    Returns:
        Path from SIGNFLOW_AI_CONFIG, or configs/ai_config.json
    """
    env_path = os.getenv('SIGNFLOW_AI_CONFIG')
    if env_path:
        return Path(env_path)
    return _PROJECT_ROOT / "configs" / "ai_config.json"


def load_ai_config() -> dict:
    """Load AI configuration from file.

    Returns:
        Dict with AI configuration (enabled, provider, model, api_key); empty if absent or unreadable
    """
    config_path = get_ai_config_path()
    if config_path.exists():
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Failed to load AI config: %s", e)
    return {}


def save_ai_config(config: dict) -> None:
    """Save AI configuration to file.

    Args:
        config: Dict with AI configuration (enabled, provider, model, api_key)
    """
    config_path = get_ai_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        with open(config_path, 'w', encoding='utf-8') as f:
            json.dump(config, f, indent=2, ensure_ascii=False)
    except OSError as e:
        logger.error("Failed to save AI config: %s", e)
        raise


def set_ai_config(
    enabled: bool,
    provider: str,
    model: str,
    api_key: Optional[str] = None
) -> None:
    """Set AI configuration and save to file.

    Args:
        enabled: Whether AI is enabled
        provider: AI provider ("openai" or "claude")
        model: Model name
        api_key: Optional API key (if None, keeps existing key)
    """
    config = load_ai_config()
    config['enabled'] = enabled
    config['provider'] = provider
    config['model'] = model
    if api_key is not None:
        config['api_key'] = api_key
    save_ai_config(config)


def clear_ai_config() -> None:
    """Remove all saved AI configuration."""
    save_ai_config({})
