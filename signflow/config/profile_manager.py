"""Active scan profile for the running process.

The CLI selects it once per run from --profile. scan_placements, the API
and page rendering read it whenever no profile is passed explicitly.
"""

from typing import Optional

from .profile_loader import ProfileConfig, get_default_profile, list_available_profiles, load_profile

_active: Optional[ProfileConfig] = None


def set_profile(profile_name: str = "default") -> ProfileConfig:
    """Make a named profile the active one.

    "default" always resolves, falling back to built-in values when no
    default.yaml is installed.

    Raises:
        FileNotFoundError: If no profile file has that name; the message lists
            the profiles that do exist
        ValueError: If the profile file is invalid
    """
    global _active
    if profile_name == "default":
        _active = get_default_profile()
        return _active
    try:
        _active = load_profile(profile_name)
    except FileNotFoundError as e:
        available = ", ".join(list_available_profiles())
        raise FileNotFoundError(f"{e}; available profiles: {available}") from e
    return _active


def get_profile() -> ProfileConfig:
    """Active profile, loading the default on first use."""
    global _active
    if _active is None:
        _active = get_default_profile()
    return _active


def reset_profile() -> None:
    """Forget the active profile so the next get_profile() reloads the default."""
    global _active
    _active = None
