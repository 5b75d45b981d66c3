"""Profile loader for configurable scan and embedding behavior."""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_MARKER = "$signature"


@dataclass
class ProfileConfig:
    """Configuration profile for placeholder detection and rendering.

    Attributes:
        name: Profile name
        description: Free text
        marker: Placeholder text searched for in the text layer (case-sensitive)
        box_width: Nominal placement width in page units
        box_height: Nominal placement height in page units
        fallback_glyph_height: Glyph height used when the text layer reports none
        reconstruct_lines: Join fragments into lines before matching
        line_tolerance: Baseline tolerance for line grouping (None = derived from glyph heights)
        render_scale: Default scale for rendered page views
    """
    name: str
    description: str = ""
    marker: str = DEFAULT_MARKER
    box_width: float = 150.0
    box_height: float = 60.0
    fallback_glyph_height: float = 12.0
    reconstruct_lines: bool = False
    line_tolerance: Optional[float] = None
    render_scale: float = 1.5

    def __post_init__(self):
        """Validate profile values."""
        if not self.marker:
            raise ValueError("marker must not be empty")
        if self.box_width <= 0 or self.box_height <= 0:
            raise ValueError(
                f"box dimensions must be positive: {self.box_width}x{self.box_height}"
            )
        if self.fallback_glyph_height <= 0:
            raise ValueError("fallback_glyph_height must be positive")
        if self.render_scale <= 0:
            raise ValueError("render_scale must be positive")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProfileConfig':
        """Create ProfileConfig from dictionary; unknown keys are ignored."""
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        values.setdefault('name', 'default')
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


def get_profiles_dir() -> Path:
    """Get directory containing profile YAML files.

    Returns:
        SIGNFLOW_PROFILES_DIR if set, else configs/profiles relative to project root
    """
    env_dir = os.getenv("SIGNFLOW_PROFILES_DIR")
    if env_dir:
        return Path(env_dir)
    # signflow/config/profile_loader.py -> signflow/config -> signflow -> root
    project_root = Path(__file__).resolve().parent.parent.parent
    return project_root / "configs" / "profiles"


def load_profile(profile_name: str = "default") -> ProfileConfig:
    """Load a configuration profile.

    Args:
        profile_name: Name of profile to load (without .yaml extension)

    Returns:
        ProfileConfig object

    Raises:
        FileNotFoundError: If profile file doesn't exist
        ValueError: If profile file is invalid
    """
    profile_path = get_profiles_dir() / f"{profile_name}.yaml"

    if not profile_path.exists():
        raise FileNotFoundError(f"Profile not found: {profile_name} (expected at {profile_path})")

    try:
        with open(profile_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in profile {profile_name}: {e}") from e

    if not data:
        raise ValueError(f"Profile file is empty: {profile_path}")
    if not isinstance(data, dict):
        raise ValueError(f"Profile {profile_name} must be a mapping")

    try:
        return ProfileConfig.from_dict(data)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Error loading profile {profile_name}: {e}") from e


def list_available_profiles() -> list[str]:
    """List all available profile names.

    Returns:
        List of profile names (without .yaml extension)
    """
    profiles_dir = get_profiles_dir()
    if not profiles_dir.exists():
        return ["default"]
    profiles = [p.stem for p in profiles_dir.glob("*.yaml")]
    return sorted(profiles) if profiles else ["default"]


def get_default_profile() -> ProfileConfig:
    """Get default profile (always available).

    Returns:
        Default ProfileConfig
    """
    try:
        return load_profile("default")
    except FileNotFoundError:
        return ProfileConfig(name="default", description="Default configuration")
