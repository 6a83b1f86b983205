"""
Profile Manager - Loads and resolves scaffold profiles by application name.
"""
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from core.domain.errors import ProfileNotFoundError
from .profile_config import ScaffoldProfile, get_crm_profile

logger = logging.getLogger(__name__)


class ProfileManager:
    """
    Registry of scaffold profiles.

    Built-in profiles are registered first, then every YAML file in the
    bundled configs directory and any extra directories. Lookups are
    case-insensitive; a later file with the same name replaces an earlier one.
    """

    # Default configs directory
    CONFIGS_DIR = Path(__file__).parent / "configs"

    def __init__(self, extra_dirs: Optional[Iterable[str]] = None, load_bundled: bool = True):
        self._profiles: Dict[str, ScaffoldProfile] = {}

        self._load_builtin_profiles()
        if load_bundled:
            self.load_from_directory()
        for directory in extra_dirs or []:
            self.load_from_directory(directory)

    def _load_builtin_profiles(self):
        """Load built-in profiles."""
        self.register_profile(get_crm_profile())

    def load_from_directory(self, directory: str = None) -> int:
        """
        Load all YAML profiles from a directory.

        Args:
            directory: Path to configs directory. Defaults to profiles/configs.

        Returns:
            Number of profiles loaded.
        """
        config_dir = Path(directory) if directory else self.CONFIGS_DIR
        loaded = 0

        if not config_dir.exists():
            logger.debug("Profile directory not found: %s", config_dir)
            return loaded

        for yaml_file in sorted(config_dir.glob("*.yaml")):
            try:
                profile = ScaffoldProfile.load_from_yaml(str(yaml_file))
            except Exception as e:
                logger.warning("Could not load profile %s: %s", yaml_file, e)
                continue
            self.register_profile(profile)
            loaded += 1
            logger.debug("Loaded profile: %s (%s)", profile.name, yaml_file)

        return loaded

    def register_profile(self, profile: ScaffoldProfile) -> None:
        """Register a profile under its name."""
        self._profiles[profile.name.lower()] = profile

    def find_profile(self, name: str) -> Optional[ScaffoldProfile]:
        """Get a profile by name, or None."""
        if not name:
            return None
        return self._profiles.get(name.lower())

    def get_profile(self, name: str) -> ScaffoldProfile:
        """
        Get a profile by name.

        Raises:
            ProfileNotFoundError: If no profile with that name is registered.
        """
        profile = self.find_profile(name)
        if profile is None:
            raise ProfileNotFoundError(name, self.list_profiles())
        return profile

    def list_profiles(self) -> List[str]:
        """List all registered profile names."""
        return sorted(profile.name for profile in self._profiles.values())
