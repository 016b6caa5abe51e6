"""YAML volume definitions for cryptmount."""
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from bsdadm.core.errors import ConfigValidationError, DiskSpecError
from bsdadm.models.disk import DiskSpec, MountRequest

# Default config search paths (ordered by proximity to current run)
CONFIG_PATHS = [
    "./bsdadm.yml",
    str(Path.home() / ".config" / "bsdadm" / "bsdadm.yml"),
    "/etc/bsdadm.yml",
]

REQUIRED_KEYS = ("disk0", "disk1", "dir")


def find_config(config_path: Optional[str] = None) -> Optional[str]:
    """Locate the volume file; None when nothing is configured."""
    if config_path:
        return config_path

    if env_config := os.environ.get("BSDADM_CONFIG"):
        return env_config

    for path in CONFIG_PATHS:
        if Path(path).exists():
            return path

    return None


class VolumeConfigLoader:
    """Loads named cryptmount volumes from a YAML file.

    Example file::

        volumes:
          backup:
            disk0: a3a6acb427840bc0.a
            disk1: 4a9f12a79235b9bd.d
            dir: /backup
            mountopts: -o softdep,noatime
    """

    def __init__(self, config_path: str):
        self.config_path = Path(config_path)
        self.volumes: Dict[str, Dict[str, Any]] = {}

    def load(self) -> Dict[str, Dict[str, Any]]:
        if not self.config_path.exists():
            raise ConfigValidationError(f"Config file not found: {self.config_path}")

        with open(self.config_path) as f:
            try:
                raw = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigValidationError(f"Invalid YAML in {self.config_path}: {e}") from e

        if not raw:
            raise ConfigValidationError(f"Config file is empty: {self.config_path}")
        if not isinstance(raw, dict) or not isinstance(raw.get("volumes"), dict):
            raise ConfigValidationError(f"{self.config_path}: expected a 'volumes' mapping")

        for name, volume in raw["volumes"].items():
            if not isinstance(volume, dict):
                raise ConfigValidationError(f"Volume '{name}' must be a mapping")
        self.volumes = raw["volumes"]
        return self.volumes

    def volume_names(self) -> List[str]:
        return sorted(self.volumes)

    def get_volume(self, name: str) -> Dict[str, Any]:
        if name not in self.volumes:
            known = ", ".join(self.volume_names()) or "none"
            raise ConfigValidationError(f"Unknown volume '{name}' (defined: {known})")
        return self.volumes[name]

    def build_request(
        self,
        name: str,
        default_mount_options: str,
        overrides: Optional[Dict[str, Optional[str]]] = None,
    ) -> MountRequest:
        """Build a MountRequest from a volume, letting non-None overrides win."""
        values = {key: str(value) for key, value in self.get_volume(name).items() if value is not None}
        for key, value in (overrides or {}).items():
            if value is not None:
                values[key] = value

        missing = [key for key in REQUIRED_KEYS if not values.get(key)]
        if missing:
            raise ConfigValidationError(f"Volume '{name}' is missing: {', '.join(missing)}")

        try:
            physical = DiskSpec.parse(values["disk0"])
            logical = DiskSpec.parse(values["disk1"])
        except DiskSpecError as e:
            raise ConfigValidationError(f"Volume '{name}': {e}") from e

        return MountRequest(
            physical=physical,
            logical=logical,
            target_dir=values["dir"],
            mount_options=values.get("mountopts", default_mount_options),
        )
