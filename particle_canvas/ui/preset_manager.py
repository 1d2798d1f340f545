"""Engine presets: named EngineConfig overrides, built in or saved as JSON."""

import json
import logging
import os

from particle_canvas.visualization.config import EngineConfig

logger = logging.getLogger(__name__)

PRESETS_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(__file__))),
    "assets", "presets",
)

# Overrides on top of EngineConfig defaults
BUILTIN = {
    "Default": {},
    "Dense": {
        "particle_count": 60000,
        "shape_fraction": 0.65,
        "point_scale": 0.8,
    },
    "Calm": {
        "transition_rate": 0.35,
        "idle_spin_rate": 0.04,
        "explosion_scale": 5.0,
        "noise_amplitude": 0.08,
        "rotation_damping": 2.5,
    },
    "Lite": {
        "particle_count": 8000,
        "point_scale": 1.4,
        "ambient_extent": [60.0, 60.0, 40.0],
    },
}


class PresetManager:
    """Resolves preset names to EngineConfig. Built-in names cannot be overridden."""

    def __init__(self, presets_dir: str = PRESETS_DIR):
        self.presets_dir = presets_dir

    def _path(self, name: str) -> str:
        return os.path.join(self.presets_dir, f"{name}.json")

    def get_all_names(self) -> list[str]:
        """Built-in presets in declaration order, then user presets sorted by name."""
        return list(BUILTIN) + sorted(self._list_user_presets())

    def load(self, name: str) -> EngineConfig | None:
        if name in BUILTIN:
            return EngineConfig.from_dict(BUILTIN[name])

        path = self._path(name)
        if not os.path.isfile(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return EngineConfig.from_dict(json.load(f))
        except (OSError, json.JSONDecodeError, TypeError, ValueError) as e:
            logger.warning("[Presets] Could not load %s: %s", path, e)
            return None

    def save(self, name: str, config: EngineConfig) -> bool:
        """Write a user preset. Returns False if the name is unusable or the write fails."""
        name = name.strip()
        if not self.is_valid_name(name):
            logger.warning("[Presets] Cannot save under %r", name)
            return False
        try:
            os.makedirs(self.presets_dir, exist_ok=True)
            with open(self._path(name), "w", encoding="utf-8") as f:
                json.dump(config.to_dict(), f, indent=2)
        except OSError as e:
            logger.warning("[Presets] Could not save %s: %s", name, e)
            return False
        logger.info("[Presets] Saved %s", name)
        return True

    @staticmethod
    def is_valid_name(name: str) -> bool:
        """User preset names: non-empty, a single path component, not a built-in."""
        name = name.strip()
        if not name or name in BUILTIN or name in (".", ".."):
            return False
        return not any(sep in name for sep in ("/", "\\", os.sep))

    def delete(self, name: str) -> bool:
        """Remove a user preset. Returns False if there was nothing to remove."""
        if name in BUILTIN:
            return False
        try:
            os.remove(self._path(name))
        except FileNotFoundError:
            return False
        return True

    def _list_user_presets(self) -> list[str]:
        if not os.path.isdir(self.presets_dir):
            return []
        stems = (os.path.splitext(f)[0] for f in os.listdir(self.presets_dir) if f.endswith(".json"))
        return [stem for stem in stems if stem not in BUILTIN]
