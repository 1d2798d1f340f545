"""Engine configuration: every hand-tuned constant of the particle canvas."""

from dataclasses import asdict, dataclass, fields, replace


@dataclass(frozen=True)
class EngineConfig:
    """Tunable constants for buffers, shapes, transitions, camera and shading."""

    # Particle set
    particle_count: int = 30000
    scatter_extent: float = 40.0
    scatter_color: tuple = (0.1, 0.1, 0.1)

    # Shape / ambient split
    shape_fraction: float = 0.55
    ambient_extent: tuple = (80.0, 80.0, 60.0)
    ambient_depth_offset: float = -15.0
    ambient_red: tuple = (0.2, 0.45)

    # Transitions
    transition_rate: float = 0.6  # progress per second (~1.67s per morph)
    intro_preemptible: bool = True

    # Render loop
    max_frame_delta: float = 0.1
    idle_spin_rate: float = 0.1
    pointer_yaw: float = 0.5
    pointer_pitch: float = 0.3
    rotation_damping: float = 5.0

    # Shading
    explosion_scale: float = 12.0
    noise_amplitude: float = 0.15
    point_scale: float = 1.0

    # Camera
    camera_fov: float = 60.0
    camera_distance: float = 12.0
    camera_near: float = 0.1
    camera_far: float = 100.0
    background: tuple = (0.012, 0.012, 0.031)

    def __post_init__(self):
        if self.particle_count <= 0:
            raise ValueError(f"particle_count must be > 0, got {self.particle_count}")
        if not 0.0 < self.shape_fraction <= 1.0:
            raise ValueError(f"shape_fraction must be in (0, 1], got {self.shape_fraction}")
        if self.transition_rate <= 0.0:
            raise ValueError(f"transition_rate must be > 0, got {self.transition_rate}")
        if self.max_frame_delta <= 0.0:
            raise ValueError(f"max_frame_delta must be > 0, got {self.max_frame_delta}")
        if self.camera_near <= 0.0 or self.camera_far <= self.camera_near:
            raise ValueError("camera clip planes must satisfy 0 < near < far")
        lo, hi = self.ambient_red
        if not 0.0 <= lo <= hi:
            raise ValueError(f"ambient_red must be an ascending pair, got {self.ambient_red}")

    @classmethod
    def from_dict(cls, data: dict) -> "EngineConfig":
        """Build a config from a (possibly partial) dict. Unknown keys are ignored."""
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            if key not in known:
                continue
            # JSON round-trips tuples as lists
            if isinstance(value, list):
                value = tuple(value)
            kwargs[key] = value
        if "particle_count" in kwargs:
            kwargs["particle_count"] = int(kwargs["particle_count"])
        return cls(**kwargs)

    def to_dict(self) -> dict:
        data = asdict(self)
        for key, value in data.items():
            if isinstance(value, tuple):
                data[key] = list(value)
        return data

    def updated(self, **changes) -> "EngineConfig":
        return replace(self, **changes)


DEFAULT_CONFIG = EngineConfig()
