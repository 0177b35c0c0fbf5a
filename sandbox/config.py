import dataclasses
import json
import logging
import threading
from dataclasses import dataclass

import pygame

logger = logging.getLogger("sandbox")

# --- Display and Performance ---
SCREEN_WIDTH = 1280
SCREEN_HEIGHT = 800
FPS = 60
WINDOW_TITLE = "Collision Sandbox"

# --- Background and Trails ---
BACKGROUND_COLOR = pygame.Color(0, 5, 25)

# --- Ball Color ---
BALL_SATURATION = 70  # Percent
BALL_LIGHTNESS = 50   # Percent
HUE_RANGE = 360
HUE_DRIFT_DELAY = 20        # Ticks after a collision before the hue starts to rotate
HUE_DRIFT_PERIOD = 10000    # Ticks for a full 360 degree rotation
COLLISION_COLOR_PERSISTENCE = 10  # Ticks during which a re-collision keeps its color

# --- Spawning ---
SPAWN_JITTER = 10  # Max offset (units) of collision offspring from the victim's position

# --- Stats ---
STATS_SAMPLE_PROBABILITY = 0.05

# --- Audio ---
SAMPLE_RATE = 48000
AUDIO_BLOCK_SIZE = 512
NOISE_TYPES = ("white", "pink", "brown", "blue", "violet", "lfsr", "velvet")
MIN_FILTER_Q = 0.0001

# --- Boolean spellings accepted from config files ---
TRUE_STRINGS = ("true", "yes", "on", "1")
FALSE_STRINGS = ("false", "no", "off", "0", "")

# --- Control Ranges (lower, upper) for every tunable parameter ---
CONTROL_RANGES = {
    "max_balls": (10, 300),
    "initial_balls": (1, 50),
    "max_spawn_per_collision": (1, 10),
    "min_ball_size": (1, 100),
    "max_ball_size": (1, 100),
    "min_velocity": (-15, 15),
    "max_velocity": (-15, 15),
    "velocity_scale": (0.01, 2.0),
    "trail_opacity": (0.01, 0.99),
    "min_frequency": (20.0, 20000.0),
    "max_frequency": (20.0, 20000.0),
    "filter_q": (0.1, 100.0),
    "volume": (0.0, 1.0),
}

# Each lower bound is kept at or below its partner, and vice versa
PAIRED_BOUNDS = {
    "min_ball_size": ("max_ball_size", "lower"),
    "max_ball_size": ("min_ball_size", "upper"),
    "min_velocity": ("max_velocity", "lower"),
    "max_velocity": ("min_velocity", "upper"),
    "min_frequency": ("max_frequency", "lower"),
    "max_frequency": ("min_frequency", "upper"),
}


@dataclass(frozen=True)
class SimulationConfig:
    """Immutable snapshot of every tunable parameter."""

    # Population
    max_balls: int = 100
    initial_balls: int = 20
    max_spawn_per_collision: int = 5

    # Ball size and velocity bounds
    min_ball_size: int = 1
    max_ball_size: int = 50
    min_velocity: int = -7
    max_velocity: int = 7
    velocity_scale: float = 0.30

    # Visuals
    trail_opacity: float = 0.30
    paused: bool = False

    # Audio
    noise_type: str = "pink"
    audio_enabled: bool = False
    min_frequency: float = 100.0
    max_frequency: float = 4000.0
    filter_q: float = 12.0
    filter_bypass: bool = False
    volume: float = 0.5


FIELD_TYPES = {field.name: type(field.default) for field in dataclasses.fields(SimulationConfig)}


class ConfigStore:
    """
    Holds the live configuration and publishes a new snapshot on every change.

    Readers call snapshot() at well-defined points (start of a frame, start of
    an audio graph sync) and keep using that object; it never changes under
    them. The version counter lets readers tell whether anything moved.
    """

    def __init__(self, initial=None):
        self._lock = threading.Lock()
        self._snapshot = SimulationConfig()
        self.version = 0
        if initial:
            self.update(initial)

    def snapshot(self):
        return self._snapshot

    def set(self, name, value):
        """Replace a single named parameter, keeping all others."""
        return self.update({name: value})

    def update(self, changes):
        """
        Merge a partial mapping of parameter changes into the configuration.

        Args:
            changes: Mapping of parameter name to new value

        Returns:
            The new SimulationConfig snapshot
        """
        with self._lock:
            current = self._snapshot
            merged = {name: self._coerce(name, value) for name, value in changes.items()}

            # Keep min/max pairs ordered by clamping the incoming bound against its partner
            for name in list(merged):
                if name not in PAIRED_BOUNDS:
                    continue
                partner, side = PAIRED_BOUNDS[name]
                if side == "upper" and partner in merged:
                    continue  # The lower bound of a pair changed together yields to the upper one
                partner_value = merged.get(partner, getattr(current, partner))
                value = merged[name]
                bounded = min(value, partner_value) if side == "lower" else max(value, partner_value)
                if bounded != value:
                    logger.warning(f"Clamped {name}={value} to {partner}={bounded}")
                    merged[name] = bounded

            self._snapshot = dataclasses.replace(current, **merged)
            self.version += 1
            logger.debug(f"Config v{self.version}: {merged}")
            return self._snapshot

    def _coerce(self, name, value):
        if name not in FIELD_TYPES:
            raise ValueError(f"Unknown configuration parameter '{name}'")

        field_type = FIELD_TYPES[name]
        if field_type is bool:
            if isinstance(value, str):
                text = value.strip().lower()
                if text in TRUE_STRINGS:
                    return True
                if text in FALSE_STRINGS:
                    return False
                raise ValueError(f"Cannot read '{value}' as a boolean for '{name}'")
            return bool(value)
        if field_type is str:
            value = str(value)
            if name == "noise_type" and value not in NOISE_TYPES:
                raise ValueError(f"Unknown noise type '{value}', expected one of {NOISE_TYPES}")
            return value

        value = field_type(value)
        lower, upper = CONTROL_RANGES[name]
        clamped = field_type(max(lower, min(upper, value)))
        if clamped != value:
            logger.warning(f"Clamped {name}={value} to {clamped}")
        return clamped


def load_config_file(path):
    """
    Read a JSON object of configuration overrides.

    Args:
        path: Path to a JSON file such as {"max_balls": 150, "noise_type": "brown"}

    Returns:
        Dictionary of overrides, to be passed to ConfigStore.update
    """
    with open(path, "r") as f:
        overrides = json.load(f)
    if not isinstance(overrides, dict):
        raise ValueError(f"Config file {path} must contain a JSON object")
    logger.info(f"Loaded configuration overrides from {path}: {overrides}")
    return overrides
