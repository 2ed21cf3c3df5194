"""
Simulator configuration.
Simple dataclass settings with named presets and JSON save/load.
"""
from dataclasses import asdict, dataclass, field, replace
import json
import logging

logger = logging.getLogger(__name__)


@dataclass
class CompilerConfig:
    """Constants used when turning DXF entities into G-code."""
    feed_rate: float = 400.0      # mm/min for every G1
    safe_z: float = 5.0           # Pen up
    cut_z: float = -1.0           # Pen down
    circle_segments: int = 36
    arc_segments: int = 18
    precision: int = 3            # Decimals for X/Y


@dataclass
class SimulatorConfig:
    """Configuration for playback and display."""
    name: str = "Default"

    # Playback
    speed: int = 50               # Percent, 1..100
    speed_divisor: float = 25.0   # Step length per tick = speed / divisor
    rapid_factor: float = 3.0     # Rapids travel this many times faster
    tick_interval_ms: int = 16

    # Display
    display_width: int = 800
    display_height: int = 600
    padding: float = 60.0
    fit_margin: float = 0.9
    grid_spacing: float = 10.0
    grid_major_every: float = 50.0

    compiler: CompilerConfig = field(default_factory=CompilerConfig)


class ConfigManager:
    """Manages simulator configurations with simple presets."""

    @staticmethod
    def default() -> SimulatorConfig:
        """Settings matching the stock simulator."""
        return SimulatorConfig()

    @staticmethod
    def preview() -> SimulatorConfig:
        """Full speed, for quickly checking a long program."""
        return replace(SimulatorConfig(), name="Preview", speed=100)

    @staticmethod
    def get_config(name: str) -> SimulatorConfig:
        """Get configuration by preset name."""
        configs = {
            "default": ConfigManager.default,
            "preview": ConfigManager.preview,
        }
        factory = configs.get(name.lower())
        if factory is None:
            logger.warning(f"Unknown configuration preset '{name}', using default")
            return ConfigManager.default()
        return factory()

    @staticmethod
    def save_config(config: SimulatorConfig, filepath: str):
        """Save configuration to JSON file."""
        with open(filepath, 'w') as f:
            json.dump(asdict(config), f, indent=2)

    @staticmethod
    def load_config(filepath: str) -> SimulatorConfig:
        """Load configuration from JSON file, falling back to the default."""
        try:
            with open(filepath, 'r') as f:
                data = json.load(f)

            compiler = CompilerConfig(**data.pop("compiler", {}))
            return SimulatorConfig(compiler=compiler, **data)

        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Could not load configuration from {filepath}: {e}; using default")
            return ConfigManager.default()
