from teleop_core.config import CoreConfig, load_core_config
from teleop_core.home import TeleopPaths, ensure_teleop_layout, resolve_teleop_home

__version__ = "0.1.0"

__all__ = [
    "CoreConfig",
    "TeleopPaths",
    "__version__",
    "ensure_teleop_layout",
    "load_core_config",
    "resolve_teleop_home",
]
