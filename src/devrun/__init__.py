"""devrun - run the dev watch and serve scripts side by side."""

__version__ = "0.1.0"

from devrun.core.config import Settings
from devrun.supervisor import Supervisor

__all__ = ["Settings", "Supervisor", "__version__"]
