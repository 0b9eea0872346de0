from importlib import metadata

from .cli import main

try:
    __version__ = metadata.version("gitpilot")
except metadata.PackageNotFoundError:
    __version__ = "0.1.0"

__all__ = ["__version__", "main"]
