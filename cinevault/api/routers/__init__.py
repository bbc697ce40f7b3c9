"""Router exports for the Cinevault API."""
from . import config, health, imports

__all__ = ["config", "health", "imports"]
