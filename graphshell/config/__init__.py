"""Configuration module for the Graph shell client."""
from .settings import EnvironmentParameters, load_settings

__all__ = ["EnvironmentParameters", "load_settings"]
