"""Configuration module for loading and accessing library settings."""

from .loader import Config, config

__all__ = ["Config", "config"]
