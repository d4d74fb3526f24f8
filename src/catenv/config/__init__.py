"""Configuration module for catenv."""

from catenv.config.schema import Config
from catenv.config.validator import ConfigValidator

__all__ = ["Config", "ConfigValidator"]
