"""Configuration module for VantageCheck.

This module provides centralized configuration management using pydantic-settings,
loading the API endpoint, credential and run options from the environment.
"""

from config.settings import GlobalConfig, get_config

__all__ = ["GlobalConfig", "get_config"]
