"""
Configuration Package

Contains all configuration-related files and settings.

This package separates two types of configuration:
- app_config.py: Flask application configuration (environment-based)
- game_settings.py: Game rules and constants (business logic)
"""

from .app_config import Config, DevelopmentConfig, ProductionConfig, TestingConfig, config, get_config
from .game_settings import (
    BOARD_SIZE, WIN_LENGTH, INITIAL_INVENTORY, ROOM_ID_PATTERN, USERNAME_PATTERN,
    validate_rule_settings, get_rule_summary
)

__all__ = [
    # App configuration
    'Config', 'DevelopmentConfig', 'ProductionConfig', 'TestingConfig', 'config', 'get_config',
    # Game rules
    'BOARD_SIZE', 'WIN_LENGTH', 'INITIAL_INVENTORY', 'ROOM_ID_PATTERN', 'USERNAME_PATTERN',
    'validate_rule_settings', 'get_rule_summary'
]
