"""Configuration package for MealCart."""
from .settings import MealCartSettings, get_settings, clear_settings_cache

__all__ = ['MealCartSettings', 'get_settings', 'clear_settings_cache']
