"""Utility helpers for MealCart."""
