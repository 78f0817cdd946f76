"""Domain types for MealCart."""
