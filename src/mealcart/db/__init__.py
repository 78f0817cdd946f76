"""Database access for MealCart."""
