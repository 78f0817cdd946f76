"""Application services for MealCart."""
