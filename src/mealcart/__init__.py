"""MealCart: weekly shopping-cart aggregation for a meal-planning app."""

__version__ = "0.1.0"
