"""Setup file for MealCart package."""
from setuptools import setup, find_packages

setup(
    name="mealcart",
    version="0.1.0",
    description="Weekly shopping-cart aggregation for a household meal planner",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "SQLAlchemy>=2.0",
        "pydantic>=2.5",
        "pydantic-settings>=2.0",
        "python-dotenv>=1.0",
        "loguru>=0.7",
        "tzdata; platform_system == \"Windows\"",
    ],
    extras_require={
        "test": [
            "pytest>=8.1.1",
        ],
    },
    python_requires=">=3.9",
)
