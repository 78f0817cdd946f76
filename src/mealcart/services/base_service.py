"""Base service class with common functionality."""
import math
from typing import TypeVar, Generic, Optional, List
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from mealcart.utils.logger import get_logger

# Generic type for service results
T = TypeVar('T')


class Result(BaseModel, Generic[T]):
    """Generic result type for service operations."""
    success: bool
    data: Optional[T] = None
    error: str = ""
    suggestions: List[str] = []
    metadata: dict = {}

    # Allow arbitrary types (like SQLAlchemy models)
    model_config = ConfigDict(arbitrary_types_allowed=True)

    @classmethod
    def ok(cls, data: T, **metadata) -> 'Result[T]':
        """Create a successful result."""
        return cls(success=True, data=data, metadata=metadata)

    @classmethod
    def fail(cls, error: str, suggestions: Optional[List[str]] = None) -> 'Result[T]':
        """Create a failed result."""
        return cls(success=False, error=error or "Unknown error", suggestions=suggestions or [])


class BaseService:
    """Base class for all services."""

    def __init__(self, session: Session, user_id: Optional[int]):
        """
        Initialize the service.

        Args:
            session: Database session
            user_id: ID of the current owner, or None when nobody is signed in
        """
        self.session = session
        self.user_id = user_id
        self.logger = get_logger(self.__class__.__name__)

    @property
    def has_owner(self) -> bool:
        return self.user_id is not None

    def _log_action(
        self,
        action: str,
        status: str = "success",
        **kwargs
    ) -> None:
        """
        Log a service action.

        Args:
            action: Name of the action
            status: Status of the action
            **kwargs: Additional log data
        """
        self.logger.info(
            f"{action}: {status}",
            user_id=self.user_id,
            **kwargs
        )

    def _validate_quantity(self, value: Optional[float], label: str) -> Result[float]:
        """
        Validate a user-entered amount or price.

        Args:
            value: Number to validate
            label: Field name used in the error message

        Returns:
            Result indicating if the value is valid
        """
        if value is None or isinstance(value, bool) or not isinstance(value, (int, float)):
            return Result.fail(f"{label} must be a number")

        if not math.isfinite(value):
            return Result.fail(f"{label} must be a finite number")

        if value < 0:
            return Result.fail(
                f"{label} cannot be negative",
                suggestions=[
                    f"Enter a {label.lower()} of 0 or more",
                    "Delete the line instead of lowering it below zero"
                ]
            )

        return Result.ok(float(value))
