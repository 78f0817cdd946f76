"""Shopping cart service."""
from typing import Optional, List, Sequence
from dataclasses import dataclass, field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mealcart.cart.engine import RequestLike, reconcile
from mealcart.cart.errors import StaleLineError
from mealcart.config.settings import get_settings
from mealcart.db.cart_store import CartStore
from mealcart.domain.types import CartLine, ReconciliationPlan, RejectedRequest
from .base_service import BaseService, Result


@dataclass
class ReconcileSummary:
    """Outcome of folding a batch of requests into the cart."""
    inserted: int = 0
    updated: int = 0
    rejected: List[RejectedRequest] = field(default_factory=list)
    attempts: int = 0
    plan: ReconciliationPlan = field(default_factory=ReconciliationPlan)


class CartService(BaseService):
    """Service for managing an owner's weekly shopping cart."""

    def __init__(
        self,
        session: Session,
        user_id: Optional[int],
        max_retries: Optional[int] = None
    ):
        super().__init__(session, user_id)
        self.store = CartStore(session, user_id)
        self.max_retries = get_settings().MAX_RETRIES if max_retries is None else max_retries

    def list_items(self, week_id: Optional[str] = None) -> Result[List[CartLine]]:
        """
        Load the owner's cart lines.

        Args:
            week_id: Only return lines of this week (default: all weeks)

        Returns:
            Result containing the lines, empty when nobody is signed in
        """
        if not self.has_owner:
            return Result.ok([], no_owner=True)
        try:
            return Result.ok(self.store.list_active(week_id))
        except SQLAlchemyError:
            self.logger.exception("Failed to load cart")
            raise

    def add_to_cart(self, request: RequestLike) -> Result[ReconcileSummary]:
        """Add a single ingredient request to the cart."""
        return self.add_many([request])

    def add_many(self, requests: Sequence[RequestLike]) -> Result[ReconcileSummary]:
        """
        Merge a batch of ingredient requests into the cart.

        Reads the current lines, reconciles the batch against them and writes
        the resulting plan. If the cart changed in between, the cycle is
        repeated from a fresh read, up to ``max_retries`` times. A stale plan
        is never written.

        Args:
            requests: Ingredient requests, as models or mappings

        Returns:
            Result containing a summary of the writes and rejected requests

        Raises:
            StaleLineError: The cart kept changing through every retry
            SQLAlchemyError: The store failed while reading or writing
        """
        if not self.has_owner:
            self._log_action("add_many", status="skipped", reason="no_owner")
            return Result.ok(ReconcileSummary(), no_owner=True)

        attempt = 0
        while True:
            attempt += 1
            try:
                lines = self.store.list_active()
                plan = reconcile(requests, lines)
                self.store.apply_plan(plan)
                break
            except StaleLineError as e:
                if attempt > self.max_retries:
                    self.logger.error(
                        "Cart kept changing while merging, giving up",
                        attempts=attempt,
                        line_ids=e.line_ids
                    )
                    raise
                self.logger.warning(
                    "Cart changed while merging, re-reading",
                    attempt=attempt,
                    line_ids=e.line_ids
                )
            except SQLAlchemyError:
                self.logger.exception("Failed to add items to cart")
                raise

        summary = ReconcileSummary(
            inserted=len(plan.inserts),
            updated=len(plan.updates),
            rejected=plan.rejected,
            attempts=attempt,
            plan=plan
        )
        self._log_action(
            "add_many",
            requests=len(requests),
            inserted=summary.inserted,
            updated=summary.updated,
            rejected=len(summary.rejected),
            attempts=attempt
        )
        return Result.ok(summary)

    def set_checked(self, line_id: int, checked: bool) -> Result[CartLine]:
        """Mark a line as purchased or not purchased."""
        if not self.has_owner:
            return Result.ok(None, no_owner=True)
        line = self._run("set_checked", self.store.set_checked, line_id, checked)
        if line is None:
            return self._not_found(line_id)
        self._log_action("set_checked", line_id=line_id, checked=checked)
        return Result.ok(line)

    def toggle_checked(self, line_id: int) -> Result[CartLine]:
        """Flip a line's purchased flag."""
        if not self.has_owner:
            return Result.ok(None, no_owner=True)
        current = self._run("toggle_checked", self.store.get, line_id)
        if current is None:
            return self._not_found(line_id)
        return self.set_checked(line_id, not current.checked)

    def update_quantity(self, line_id: int, amount: float) -> Result[CartLine]:
        """
        Overwrite a line's amount.

        Unlike merging, a direct edit may lower the amount, but never below 0.
        """
        if not self.has_owner:
            return Result.ok(None, no_owner=True)
        valid = self._validate_quantity(amount, "Amount")
        if not valid.success:
            return Result.fail(valid.error, valid.suggestions)
        line = self._run("update_quantity", self.store.set_amount, line_id, valid.data)
        if line is None:
            return self._not_found(line_id)
        self._log_action("update_quantity", line_id=line_id, amount=valid.data)
        return Result.ok(line)

    def update_price(self, line_id: int, price: Optional[float]) -> Result[CartLine]:
        """Set what the whole line cost, or clear it with None."""
        if not self.has_owner:
            return Result.ok(None, no_owner=True)
        if price is not None:
            valid = self._validate_quantity(price, "Price")
            if not valid.success:
                return Result.fail(valid.error, valid.suggestions)
            price = valid.data
        line = self._run("update_price", self.store.set_price, line_id, price)
        if line is None:
            return self._not_found(line_id)
        self._log_action("update_price", line_id=line_id, price=price)
        return Result.ok(line)

    def update_note(self, line_id: int, note: Optional[str]) -> Result[CartLine]:
        """Attach a free-text note to a line. Blank notes are cleared."""
        if not self.has_owner:
            return Result.ok(None, no_owner=True)
        if note is not None and not note.strip():
            note = None
        line = self._run("update_note", self.store.set_note, line_id, note)
        if line is None:
            return self._not_found(line_id)
        self._log_action("update_note", line_id=line_id)
        return Result.ok(line)

    def remove_item(self, line_id: int) -> Result[int]:
        """Delete one line."""
        if not self.has_owner:
            return Result.ok(None, no_owner=True)
        if not self._run("remove_item", self.store.delete, line_id):
            return self._not_found(line_id)
        self._log_action("remove_item", line_id=line_id)
        return Result.ok(line_id)

    def clear_week(self, week_id: str) -> Result[int]:
        """Delete every line of one week, returning how many went."""
        if not self.has_owner:
            return Result.ok(0, no_owner=True)
        removed = self._run("clear_week", self.store.delete_week, week_id)
        self._log_action("clear_week", week_id=week_id, removed=removed)
        return Result.ok(removed)

    def clear_cart(self) -> Result[int]:
        """Delete every line of every week."""
        if not self.has_owner:
            return Result.ok(0, no_owner=True)
        removed = self._run("clear_cart", self.store.delete_all)
        self._log_action("clear_cart", removed=removed)
        return Result.ok(removed)

    def _run(self, action: str, operation, *args):
        try:
            return operation(*args)
        except (SQLAlchemyError, StaleLineError):
            self.logger.exception(f"Failed to {action.replace('_', ' ')}")
            raise

    def _not_found(self, line_id: int) -> Result:
        self._log_action("lookup", status="not_found", line_id=line_id)
        return Result.fail(
            "Cart line not found",
            suggestions=[
                "Reload the cart, the line may have been removed",
                "Check that you are signed in as the cart's owner"
            ]
        )
