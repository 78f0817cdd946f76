"""Owner-scoped persistence for cart lines."""
from typing import List, Optional, Union

from sqlalchemy import select, delete
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from mealcart.cart.errors import StaleLineError
from mealcart.cart.matcher import normalize
from mealcart.domain.types import CartLine, LineDraft, ReconciliationPlan
from mealcart.models import CartItem
from mealcart.utils.logger import get_logger
from .session import TransactionManager


class CartStore:
    """
    Reads and writes one owner's cart lines.

    Every query is filtered by ``owner_id``; lines of other owners behave as
    if they did not exist. With no owner, reads return nothing and writes are
    skipped. Database errors propagate unchanged after the transaction is
    rolled back.
    """

    def __init__(self, session: Session, owner_id: Optional[int]):
        self.session = session
        self.owner_id = owner_id
        self.transaction = TransactionManager(session)
        self.logger = get_logger(self.__class__.__name__)

    @property
    def has_owner(self) -> bool:
        return self.owner_id is not None

    def list_active(self, week_id: Optional[str] = None) -> List[CartLine]:
        """Load the owner's lines, optionally limited to one week."""
        if not self.has_owner:
            return []

        stmt = select(CartItem).where(CartItem.owner_id == self.owner_id)
        if week_id is not None:
            stmt = stmt.where(CartItem.week_id == week_id)
        stmt = stmt.order_by(CartItem.week_id, CartItem.id)

        with self.transaction.transaction() as session:
            items = session.execute(
                stmt.execution_options(populate_existing=True)
            ).scalars().all()
            return [CartLine.model_validate(item) for item in items]

    def get(self, line_id: int) -> Optional[CartLine]:
        if not self.has_owner:
            return None
        with self.transaction.transaction() as session:
            item = self._owned(session, line_id)
            return CartLine.model_validate(item) if item else None

    def apply_plan(self, plan: ReconciliationPlan) -> None:
        """
        Write a reconciliation plan in a single transaction.

        Each update only succeeds if its line still has the version the plan
        was computed from. Each insert only succeeds if no matching open line
        has appeared since. Otherwise nothing is written.

        Raises:
            StaleLineError: The cart changed after the plan's snapshot was read.
        """
        if not self.has_owner or plan.is_empty:
            return

        try:
            with self.transaction.transaction() as session:
                for update in plan.updates:
                    item = session.get(CartItem, update.line_id, populate_existing=True)
                    if item is None or item.owner_id != self.owner_id:
                        raise StaleLineError(
                            f"Cart line {update.line_id} no longer exists",
                            line_ids=[update.line_id],
                        )
                    if item.version != update.expected_version:
                        raise StaleLineError(
                            f"Cart line {update.line_id} changed since it was read",
                            line_ids=[update.line_id],
                            metadata={
                                "expected_version": update.expected_version,
                                "actual_version": item.version,
                            },
                        )
                    self._write(item, update)

                for draft in plan.inserts:
                    clash = self._find_open(session, draft)
                    if clash is not None:
                        raise StaleLineError(
                            f"An open '{draft.name}' line appeared in week {draft.week_id}",
                            line_ids=[clash.id],
                        )
                    item = CartItem(owner_id=self.owner_id, created_by=self.owner_id)
                    self._write(item, draft)
                    session.add(item)

                session.flush()
        except StaleDataError as e:
            raise StaleLineError("Cart line was modified concurrently") from e

        self.logger.debug(
            "Applied reconciliation plan",
            owner_id=self.owner_id,
            inserts=len(plan.inserts),
            updates=len(plan.updates),
        )

    def set_checked(self, line_id: int, checked: bool) -> Optional[CartLine]:
        return self._edit(line_id, checked=checked)

    def set_amount(self, line_id: int, amount: float) -> Optional[CartLine]:
        return self._edit(line_id, amount=amount)

    def set_price(self, line_id: int, price: Optional[float]) -> Optional[CartLine]:
        return self._edit(line_id, price=price)

    def set_note(self, line_id: int, note: Optional[str]) -> Optional[CartLine]:
        return self._edit(line_id, note=note)

    def delete(self, line_id: int) -> bool:
        if not self.has_owner:
            return False
        with self.transaction.transaction() as session:
            item = self._owned(session, line_id)
            if item is None:
                return False
            session.delete(item)
            return True

    def delete_week(self, week_id: str) -> int:
        if not self.has_owner:
            return 0
        return self._delete_where(CartItem.week_id == week_id)

    def delete_all(self) -> int:
        if not self.has_owner:
            return 0
        return self._delete_where()

    def _delete_where(self, *criteria) -> int:
        with self.transaction.transaction() as session:
            result = session.execute(
                delete(CartItem)
                .where(CartItem.owner_id == self.owner_id, *criteria)
                .execution_options(synchronize_session="fetch")
            )
            return result.rowcount

    def _edit(self, line_id: int, **values) -> Optional[CartLine]:
        if not self.has_owner:
            return None
        try:
            with self.transaction.transaction() as session:
                item = self._owned(session, line_id)
                if item is None:
                    return None
                for key, value in values.items():
                    setattr(item, key, value)
                item.updated_by = self.owner_id
                session.flush()
                return CartLine.model_validate(item)
        except StaleDataError as e:
            raise StaleLineError(
                f"Cart line {line_id} was modified concurrently",
                line_ids=[line_id],
            ) from e

    def _owned(self, session: Session, line_id: int) -> Optional[CartItem]:
        item = session.get(CartItem, line_id, populate_existing=True)
        if item is None or item.owner_id != self.owner_id:
            return None
        return item

    def _find_open(self, session: Session, draft: LineDraft) -> Optional[CartItem]:
        return session.execute(
            select(CartItem)
            .where(
                CartItem.owner_id == self.owner_id,
                CartItem.week_id == draft.week_id,
                CartItem.normalized_name == normalize(draft.name),
                CartItem.normalized_unit == normalize(draft.unit),
                CartItem.checked == False,  # noqa: E712
            )
            .limit(1)
        ).scalar_one_or_none()

    def _write(self, item: CartItem, payload: Union[LineDraft, CartLine]) -> None:
        item.name = payload.name
        item.normalized_name = normalize(payload.name)
        item.amount = payload.amount
        item.unit = payload.unit
        item.normalized_unit = normalize(payload.unit)
        item.week_id = payload.week_id
        item.checked = payload.checked
        item.recipe_ids = list(payload.recipe_ids)
        item.recipe_names = list(payload.recipe_names)
        item.price = payload.price
        item.note = payload.note
        item.updated_by = self.owner_id
