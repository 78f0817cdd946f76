"""In-memory projection of the cart for one user session."""
import threading
from typing import Callable, List, Optional, Sequence, TypeVar

from mealcart.cart import queries
from mealcart.cart.engine import RequestLike
from mealcart.domain.types import CartLine
from mealcart.utils.logger import get_logger
from .base_service import Result
from .cart_service import CartService, ReconcileSummary

T = TypeVar('T')


class CartState:
    """
    Session view of the cart kept in sync by full reloads.

    Mutations run one at a time: a second call waits until the first has
    written and reloaded, so no merge is ever planned against a snapshot that
    an earlier action is about to change. After every mutation, failed or
    not, the whole cart is re-read from the store.
    """

    def __init__(self, service: CartService):
        self.service = service
        self.items: List[CartLine] = []
        self.loading = True
        self._lock = threading.Lock()
        self.logger = get_logger(self.__class__.__name__)

    @property
    def busy(self) -> bool:
        """True while a mutation is in flight; callers can disable controls on it."""
        return self._lock.locked()

    def refresh(self) -> List[CartLine]:
        """Replace the local items with the store's current lines."""
        self.loading = True
        try:
            self.items = self.service.list_items().data or []
        finally:
            self.loading = False
        return self.items

    def _mutate(self, action: Callable[..., Result[T]], *args) -> Result[T]:
        with self._lock:
            try:
                result = action(*args)
            except Exception:
                self.logger.warning("Cart action failed, resynchronizing", action=action.__name__)
                try:
                    self.refresh()
                except Exception:
                    # The action's own error is the one the caller gets
                    self.logger.exception("Resync after failed cart action failed", action=action.__name__)
                raise
            self.refresh()
            return result

    def add_to_cart(self, request: RequestLike) -> Result[ReconcileSummary]:
        return self._mutate(self.service.add_to_cart, request)

    def add_multiple_to_cart(self, requests: Sequence[RequestLike]) -> Result[ReconcileSummary]:
        return self._mutate(self.service.add_many, requests)

    def remove_from_cart(self, line_id: int) -> Result[int]:
        return self._mutate(self.service.remove_item, line_id)

    def toggle_checked(self, line_id: int) -> Result[CartLine]:
        return self._mutate(self.service.toggle_checked, line_id)

    def update_quantity(self, line_id: int, amount: float) -> Result[CartLine]:
        return self._mutate(self.service.update_quantity, line_id, amount)

    def update_price(self, line_id: int, price: Optional[float]) -> Result[CartLine]:
        return self._mutate(self.service.update_price, line_id, price)

    def update_note(self, line_id: int, note: Optional[str]) -> Result[CartLine]:
        return self._mutate(self.service.update_note, line_id, note)

    def clear_week(self, week_id: str) -> Result[int]:
        return self._mutate(self.service.clear_week, week_id)

    def clear_cart(self) -> Result[int]:
        return self._mutate(self.service.clear_cart)

    def weekly_items(self, week_id: str) -> List[CartLine]:
        return queries.items_for_week(self.items, week_id)

    def weekly_total(self, week_id: str) -> float:
        return queries.total_cost(self.items, week_id)

    def all_weeks(self) -> List[str]:
        return queries.all_weeks(self.items)

    @property
    def cart_count(self) -> int:
        return queries.outstanding_count(self.items)
