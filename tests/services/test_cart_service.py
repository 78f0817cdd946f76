"""Tests for the shopping cart service."""
import pytest
from sqlalchemy.exc import OperationalError

from mealcart.cart.errors import StaleLineError
from mealcart.db.cart_store import CartStore
from mealcart.domain.types import IngredientRequest
from mealcart.services.cart_service import CartService


def _req(name, amount, unit, week_id="2025-05", recipe_id=None, recipe_name=None):
    return IngredientRequest(
        name=name, amount=amount, unit=unit, week_id=week_id,
        recipe_id=recipe_id, recipe_name=recipe_name,
    )


def _lines(service, week_id=None):
    result = service.list_items(week_id)
    assert result.success
    return result.data


def test_add_to_cart_creates_line(cart_service):
    result = cart_service.add_to_cart(_req("Egg", 2, "pcs", recipe_id="r1", recipe_name="Omelette"))

    assert result.success
    assert result.data.inserted == 1
    assert result.data.updated == 0
    assert result.data.attempts == 1
    [line] = _lines(cart_service)
    assert (line.name, line.amount, line.unit, line.week_id) == ("Egg", 2, "pcs", "2025-05")
    assert line.recipe_ids == ["r1"]
    assert line.recipe_names == ["Omelette"]
    assert line.checked is False


def test_merge_total_independent_of_batching(session, user, other_user):
    amounts = [2, 3.5, 1, 0.5]
    one_by_one = CartService(session, user.id)
    all_at_once = CartService(session, other_user.id)

    for amount in amounts:
        one_by_one.add_to_cart(_req("Milk", amount, "l"))
    all_at_once.add_many([_req("milk", amount, "L") for amount in amounts])

    [single] = _lines(one_by_one)
    [batched] = _lines(all_at_once)
    assert single.amount == batched.amount == sum(amounts)


def test_case_insensitive_merge_across_calls(cart_service):
    cart_service.add_to_cart(_req("Milk", 1, "L"))
    result = cart_service.add_to_cart(_req("milk", 1, "l"))

    assert result.data.updated == 1
    [line] = _lines(cart_service)
    assert line.amount == 2
    assert line.name == "Milk"


def test_provenance_not_duplicated_across_calls(cart_service):
    cart_service.add_to_cart(_req("Onion", 1, "pcs", recipe_id="r1", recipe_name="Soup"))
    cart_service.add_to_cart(_req("Onion", 1, "pcs", recipe_id="r1", recipe_name="Soup"))
    cart_service.add_to_cart(_req("Onion", 1, "pcs", recipe_id="r2", recipe_name="Salad"))

    [line] = _lines(cart_service)
    assert line.recipe_ids == ["r1", "r2"]
    assert line.recipe_names == ["Soup", "Salad"]


def test_checked_line_stays_closed(cart_service):
    cart_service.add_to_cart(_req("Flour", 200, "g"))
    [bought] = _lines(cart_service)
    cart_service.set_checked(bought.id, True)

    cart_service.add_to_cart(_req("Flour", 100, "g", recipe_id="r3"))

    lines = _lines(cart_service)
    assert len(lines) == 2
    closed = next(l for l in lines if l.id == bought.id)
    assert (closed.amount, closed.checked) == (200, True)
    fresh = next(l for l in lines if l.id != bought.id)
    assert (fresh.amount, fresh.checked) == (100, False)


def test_week_isolation(cart_service):
    cart_service.add_to_cart(_req("Milk", 1, "l", "2025-06"))
    cart_service.add_to_cart(_req("Milk", 2, "l", "2025-07"))

    assert [(l.week_id, l.amount) for l in _lines(cart_service)] == [("2025-06", 1), ("2025-07", 2)]


def test_rejected_requests_reported(cart_service):
    result = cart_service.add_many([
        {"name": "Egg", "amount": 2, "unit": "pcs", "week_id": "2025-05"},
        {"name": "", "amount": 2, "unit": "pcs", "week_id": "2025-05"},
    ])

    assert result.success
    assert result.data.inserted == 1
    assert [r.index for r in result.data.rejected] == [1]


def test_retries_from_fresh_read_after_conflict(cart_service, session, user, monkeypatch):
    cart_service.add_to_cart(_req("Flour", 200, "g"))
    [flour] = _lines(cart_service)
    other_session = CartStore(session, user.id)
    original_list_active = cart_service.store.list_active
    reads = []

    def list_active_then_race(week_id=None):
        lines = original_list_active(week_id)
        if not reads:
            other_session.set_amount(flour.id, 500)
        reads.append(lines)
        return lines

    monkeypatch.setattr(cart_service.store, "list_active", list_active_then_race)

    result = cart_service.add_to_cart(_req("Flour", 100, "g"))

    assert result.success
    assert result.data.attempts == 2
    assert len(reads) == 2
    monkeypatch.undo()
    assert _lines(cart_service)[0].amount == 600


def test_retry_merges_into_concurrently_opened_line(cart_service, session, user, monkeypatch):
    other_service = CartService(session, user.id)
    original_list_active = cart_service.store.list_active
    raced = []

    def list_active_then_race(week_id=None):
        lines = original_list_active(week_id)
        if not raced:
            raced.append(True)
            other_service.add_to_cart(_req("flour", 50, "g"))
        return lines

    monkeypatch.setattr(cart_service.store, "list_active", list_active_then_race)

    result = cart_service.add_to_cart(_req("Flour", 100, "g"))

    assert result.data.attempts == 2
    assert result.data.updated == 1
    monkeypatch.undo()
    [line] = _lines(cart_service)
    assert line.amount == 150


def test_gives_up_after_max_retries(session, user, monkeypatch):
    service = CartService(session, user.id, max_retries=0)
    service.add_to_cart(_req("Flour", 200, "g"))
    [flour] = _lines(service)
    racer = CartStore(session, user.id)
    original_list_active = service.store.list_active

    def list_active_then_race(week_id=None):
        lines = original_list_active(week_id)
        racer.set_amount(flour.id, 500)
        return lines

    monkeypatch.setattr(service.store, "list_active", list_active_then_race)

    with pytest.raises(StaleLineError):
        service.add_to_cart(_req("Flour", 100, "g"))


def test_store_failure_propagates_unmodified(cart_service, monkeypatch):
    failure = OperationalError("INSERT", {}, Exception("database is locked"))

    def failing_apply(plan):
        raise failure

    monkeypatch.setattr(cart_service.store, "apply_plan", failing_apply)

    with pytest.raises(OperationalError) as exc_info:
        cart_service.add_to_cart(_req("Flour", 100, "g"))

    assert exc_info.value is failure


def test_no_owner_is_empty_noop(session):
    service = CartService(session, None)

    added = service.add_to_cart(_req("Flour", 100, "g"))
    assert added.success
    assert added.metadata["no_owner"] is True
    assert added.data.inserted == 0

    assert service.list_items().data == []
    assert service.update_quantity(1, 5).success
    assert service.toggle_checked(1).data is None
    assert service.clear_week("2025-05").data == 0
    assert service.clear_cart().data == 0


def test_toggle_checked(cart_service):
    cart_service.add_to_cart(_req("Egg", 2, "pcs"))
    [egg] = _lines(cart_service)

    assert cart_service.toggle_checked(egg.id).data.checked is True
    assert cart_service.toggle_checked(egg.id).data.checked is False


def test_update_quantity_validates(cart_service):
    cart_service.add_to_cart(_req("Egg", 2, "pcs"))
    [egg] = _lines(cart_service)

    assert cart_service.update_quantity(egg.id, 1).data.amount == 1
    assert "negative" in cart_service.update_quantity(egg.id, -1).error
    assert "finite" in cart_service.update_quantity(egg.id, float("inf")).error
    assert "number" in cart_service.update_quantity(egg.id, "12").error
    assert _lines(cart_service)[0].amount == 1


def test_update_price_and_note(cart_service):
    cart_service.add_to_cart(_req("Egg", 12, "pcs"))
    [egg] = _lines(cart_service)

    assert cart_service.update_price(egg.id, 3.2).data.price == 3.2
    assert not cart_service.update_price(egg.id, -0.5).success
    assert cart_service.update_note(egg.id, "free range").data.note == "free range"
    assert cart_service.update_note(egg.id, "   ").data.note is None
    assert cart_service.update_price(egg.id, None).data.price is None


def test_price_and_note_survive_merge(cart_service):
    cart_service.add_to_cart(_req("Egg", 6, "pcs"))
    [egg] = _lines(cart_service)
    cart_service.update_price(egg.id, 3.2)
    cart_service.update_note(egg.id, "free range")

    cart_service.add_to_cart(_req("egg", 6, "pcs", recipe_id="r1"))

    [merged] = _lines(cart_service)
    assert (merged.amount, merged.price, merged.note) == (12, 3.2, "free range")


def test_unknown_line(cart_service):
    for result in (
        cart_service.toggle_checked(999),
        cart_service.set_checked(999, True),
        cart_service.update_quantity(999, 1),
        cart_service.update_price(999, 1),
        cart_service.update_note(999, "x"),
        cart_service.remove_item(999),
    ):
        assert not result.success
        assert result.error == "Cart line not found"


def test_remove_and_clear(cart_service):
    cart_service.add_many([
        _req("Egg", 6, "pcs", "2025-05"),
        _req("Milk", 1, "l", "2025-05"),
        _req("Bread", 1, "pcs", "2025-06"),
        _req("Rice", 1, "kg", "2025-07"),
    ])
    egg = next(l for l in _lines(cart_service) if l.name == "Egg")

    assert cart_service.remove_item(egg.id).success
    assert cart_service.clear_week("2025-05").data == 1
    assert [l.week_id for l in _lines(cart_service)] == ["2025-06", "2025-07"]
    assert cart_service.clear_cart().data == 2
    assert _lines(cart_service) == []
