"""Tests for MealCart database models."""
import pytest
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.orm import Session, sessionmaker

import mealcart.db.init_db as init_module
from mealcart.db.init_db import init_db
from mealcart.models import User, CartItem


def test_user_creation(user):
    """Test that a user can be created."""
    assert user.id is not None
    assert user.created_at is not None
    assert user.updated_at is not None
    # Verify timestamps are timezone-aware
    assert user.created_at.tzinfo is not None
    assert user.updated_at.tzinfo is not None


def test_cart_item_creation(add_item, user):
    """Test that a cart line can be created and linked to its owner."""
    item = add_item(user, "Crème Fraîche", 200, "ml", "2025-05", recipe_ids=["r1"], recipe_names=["Tart"])

    assert item.id is not None
    assert item.normalized_name == "crème fraîche"
    assert item.normalized_unit == "ml"
    assert item.amount == 200
    assert not item.checked
    assert item.recipe_ids == ["r1"]
    assert item.recipe_names == ["Tart"]
    assert item.price is None
    assert item.note is None
    assert item.version == 1
    assert item.owner == user
    assert item in user.cart_items
    assert item.created_at.tzinfo is not None


def test_version_increments_on_update(session, add_item, user):
    item = add_item(user, "Flour", 200, "g", "2025-05")

    item.amount = 300
    session.commit()
    assert item.version == 2

    item.checked = True
    session.commit()
    assert item.version == 3


def test_concurrent_update_detected(engine, add_item, user):
    """Two sessions editing the same line: the later writer loses."""
    item = add_item(user, "Flour", 200, "g", "2025-05")

    with Session(engine) as first, Session(engine) as second:
        mine = first.get(CartItem, item.id)
        theirs = second.get(CartItem, item.id)

        mine.amount = 300
        first.commit()

        theirs.amount = 50
        with pytest.raises(StaleDataError):
            second.commit()


def test_cascade_delete(session, add_item, user):
    """Test that deleting an owner cascades to their cart lines."""
    item = add_item(user, "Flour", 200, "g", "2025-05")
    item_id = item.id
    user_id = user.id

    session.delete(user)
    session.commit()

    assert session.get(User, user_id) is None
    assert session.get(CartItem, item_id) is None


def test_init_db_seeds_default_owner_once(engine):
    init_db(engine)
    init_db(engine)

    with Session(engine) as session:
        assert session.query(User).count() == 1
        assert session.get(User, 1) is not None


def test_init_db_uses_application_session_factory(engine, monkeypatch):
    monkeypatch.setattr(init_module, "default_engine", engine)
    monkeypatch.setattr(init_module, "SessionLocal", sessionmaker(bind=engine))

    init_db()

    with Session(engine) as session:
        assert session.get(User, 1) is not None
