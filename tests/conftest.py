"""Test configuration and fixtures for MealCart."""
import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool
import sqlite3

from mealcart.models import Base, User, CartItem
from mealcart.cart.matcher import normalize
from mealcart.db.cart_store import CartStore
from mealcart.domain.types import CartLine
from mealcart.services.cart_service import CartService
from mealcart.services.cart_state import CartState


@pytest.fixture
def engine():
    """Create a fresh in-memory database engine for each test."""
    def _fk_pragma_on_connect(dbapi_con, con_record):
        if isinstance(dbapi_con, sqlite3.Connection):
            dbapi_con.execute('PRAGMA foreign_keys=ON')

    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(test_engine, 'connect', _fk_pragma_on_connect)

    Base.metadata.create_all(test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session(engine):
    """Create a new database session for a test."""
    session = Session(bind=engine, autoflush=False)
    yield session
    session.close()


@pytest.fixture
def user(session) -> User:
    """Create a test cart owner."""
    user = User()
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def other_user(session) -> User:
    """Create a second cart owner whose lines must stay invisible."""
    user = User()
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def cart_store(session, user) -> CartStore:
    return CartStore(session, user.id)


@pytest.fixture
def cart_service(session, user) -> CartService:
    return CartService(session, user.id, max_retries=2)


@pytest.fixture
def cart_state(cart_service) -> CartState:
    state = CartState(cart_service)
    state.refresh()
    return state


@pytest.fixture
def add_item(session):
    """Insert a cart line directly, bypassing reconciliation."""
    def _add(owner: User, name: str, amount: float, unit: str, week_id: str, **fields) -> CartItem:
        item = CartItem(
            owner_id=owner.id,
            name=name,
            normalized_name=normalize(name),
            amount=amount,
            unit=unit,
            normalized_unit=normalize(unit),
            week_id=week_id,
            checked=fields.pop("checked", False),
            recipe_ids=fields.pop("recipe_ids", []),
            recipe_names=fields.pop("recipe_names", []),
            created_by=owner.id,
            **fields,
        )
        session.add(item)
        session.commit()
        session.refresh(item)
        return item
    return _add


@pytest.fixture
def line():
    """Build an in-memory cart line for engine tests."""
    counter = {"next": 1}

    def _line(name: str, amount: float, unit: str, week_id: str = "2025-05", **fields) -> CartLine:
        line_id = fields.pop("id", counter["next"])
        counter["next"] = max(counter["next"], line_id) + 1
        return CartLine(id=line_id, name=name, amount=amount, unit=unit, week_id=week_id, **fields)
    return _line
