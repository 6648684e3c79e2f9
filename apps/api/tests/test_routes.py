from __future__ import annotations

import asyncio
import json
from datetime import datetime

import pytest
from fastapi.security import HTTPAuthorizationCredentials
from starlette.requests import Request

from conftest import add_stamp, make_catalog, make_child, make_family, make_stamp_type
from stampbook.api.deps import AdminContext, get_admin_context, get_family_child
from stampbook.api.routes.auth import login, setup
from stampbook.api.routes.calendar import monthly_calendar
from stampbook.api.routes.children import create_child, list_children
from stampbook.api.routes.stamp_cards import current_card
from stampbook.api.routes.stamp_types import create_stamp_type, list_stamp_types
from stampbook.api.routes.stamps import create_stamp, get_stamp, open_stamp, unopened_count
from stampbook.api.routes.statistics import basic_statistics
from stampbook.core.errors import AuthenticationError, ConflictError, NotFoundError
from stampbook.core.exceptions import domain_exception_handler
from stampbook.core.security import create_access_token
from stampbook.schemas.auth import LoginRequest, SetupRequest
from stampbook.schemas.children import ChildCreateRequest
from stampbook.schemas.stamp_types import StampTypeWriteRequest
from stampbook.schemas.stamps import StampCreateRequest
from stampbook.services import pokemon_selector


class _FakeState:
    pass


class _FakeRequest:
    def __init__(self) -> None:
        self.state = _FakeState()


def _bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


def test_setup_then_login_and_resolve_admin(db) -> None:
    token = setup(SetupRequest(family_name="Tanaka", password="correct-horse"), db)
    assert token.token_type == "bearer"

    with pytest.raises(ConflictError):
        setup(SetupRequest(family_name="Again", password="correct-horse"), db)
    with pytest.raises(AuthenticationError):
        login(LoginRequest(password="wrong-password"), db)

    session = login(LoginRequest(password="correct-horse"), db)
    request = _FakeRequest()
    admin = get_admin_context(db, request, _bearer(session.access_token))

    assert admin == AdminContext(admin_id=token.admin_id, family_id=token.family_id)
    assert request.state.family_id == token.family_id


def test_admin_context_rejects_missing_and_forged_tokens(db) -> None:
    with pytest.raises(AuthenticationError):
        get_admin_context(db, _FakeRequest(), None)
    with pytest.raises(AuthenticationError):
        get_admin_context(db, _FakeRequest(), _bearer("not-a-jwt"))
    with pytest.raises(AuthenticationError):
        get_admin_context(db, _FakeRequest(), _bearer(create_access_token(admin_id=42, family_id=1)))


def test_family_child_dependency_hides_other_families(db) -> None:
    family = make_family(db)
    stranger = make_family(db, name="Suzuki")
    child = make_child(db, family)
    request = _FakeRequest()

    assert get_family_child(db, AdminContext(admin_id=1, family_id=family.id), request, child.id).id == child.id
    assert request.state.child_id == child.id
    with pytest.raises(NotFoundError):
        get_family_child(db, AdminContext(admin_id=2, family_id=stranger.id), _FakeRequest(), child.id)


def test_stamp_flow_through_routes(db, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(pokemon_selector, "roll_mythical", lambda odds=100: False)
    family = make_family(db)
    admin = AdminContext(admin_id=1, family_id=family.id)
    stamp_type = make_stamp_type(db)
    make_catalog(db)

    created = create_child(ChildCreateRequest(name="Haru", target_stamps=2), db, admin)
    assert [item.id for item in list_children(db, admin)] == [created.id]
    assert created.age_group == "unknown"
    child = get_family_child(db, admin, _FakeRequest(), created.id)

    first = create_stamp(StampCreateRequest(stamp_type_id=stamp_type.id, comment="お皿洗い"), db, child)
    second = create_stamp(StampCreateRequest(stamp_type_id=stamp_type.id), db, child)

    assert first.card.current_count == 1
    assert first.special.is_special is False
    assert second.card.card_completed is True
    assert second.card.completed_card_number == 1
    assert second.card.current_card_number == 2
    assert second.stamp.pokemon.rarity == "legendary"
    assert second.special.reason == "card_completion"
    assert unopened_count(db, child).count == 2

    opened = open_stamp(first.stamp.id, db, child)
    assert opened.is_opened is True
    assert get_stamp(first.stamp.id, db, child).comment == "お皿洗い"
    assert unopened_count(db, child).count == 1

    card = current_card(db, child)
    assert card.card_number == 2
    assert card.current_count == 0
    assert card.remaining == 2


def test_custom_stamp_type_routes(db) -> None:
    family = make_family(db)
    admin = AdminContext(admin_id=1, family_id=family.id)
    make_stamp_type(db)

    created = create_stamp_type(StampTypeWriteRequest(name="ピアノ", icon="🎹", color="#ec4899"), db, admin)

    assert created.is_custom is True
    assert [item.name for item in list_stamp_types(db, admin)] == ["手伝い", "ピアノ"]


def test_read_routes_render_statistics_and_calendar(db) -> None:
    family = make_family(db)
    child = make_child(db, family)
    stamp_type = make_stamp_type(db)
    pokemons = make_catalog(db, common=1, legendary=1, mythical=0)
    add_stamp(db, child, stamp_type, pokemons[1], datetime(2024, 2, 14, 9))

    stats = basic_statistics(db, child)
    grid = monthly_calendar(db, child, year=2024, month=2)

    assert stats.total_stamps == 1
    assert stats.legendary_count == 1
    assert grid.total_stamps == 1
    assert len(grid.weeks) == 5
    valentine = [cell for week in grid.weeks for cell in week if cell.day.isoformat() == "2024-02-14"][0]
    assert valentine.has_legendary is True
    assert valentine.stamps[0].pokemon.id == pokemons[1].id


def test_domain_errors_render_error_envelope() -> None:
    request = Request({"type": "http", "method": "GET", "path": "/children/9", "headers": [], "query_string": b""})

    response = asyncio.run(domain_exception_handler(request, NotFoundError("Child not found")))

    assert response.status_code == 404
    assert json.loads(response.body) == {"code": "NOT_FOUND", "message": "Child not found"}


def test_app_serves_health_and_rejects_anonymous_requests() -> None:
    from fastapi.testclient import TestClient

    from stampbook.main import app

    client = TestClient(app)

    health = client.get("/health")
    assert health.status_code == 200
    assert health.json()["status"] == "ok"
    assert "X-Request-Id" in health.headers

    anonymous = client.get("/children")
    assert anonymous.status_code == 401
    assert anonymous.json()["code"] == "UNAUTHORIZED"
