"""
Tests for storage failures: error envelope, headers and integrity violations.
"""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import is_unique_violation
from app.models.user import User
from conftest import _headers_for, load_event, load_inscription

ORIGIN = {"Origin": "https://acachile.cl"}
# Valid token for an id with no users row
GHOST = User(id=4242, email="ghost@acachile.cl", username="ghost", role="user")


async def _broken_execute(self, *args, **kwargs):
    raise OperationalError("SELECT", {}, Exception("disk I/O error"))


@pytest.mark.parametrize(
    "method,path",
    [
        ("DELETE", "/api/inscripciones/{inscription_id}"),
        ("GET", "/api/inscripciones/{inscription_id}"),
        ("GET", "/api/inscripciones/mis-inscripciones"),
        ("POST", "/api/eventos/{event_id}/inscribirse"),
        ("GET", "/api/eventos/{event_id}"),
        ("GET", "/api/eventos"),
    ],
)
@pytest.mark.asyncio
async def test_storage_failure_keeps_envelope_and_headers(
    client: AsyncClient, auth_headers, test_event, test_inscription, session_factory, monkeypatch, method, path
):
    monkeypatch.setattr(AsyncSession, "execute", _broken_execute)
    url = path.format(inscription_id=test_inscription.id, event_id=test_event.id)

    response = await client.request(method, url, headers={**auth_headers, **ORIGIN})
    monkeypatch.undo()

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "internal_error"
    assert response.headers["access-control-allow-origin"] == "*"
    assert "x-request-id" in response.headers

    assert await load_inscription(session_factory, test_inscription.id) is not None
    assert (await load_event(session_factory, test_event.id)).current_participants == 5


@pytest.mark.asyncio
async def test_inscribe_with_unknown_user_is_not_reported_as_duplicate(
    client: AsyncClient, test_event, session_factory
):
    response = await client.post(f"/api/eventos/{test_event.id}/inscribirse", headers=_headers_for(GHOST))

    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Usuario no registrado"}
    # The seat claimed before the failed insert was rolled back
    assert (await load_event(session_factory, test_event.id)).current_participants == 5


@pytest.mark.asyncio
async def test_create_event_with_unknown_user(client: AsyncClient):
    response = await client.post(
        "/api/eventos",
        json={"title": "Sin organizador", "date": (datetime.now(timezone.utc) + timedelta(days=3)).isoformat()},
        headers={**_headers_for(GHOST), **ORIGIN},
    )

    assert response.status_code == 401
    assert response.json()["error"] == "Usuario no registrado"
    assert response.headers["access-control-allow-origin"] == "*"


class _DriverError(Exception):
    def __init__(self, message, sqlstate=None):
        super().__init__(message)
        self.sqlstate = sqlstate


@pytest.mark.parametrize(
    "orig,expected",
    [
        (Exception("UNIQUE constraint failed: inscripciones.user_id, inscripciones.event_id"), True),
        (Exception("FOREIGN KEY constraint failed"), False),
        (Exception("CHECK constraint failed: check_current_participants_non_negative"), False),
        (_DriverError("duplicate key value", sqlstate="23505"), True),
        (_DriverError("violates foreign key constraint", sqlstate="23503"), False),
    ],
)
def test_unique_violations_are_told_apart(orig, expected):
    assert is_unique_violation(IntegrityError("INSERT", {}, orig)) is expected
