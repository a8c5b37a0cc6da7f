import base64
import json
import time
from datetime import datetime, timedelta

import pytest
from jose import jwt

from db.database import utcnow
from gradebook.errors import InvalidToken, RevokedToken
from gradebook.tokens import Principal, TokenService, signature_of

from conftest import SECRET


def _b64(data: dict) -> str:
    raw = json.dumps(data, separators=(",", ":")).encode()
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


def _claims(token: str) -> dict:
    payload = token.split(".")[1]
    return json.loads(base64.urlsafe_b64decode(payload + "=" * (-len(payload) % 4)))


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


def test_issued_token_authenticates(services, teacher):
    token = services.tokens.issue(teacher, "anna@school.test")

    principal = services.tokens.authenticate(token)

    assert principal == Principal(id=teacher, email="anna@school.test")


def test_token_is_valid_for_24_hours(services, teacher):
    claims = _claims(services.tokens.issue(teacher, "anna@school.test"))

    assert claims["sub"] == str(teacher)
    assert claims["exp"] - claims["iat"] == 24 * 3600


def test_revoked_token_is_rejected(services, teacher):
    token = services.tokens.issue(teacher, "anna@school.test")
    services.tokens.revoke(token)

    with pytest.raises(RevokedToken):
        services.tokens.authenticate(token)


def test_revoke_is_idempotent(services, store, teacher):
    token = services.tokens.issue(teacher, "anna@school.test")

    services.tokens.revoke(token)
    services.tokens.revoke(token)

    rows = store.get_by_index("revoked_token", "signature", signature_of(token))
    assert len(rows) == 1


def test_revocation_does_not_affect_other_tokens(services, teacher):
    clock = FakeClock(datetime(2026, 3, 1, 8, 0, 0))
    tokens = TokenService(SECRET, services.store, clock=clock)
    first = tokens.issue(teacher, "anna@school.test")
    clock.now += timedelta(seconds=5)
    second = tokens.issue(teacher, "anna@school.test")

    tokens.revoke(first)

    assert tokens.authenticate(second).id == teacher


def test_same_second_tokens_have_separate_revocation(services, teacher):
    tokens = TokenService(SECRET, services.store, clock=FakeClock(datetime(2026, 3, 1, 8, 0, 0)))
    old = tokens.issue(teacher, "anna@school.test")
    tokens.revoke(old)

    fresh = tokens.issue(teacher, "anna@school.test")

    assert fresh != old
    assert signature_of(fresh) != signature_of(old)
    assert tokens.authenticate(fresh).id == teacher


def test_tampered_payload_is_invalid(services, teacher, other_teacher):
    token = services.tokens.issue(teacher, "anna@school.test")
    header, _, signature = token.split(".")
    claims = _claims(token)
    claims["sub"] = str(other_teacher)

    forged = ".".join([header, _b64(claims), signature])

    with pytest.raises(InvalidToken):
        services.tokens.authenticate(forged)


def test_token_signed_with_another_secret_is_invalid(services, teacher):
    now = int(time.time())
    token = jwt.encode(
        {
            "sub": str(teacher),
            "email": "anna@school.test",
            "iat": now,
            "exp": now + 3600,
        },
        "some-other-secret",
        algorithm="HS256",
    )

    with pytest.raises(InvalidToken):
        services.tokens.authenticate(token)


@pytest.mark.parametrize("garbage", ["", "not-a-token", "a.b", "a.b.c", "a.b."])
def test_malformed_tokens_are_invalid(services, garbage):
    with pytest.raises(InvalidToken):
        services.tokens.authenticate(garbage)


def test_expired_token_is_invalid(services, teacher):
    past = TokenService(SECRET, services.store, clock=lambda: utcnow() - timedelta(hours=25))
    token = past.issue(teacher, "anna@school.test")

    with pytest.raises(InvalidToken):
        services.tokens.authenticate(token)


def test_cannot_revoke_invalid_token(services, store):
    with pytest.raises(InvalidToken):
        services.tokens.revoke("not-a-token")

    assert store.get_before("revoked_token", "issued_at", utcnow() + timedelta(days=1)) == []


def test_sweep_removes_only_entries_past_retention(services, store, teacher):
    clock = FakeClock(datetime(2026, 1, 1, 12, 0, 0))
    tokens = TokenService(SECRET, store, clock=clock)
    old = tokens.issue(teacher, "anna@school.test")
    tokens.revoke(old)

    clock.now += timedelta(days=20)
    recent = tokens.issue(teacher, "anna@school.test")
    tokens.revoke(recent)

    clock.now += timedelta(days=15)
    assert tokens.sweep() == 1

    remaining = store.get_before("revoked_token", "issued_at", clock.now)
    assert [row["signature"] for row in remaining] == [signature_of(recent)]
