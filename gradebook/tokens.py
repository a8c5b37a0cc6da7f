import calendar
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from jose import jwt, JWTError

from db.database import utcnow

from .config import ALGORITHM, REVOCATION_RETENTION_DAYS, TOKEN_TTL_HOURS
from .errors import ConflictError, InvalidToken, RevokedToken

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    id: int
    email: str


def signature_of(token: str) -> str:
    """Return the JWS signature segment, which keys the revocation list."""
    parts = token.split(".") if isinstance(token, str) else []
    if len(parts) != 3 or not parts[2]:
        raise InvalidToken("Malformed token")
    return parts[2]


def _timestamp(dt: datetime) -> int:
    return calendar.timegm(dt.utctimetuple())


class TokenService:
    """
    Issues and checks stateless identity tokens.

    Tokens are HS256 JWTs carrying ``sub``, ``email``, ``iat`` and ``exp``.
    Logout does not touch any session: the token's signature goes into the
    revocation list, which ``authenticate`` consults after the cryptographic
    checks pass.
    """

    def __init__(
        self,
        secret_key: str,
        store,
        ttl: timedelta = timedelta(hours=TOKEN_TTL_HOURS),
        clock: Callable[[], datetime] = utcnow,
    ):
        if not secret_key:
            raise ValueError("secret_key is required")
        self.secret_key = secret_key
        self.store = store
        self.ttl = ttl
        self.clock = clock

    def issue(self, principal_id: int, email: str) -> str:
        now = self.clock()
        payload = {
            "sub": str(principal_id),
            "email": email,
            "iat": _timestamp(now),
            "exp": _timestamp(now + self.ttl),
            # same-second tokens must still get distinct signatures
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, self.secret_key, algorithm=ALGORITHM)

    def _decode(self, token: str) -> Dict[str, Any]:
        signature_of(token)
        try:
            # expiry is checked below against our own clock
            claims = jwt.decode(
                token,
                self.secret_key,
                algorithms=[ALGORITHM],
                options={"verify_exp": False},
            )
        except JWTError as e:
            raise InvalidToken("Invalid authentication credentials") from e

        for claim in ("sub", "email", "iat", "exp"):
            if claim not in claims:
                raise InvalidToken(f"Token is missing the {claim!r} claim")
        try:
            int(claims["sub"])
        except (TypeError, ValueError):
            raise InvalidToken("Invalid subject in token")

        if _timestamp(self.clock()) >= int(claims["exp"]):
            raise InvalidToken("Token has expired")
        return claims

    def authenticate(self, token: str) -> Principal:
        claims = self._decode(token)
        if self.store.get_by_index("revoked_token", "signature", signature_of(token)):
            raise RevokedToken()
        return Principal(id=int(claims["sub"]), email=claims["email"])

    def revoke(self, token: str) -> None:
        claims = self._decode(token)
        signature = signature_of(token)
        issued_at = datetime.fromtimestamp(int(claims["iat"]), timezone.utc).replace(tzinfo=None)

        def _revoke(tx):
            if tx.get_by_index("revoked_token", "signature", signature):
                return False
            tx.insert("revoked_token", {
                "signature": signature,
                "issued_at": issued_at,
                "revoked_at": self.clock(),
            })
            return True

        try:
            created = self.store.transaction(_revoke)
        except ConflictError:
            # a concurrent logout of the same token won the insert
            created = False
        if created:
            logger.info("Revoked token for principal %s", claims["sub"])

    def sweep(self, retention: Optional[timedelta] = None) -> int:
        """Drop revocation rows for tokens issued before the retention window."""
        cutoff = self.clock() - (retention or timedelta(days=REVOCATION_RETENTION_DAYS))

        def _sweep(tx):
            old = tx.get_before("revoked_token", "issued_at", cutoff)
            for row in old:
                tx.delete("revoked_token", row["id"])
            return len(old)

        deleted = self.store.transaction(_sweep)
        logger.info("Swept %d revoked tokens issued before %s", deleted, cutoff.isoformat())
        return deleted
