import logging
from typing import Any, Callable, Dict, Tuple

from auth.security import hash_password, verify_password
from db.database import utcnow

from .errors import ConflictError, InvalidCredentials, InvalidRecord, OwnershipError

logger = logging.getLogger(__name__)

def public(user: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in user.items() if k != "password_hash"}


class AccountService:
    """Registration, login and logout of principals (teachers)."""

    def __init__(self, store, tokens, clock: Callable = utcnow):
        self.store = store
        self.tokens = tokens
        self.clock = clock

    def register(self, name: str, email: str, password: str) -> Tuple[Dict, str]:
        if not name or not email or not password:
            raise InvalidRecord("Name, email and password are required")
        email = email.strip().lower()
        password_hash = hash_password(password)

        def _register(tx):
            if tx.get_by_index("principal", "email", email):
                raise ConflictError("Email already registered")
            now = self.clock()
            user_id = tx.insert("principal", {
                "name": name,
                "email": email,
                "password_hash": password_hash,
                "role": "teacher",
                "created_at": now,
                "updated_at": now,
            })
            return tx.get("principal", user_id)

        user = self.store.transaction(_register)
        logger.info("Registered principal %s", user["id"])
        return public(user), self.tokens.issue(user["id"], user["email"])

    def login(self, email: str, password: str) -> Tuple[Dict, str]:
        users = self.store.get_by_index("principal", "email", (email or "").strip().lower())
        user = users[0] if users else None
        # unknown email and wrong password look the same
        if user is None or not verify_password(password, user["password_hash"]):
            raise InvalidCredentials()
        return public(user), self.tokens.issue(user["id"], user["email"])

    def logout(self, token: str) -> None:
        self.tokens.revoke(token)

    def get_principal(self, principal_id) -> Dict:
        user = self.store.get("principal", principal_id)
        if user is None:
            raise OwnershipError("User not found")
        return public(user)
