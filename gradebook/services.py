from dataclasses import dataclass
from datetime import timedelta
from typing import Callable

from db.database import utcnow

from .accounts import AccountService
from .cascade import CascadeCoordinator
from .config import TOKEN_TTL_HOURS
from .enrollment import EnrollmentManager
from .records import RecordService
from .store import EntityStore
from .tokens import TokenService


@dataclass
class Services:
    store: EntityStore
    tokens: TokenService
    accounts: AccountService
    records: RecordService
    enrollments: EnrollmentManager
    cascade: CascadeCoordinator


def build_services(store: EntityStore, secret_key: str, clock: Callable = utcnow,
                   ttl: timedelta = timedelta(hours=TOKEN_TTL_HOURS)) -> Services:
    tokens = TokenService(secret_key, store, ttl=ttl, clock=clock)
    return Services(
        store=store,
        tokens=tokens,
        accounts=AccountService(store, tokens, clock=clock),
        records=RecordService(store, clock=clock),
        enrollments=EnrollmentManager(store, clock=clock),
        cascade=CascadeCoordinator(store),
    )
