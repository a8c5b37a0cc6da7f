from functools import lru_cache

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from db.database import SessionLocal
from gradebook.config import SECRET_KEY
from gradebook.services import Services, build_services
from gradebook.store import EntityStore
from gradebook.tokens import Principal

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/login")


@lru_cache
def get_services() -> Services:
    return build_services(EntityStore(SessionLocal), SECRET_KEY)


def get_current_principal(
    token: str = Depends(oauth2_scheme),
    services: Services = Depends(get_services),
) -> Principal:
    # raises InvalidToken / RevokedToken, mapped to 401 in main.py
    return services.tokens.authenticate(token)
