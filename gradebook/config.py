import logging
import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./gradebook.db")

# JWT settings
SECRET_KEY = os.getenv("JWT_SECRET_KEY", "CHANGE_ME_SECRET_KEY")  # set it in .env
ALGORITHM = "HS256"
TOKEN_TTL_HOURS = int(os.getenv("TOKEN_TTL_HOURS", 24))

# revoked signatures are kept well past token expiry, then swept
REVOCATION_RETENTION_DAYS = int(os.getenv("REVOCATION_RETENTION_DAYS", 30))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def configure_logging(level: str = LOG_LEVEL):
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
