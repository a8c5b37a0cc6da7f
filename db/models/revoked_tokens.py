from sqlalchemy import Column, DateTime, Integer, String
from db.database import Base, utcnow

class RevokedToken(Base):
    __tablename__ = "revoked_tokens"
    # ids are never reused after a sweep
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    # only the JWS signature is kept, never the whole token
    signature = Column(String(255), unique=True, index=True, nullable=False)
    issued_at = Column(DateTime, nullable=False, index=True)
    revoked_at = Column(DateTime, default=utcnow)
