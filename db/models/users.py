from sqlalchemy import Column, DateTime, Integer, String
from db.database import Base, utcnow

class User(Base):
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(150), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(50), default="teacher")  # teacher / admin

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)
