from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String
from db.database import Base, utcnow

class SchoolClass(Base):
    __tablename__ = "classes"
    __table_args__ = (
        CheckConstraint("capacity IS NULL OR capacity > 0", name="ck_class_capacity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(150), nullable=False)
    description = Column(String, nullable=True)
    subject = Column(String(100), nullable=True)
    grade_level = Column(Integer, nullable=True)
    schedule = Column(String(255), nullable=True)
    capacity = Column(Integer, nullable=True)  # NULL = unlimited

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)
