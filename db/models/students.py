from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from db.database import Base, utcnow

class Student(Base):
    __tablename__ = "students"
    __table_args__ = (
        UniqueConstraint("owner_id", "email", name="uq_student_owner_email"),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(150), nullable=False)
    email = Column(String(255), nullable=True)
    grade_level = Column(Integer, nullable=True)
    age = Column(Integer, nullable=True)
    gender = Column(String(50), nullable=True)
    notes = Column(String, nullable=True)
    parent_email = Column(String(255), nullable=True)
    parent_phone = Column(String(50), nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)
