from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

class RegisterSchema(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=6)

class LoginSchema(BaseModel):
    email: str
    password: str

class StudentCreate(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    email: Optional[str] = None
    grade_level: Optional[int] = None
    age: Optional[int] = Field(None, ge=0)
    gender: Optional[str] = None
    notes: Optional[str] = None
    parent_email: Optional[str] = None
    parent_phone: Optional[str] = None

class StudentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    email: Optional[str] = None
    grade_level: Optional[int] = None
    age: Optional[int] = Field(None, ge=0)
    gender: Optional[str] = None
    notes: Optional[str] = None
    parent_email: Optional[str] = None
    parent_phone: Optional[str] = None

class ClassCreate(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    description: Optional[str] = None
    subject: Optional[str] = None
    grade_level: Optional[int] = None
    schedule: Optional[str] = None
    capacity: Optional[int] = Field(None, gt=0)  # None = unlimited

class ClassUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    description: Optional[str] = None
    subject: Optional[str] = None
    grade_level: Optional[int] = None
    schedule: Optional[str] = None
    capacity: Optional[int] = Field(None, gt=0)

class AssignStudentsSchema(BaseModel):
    student_ids: List[int] = Field(min_length=1)


def _fold_title(data):
    # old clients still send "title"; the core only knows "assignment"
    if isinstance(data, dict) and data.get("title") and not data.get("assignment"):
        data = {**data, "assignment": data["title"]}
    if isinstance(data, dict):
        data = {k: v for k, v in data.items() if k != "title"}
    return data

class GradeCreate(BaseModel):
    student_id: int
    class_id: int
    assignment: str = Field(min_length=1, max_length=255)
    score: float = Field(ge=0, le=100)

    @model_validator(mode="before")
    @classmethod
    def legacy_title(cls, data):
        return _fold_title(data)

class GradeUpdate(BaseModel):
    assignment: Optional[str] = Field(None, min_length=1, max_length=255)
    score: Optional[float] = Field(None, ge=0, le=100)

    @model_validator(mode="before")
    @classmethod
    def legacy_title(cls, data):
        return _fold_title(data)
