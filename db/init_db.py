# python -m db.init_db


from db.database import Base, engine
from db.models.users import User
from db.models.students import Student
from db.models.classes import SchoolClass
from db.models.enrollments import Enrollment
from db.models.grades import Grade
from db.models.revoked_tokens import RevokedToken


def init_db(bind=engine):
    Base.metadata.create_all(bind=bind)


if __name__ == "__main__":
    print("Creating tables...")
    init_db()
    print("Done")
