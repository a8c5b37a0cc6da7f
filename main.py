
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from auth.dependencies import get_current_principal, get_services, oauth2_scheme
from auth.schemas import (
    AssignStudentsSchema,
    ClassCreate,
    ClassUpdate,
    GradeCreate,
    GradeUpdate,
    LoginSchema,
    RegisterSchema,
    StudentCreate,
    StudentUpdate,
)
from db.database import engine
from db.init_db import init_db
from gradebook.config import configure_logging
from gradebook.errors import GradebookError
from gradebook.services import Services
from gradebook.tokens import Principal

configure_logging()


app = FastAPI(
    title="Gradebook API",
    version="1.0.0",
    description=(
        "Teachers manage their own students, classes, enrollments and grades. "
        "JWT authentication with logout through a revocation list."
    ),
)

@app.on_event("startup")
def create_tables():
    init_db(engine)


@app.exception_handler(GradebookError)
def gradebook_error_handler(request: Request, exc: GradebookError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.__class__.__name__, "message": exc.message},
    )


# ============ Accounts ============

@app.post("/register", status_code=201)
def register(data: RegisterSchema, services: Services = Depends(get_services)):
    user, token = services.accounts.register(data.name, data.email, data.password)
    return {"token": token, "token_type": "bearer", "user": user}


@app.post("/login")
def login(data: LoginSchema, services: Services = Depends(get_services)):
    user, token = services.accounts.login(data.email, data.password)
    return {"token": token, "token_type": "bearer", "user": user}


@app.post("/logout")
def logout(token: str = Depends(oauth2_scheme), services: Services = Depends(get_services)):
    services.accounts.logout(token)
    return {"success": True, "message": "Successfully logged out"}


@app.get("/me")
def get_me(
    principal: Principal = Depends(get_current_principal),
    services: Services = Depends(get_services),
):
    return services.accounts.get_principal(principal.id)


# ============ Students ============

@app.get("/students")
def list_students(
    principal: Principal = Depends(get_current_principal),
    services: Services = Depends(get_services),
):
    return services.records.list_students(principal.id)


@app.post("/students", status_code=201)
def create_student(
    data: StudentCreate,
    principal: Principal = Depends(get_current_principal),
    services: Services = Depends(get_services),
):
    return services.records.create_student(principal.id, data.model_dump(exclude_unset=True))


@app.get("/students/{student_id}")
def get_student(
    student_id: int,
    principal: Principal = Depends(get_current_principal),
    services: Services = Depends(get_services),
):
    return services.records.get_student(principal.id, student_id)


@app.patch("/students/{student_id}")
def update_student(
    student_id: int,
    data: StudentUpdate,
    principal: Principal = Depends(get_current_principal),
    services: Services = Depends(get_services),
):
    return services.records.update_student(principal.id, student_id, data.model_dump(exclude_unset=True))


@app.delete("/students/{student_id}")
def delete_student(
    student_id: int,
    principal: Principal = Depends(get_current_principal),
    services: Services = Depends(get_services),
):
    return services.cascade.delete_student(principal.id, student_id)


@app.get("/students/{student_id}/classes")
def list_student_classes(
    student_id: int,
    principal: Principal = Depends(get_current_principal),
    services: Services = Depends(get_services),
):
    return services.enrollments.list_classes(principal.id, student_id)


@app.get("/students/{student_id}/grades")
def list_student_grades(
    student_id: int,
    principal: Principal = Depends(get_current_principal),
    services: Services = Depends(get_services),
):
    return services.records.list_grades_for_student(principal.id, student_id)


# ============ Classes ============

@app.get("/classes")
def list_classes(
    principal: Principal = Depends(get_current_principal),
    services: Services = Depends(get_services),
):
    return services.records.list_classes(principal.id)


@app.post("/classes", status_code=201)
def create_class(
    data: ClassCreate,
    principal: Principal = Depends(get_current_principal),
    services: Services = Depends(get_services),
):
    return services.records.create_class(principal.id, data.model_dump(exclude_unset=True))


@app.get("/classes/{class_id}")
def get_class(
    class_id: int,
    principal: Principal = Depends(get_current_principal),
    services: Services = Depends(get_services),
):
    return services.records.get_class(principal.id, class_id)


@app.patch("/classes/{class_id}")
def update_class(
    class_id: int,
    data: ClassUpdate,
    principal: Principal = Depends(get_current_principal),
    services: Services = Depends(get_services),
):
    return services.records.update_class(principal.id, class_id, data.model_dump(exclude_unset=True))


@app.delete("/classes/{class_id}")
def delete_class(
    class_id: int,
    principal: Principal = Depends(get_current_principal),
    services: Services = Depends(get_services),
):
    return services.cascade.delete_class(principal.id, class_id)


@app.get("/classes/{class_id}/students")
def list_class_students(
    class_id: int,
    principal: Principal = Depends(get_current_principal),
    services: Services = Depends(get_services),
):
    return services.enrollments.list_students(principal.id, class_id)


@app.post("/classes/{class_id}/students", status_code=201)
def assign_students(
    class_id: int,
    data: AssignStudentsSchema,
    principal: Principal = Depends(get_current_principal),
    services: Services = Depends(get_services),
):
    enrollment_ids = services.enrollments.assign(principal.id, class_id, data.student_ids)
    return {
        "enrollment_ids": sorted(enrollment_ids),
        "message": "Students enrolled successfully",
    }


@app.delete("/classes/{class_id}/students/{student_id}")
def remove_student(
    class_id: int,
    student_id: int,
    principal: Principal = Depends(get_current_principal),
    services: Services = Depends(get_services),
):
    services.enrollments.remove(principal.id, class_id, student_id)
    return {"success": True, "message": "Student removed from class"}


@app.get("/classes/{class_id}/grades")
def list_class_grades(
    class_id: int,
    principal: Principal = Depends(get_current_principal),
    services: Services = Depends(get_services),
):
    return services.records.list_grades_for_class(principal.id, class_id)


# ============ Grades ============

@app.post("/grades", status_code=201)
def create_grade(
    data: GradeCreate,
    principal: Principal = Depends(get_current_principal),
    services: Services = Depends(get_services),
):
    return services.records.create_grade(
        principal.id, data.student_id, data.class_id, data.assignment, data.score
    )


@app.get("/grades/{grade_id}")
def get_grade(
    grade_id: int,
    principal: Principal = Depends(get_current_principal),
    services: Services = Depends(get_services),
):
    return services.records.get_grade(principal.id, grade_id)


@app.patch("/grades/{grade_id}")
def update_grade(
    grade_id: int,
    data: GradeUpdate,
    principal: Principal = Depends(get_current_principal),
    services: Services = Depends(get_services),
):
    return services.records.update_grade(principal.id, grade_id, data.model_dump(exclude_unset=True))


@app.delete("/grades/{grade_id}")
def delete_grade(
    grade_id: int,
    principal: Principal = Depends(get_current_principal),
    services: Services = Depends(get_services),
):
    services.records.delete_grade(principal.id, grade_id)
    return {"success": True, "message": "Grade deleted"}
