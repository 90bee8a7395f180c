"""
seed.py — Reference data: instructors, courses and the rubric
=============================================================
Idempotent: existing instructors (by name), courses (by name and
instructor) and questions are left untouched.

Run standalone with ``python -m evaluation_api.seed``.
"""
from __future__ import annotations

import logging

from sqlalchemy import func, select

from .database import Base, db_session, engine
from .models import Course, Instructor, Question

logger = logging.getLogger("evaluations.seed")

INSTRUCTORS = [
    "MARIO ROBERTO MENDEZ ROMERO",
    "OTTO RIGOBERTO ORTIZ PEREZ",
    "CARLOS AMILCAR TEZO PALENCIA",
    "OSCAR ALEJANDRO PAZ CAMPOS",
    "DANY OTONIEL OLIVA BELTETON",
]

# (course name, instructor, seminar)
COURSES = [
    ("programacion Basica", "MARIO ROBERTO MENDEZ ROMERO", "Seminario de Programación"),
    ("programacion avanzada", "DANY OTONIEL OLIVA BELTETON", "Seminario de Programación"),
    ("analisis de sistemas", "OTTO RIGOBERTO ORTIZ PEREZ", "Seminario de Sistemas"),
    ("desarrollo web", "CARLOS AMILCAR TEZO PALENCIA", "Seminario de Desarrollo"),
    ("base de datos", "OSCAR ALEJANDRO PAZ CAMPOS", "Seminario de Bases de Datos"),
]

QUESTIONS = [
    "Dominio y manejo del tema del curso.",
    "Claridad en la exposición de los conceptos.",
    "Fomento de la participación y resolución de dudas.",
    "Calidad de los materiales y recursos de apoyo.",
    "Puntualidad y cumplimiento del programa del curso.",
]


def seed_reference_data() -> None:
    with db_session() as session:
        instructor_ids = {}
        for name in INSTRUCTORS:
            existing = session.execute(
                select(Instructor).where(Instructor.full_name == name)
            ).scalar_one_or_none()
            if existing is None:
                existing = Instructor(full_name=name)
                session.add(existing)
                session.flush()
                logger.info("Seeded instructor %s (id=%s)", name, existing.id)
            instructor_ids[name] = existing.id

        for course_name, instructor_name, seminar in COURSES:
            instructor_id = instructor_ids[instructor_name]
            existing = session.execute(
                select(Course)
                .where(Course.name == course_name)
                .where(Course.instructor_id == instructor_id)
            ).scalar_one_or_none()
            if existing is None:
                session.add(Course(name=course_name, instructor_id=instructor_id, seminar=seminar))
                logger.info("Seeded course %s", course_name)

        # The rubric is all-or-nothing: answers map to questions by position.
        count = session.execute(select(func.count(Question.id))).scalar_one() or 0
        if count == 0:
            session.add_all(Question(text=text) for text in QUESTIONS)
            logger.info("Seeded %d questions", len(QUESTIONS))
        else:
            logger.info("Questions already present (%d); skipping", count)


if __name__ == "__main__":
    from .config import settings
    from .telemetry.logger import configure_logging

    configure_logging(settings)
    Base.metadata.create_all(bind=engine)
    seed_reference_data()
