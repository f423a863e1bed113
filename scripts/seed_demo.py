"""
Seed a demo school into an empty database.

Creates one school with a current semester, a grade level, a class taught
by the demo teacher, two students, and the accounts ``admin`` / ``teacher``
(password ``password``). Does nothing if any user already exists.

Usage:
    python -m scripts.seed_demo
"""

import asyncio
import sys

from sqlalchemy import func, select

from edugrade.core.database import get_db, init_db
from edugrade.core.models import GradeLevel, Role, School, SchoolClass, Semester, Student, User
from edugrade.core.security import hash_password

DEMO_PASSWORD = "password"  # nosec B105 - demo data only


async def seed_demo() -> bool:
    """Seed demo data. Returns False when the database already has users."""
    await init_db()

    async for db in get_db():
        user_count = await db.scalar(select(func.count()).select_from(User))
        if user_count:
            print("Database already has users, skipping demo seed")
            return False

        school = School(name="First Experimental Middle School", motto="Study hard, think carefully")
        semester = Semester(school_id=school.id, name="2023-2024 Spring", is_current=True)
        grade = GradeLevel(school_id=school.id, name="Grade 9")
        admin = User(
            username="admin",
            password_hash=hash_password(DEMO_PASSWORD),
            role=Role.ADMIN.value,
            school_id=school.id,
        )
        teacher = User(
            username="teacher",
            password_hash=hash_password(DEMO_PASSWORD),
            role=Role.TEACHER.value,
            school_id=school.id,
            real_name="Demo Teacher",
        )
        school_class = SchoolClass(
            school_id=school.id, grade_id=grade.id, name="Class 1", class_teacher_id=teacher.id
        )
        students = [
            Student(
                school_id=school.id,
                grade_id=grade.id,
                class_id=school_class.id,
                name=name,
                student_no=student_no,
            )
            for name, student_no in [("Zhang San", "2024001"), ("Li Si", "2024002")]
        ]

        db.add(school)
        await db.flush()
        db.add_all([semester, grade, admin, teacher])
        await db.flush()
        db.add(school_class)
        await db.flush()
        db.add_all(students)
        await db.commit()

        print(f"✅ Seeded demo school {school.name} ({school.id})")
        return True
    return False


async def main():
    try:
        await seed_demo()
    except Exception as e:
        print(f"❌ Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
