"""Utility helpers for test factories."""

from __future__ import annotations

from lms.models.course.content_model import Assignment, Lesson, Quiz
from lms.models.course.course_model import Course, CourseCategory, Enrollment
from lms.models.user.user_model import User, UserRole


def create_user(db, **kwargs) -> User:
    defaults = {
        "name": "User",
        "email": "user@example.com",
        "hashed_password": "x",
        "role": UserRole.STUDENT,
        "is_active": True,
    }
    defaults.update(kwargs)
    user = User(**defaults)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_questions(count: int) -> list[dict]:
    """``count`` two-option questions whose right answer is option 0."""

    return [
        {
            "question": f"Question {index + 1}",
            "options": ["right", "wrong"],
            "correct_answer": 0,
            "explanation": None,
        }
        for index in range(count)
    ]


def create_course(
    db,
    instructor: User,
    *,
    lessons: int = 0,
    quizzes: int = 0,
    assignments: int = 0,
    questions_per_quiz: int = 4,
    passing_score: int = 70,
    **kwargs,
) -> Course:
    defaults = {
        "title": "Course",
        "slug": f"course-{db.query(Course).count() + 1}",
        "description": "A course",
        "category": CourseCategory.TECHNOLOGY,
        "is_published": True,
        "instructor_id": instructor.id,
    }
    defaults.update(kwargs)
    course = Course(**defaults)

    for index in range(lessons):
        course.lessons.append(Lesson(title=f"Lesson {index + 1}", order=index + 1))
    for index in range(quizzes):
        course.quizzes.append(
            Quiz(
                title=f"Quiz {index + 1}",
                questions=make_questions(questions_per_quiz),
                passing_score=passing_score,
                order=index + 1,
            )
        )
    for index in range(assignments):
        course.assignments.append(Assignment(title=f"Assignment {index + 1}", max_score=100, order=index + 1))

    db.add(course)
    db.commit()
    db.refresh(course)
    return course


def enroll(db, user: User, course: Course) -> Enrollment:
    enrollment = Enrollment(course_id=course.id, user_id=user.id)
    db.add(enrollment)
    db.commit()
    return enrollment
