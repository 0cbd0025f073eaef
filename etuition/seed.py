"""Insert demo tutors and tuition posts into the configured database.

Usage:
    python -m etuition.seed
"""
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from etuition.core import config
from etuition.database import Database
from etuition.models.tuition import STATUS_APPROVED, STATUS_PENDING, TuitionPost
from etuition.models.user import ROLE_TUTOR, User

logger = logging.getLogger(__name__)

MIN_TUITIONS = 5

TUTORS = [
    {'name': 'Rahim Uddin', 'email': 'rahim@tutor.com', 'phone': '01711111111', 'location': 'Dhaka',
     'bio': 'Expert in Math and Physics with 5 years experience.', 'subjects': ['Math', 'Physics', 'Chemistry'],
     'hourly_rate': 500, 'verified': True},
    {'name': 'Fatima Begum', 'email': 'fatima@tutor.com', 'phone': '01822222222', 'location': 'Chittagong',
     'bio': 'Passionate English teacher.', 'subjects': ['English', 'History'], 'hourly_rate': 400, 'verified': True},
    {'name': 'Karim Hasan', 'email': 'karim@tutor.com', 'phone': '01933333333', 'location': 'Sylhet',
     'bio': 'Computer Science graduate teaching ICT.', 'subjects': ['ICT', 'Math'], 'hourly_rate': 600,
     'verified': True},
    {'name': 'Ayesha Siddiqua', 'email': 'ayesha@tutor.com', 'phone': '01644444444', 'location': 'Dhaka',
     'bio': 'Specialized in Biology for O Levels.', 'subjects': ['Biology', 'Chemistry'], 'hourly_rate': 450,
     'verified': True},
    {'name': 'Suman Chowdhury', 'email': 'suman@tutor.com', 'phone': '01555555555', 'location': 'Rajshahi',
     'bio': 'Accounting and Finance expert.', 'subjects': ['Accounting', 'Finance'], 'hourly_rate': 550,
     'verified': False},
    {'name': 'Nadia Islam', 'email': 'nadia@tutor.com', 'phone': '01555555123', 'location': 'Dhaka',
     'bio': 'English Literature expert.', 'subjects': ['English', 'Literature'], 'hourly_rate': 500,
     'verified': True},
]

TUITIONS = [
    {'student_email': 'student1@gmail.com', 'subject': 'Mathematics', 'class_name': 'Class 10',
     'location': 'Dhanmondi, Dhaka', 'salary': 5000, 'days_per_week': 3, 'gender_preference': 'Male',
     'status': STATUS_APPROVED, 'description': 'Need a math tutor for SSC candidate.'},
    {'student_email': 'student2@gmail.com', 'subject': 'English', 'class_name': 'Class 8',
     'location': 'Mirpur, Dhaka', 'salary': 4000, 'days_per_week': 4, 'gender_preference': 'Female',
     'status': STATUS_APPROVED, 'description': 'English medium background preferred.'},
    {'student_email': 'student3@gmail.com', 'subject': 'Physics', 'class_name': 'HSC 1st Year',
     'location': 'Gulshan, Dhaka', 'salary': 7000, 'days_per_week': 3, 'gender_preference': 'Any',
     'status': STATUS_APPROVED, 'description': 'Physics tutor needed urgently.'},
    {'student_email': 'student4@gmail.com', 'subject': 'Chemistry', 'class_name': 'Class 9',
     'location': 'Uttara, Dhaka', 'salary': 4500, 'days_per_week': 3, 'gender_preference': 'Male',
     'status': STATUS_PENDING, 'description': 'Chemistry tutor for national curriculum.'},
    {'student_email': 'student5@gmail.com', 'subject': 'Biology', 'class_name': 'Class 11',
     'location': 'Banani, Dhaka', 'salary': 6000, 'days_per_week': 2, 'gender_preference': 'Female',
     'status': STATUS_APPROVED, 'description': 'Medical student preferred.'},
    {'student_email': 'student6@gmail.com', 'subject': 'General Science', 'class_name': 'Class 6',
     'location': 'Mohammadpur, Dhaka', 'salary': 3500, 'days_per_week': 4, 'gender_preference': 'Any',
     'status': STATUS_APPROVED, 'description': 'Friendly tutor needed for young child.'},
    {'student_email': 'student7@gmail.com', 'subject': 'Higher Math', 'class_name': 'Class 12',
     'location': 'Bashundhara, Dhaka', 'salary': 8000, 'days_per_week': 3, 'gender_preference': 'Male',
     'status': STATUS_APPROVED, 'description': 'Preparation for BUET admission.'},
]


def seed_tutors(db: Session) -> int:
    inserted = 0
    for tutor in TUTORS:
        if db.query(User).filter(User.email == tutor['email']).first():
            continue
        db.add(User(role=ROLE_TUTOR, **tutor))
        inserted += 1
        logger.info('Inserted tutor: %s', tutor['name'])
    db.commit()
    return inserted


def seed_tuitions(db: Session) -> int:
    if db.query(TuitionPost).count() >= MIN_TUITIONS:
        logger.info('Tuitions already populated, skipping.')
        return 0
    db.add_all(TuitionPost(**tuition) for tuition in TUITIONS)
    db.commit()
    return len(TUITIONS)


def main() -> None:
    logging.basicConfig(level=config.LOG_LEVEL, format='%(levelname)s %(message)s')
    database = Database(config.DATABASE_URL)
    try:
        database.create_all()
        db = database.session()
        try:
            tutors = seed_tutors(db)
            tuitions = seed_tuitions(db)
        finally:
            db.close()
    except SQLAlchemyError:
        logger.exception('Seeding failed.')
        sys.exit(1)
    finally:
        database.dispose()

    print(f'Seeding completed: {tutors} tutors, {tuitions} tuitions inserted.')


if __name__ == '__main__':
    main()
