import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from etuition.models.notification import Notification
from etuition.models.tuition import TuitionPost
from etuition.routes.tuition_routes import (
    CreateTuitionRequest,
    TuitionResponse,
    UpdateTuitionStatusRequest,
    create_tuition,
    get_tuition,
    list_tuition_posts_for_tutors,
    search_public_tuitions,
    update_tuition_status,
)

STUDENT = 'student@example.com'


@pytest.fixture
def listed_tuitions(make_tuition):
    return {
        'physics': make_tuition(STUDENT, subject='Physics', salary=7000, location='Gulshan, Dhaka'),
        'chemistry': make_tuition(STUDENT, subject='Chemistry', salary=4500, location='Uttara, Dhaka'),
        'maths': make_tuition(STUDENT, subject='Higher Math', salary=8000, location='Banani, Dhaka'),
        'pending': make_tuition(STUDENT, subject='Physics', status='pending', salary=9000),
    }


def test_create_tuition_request_accepts_class_key() -> None:
    request = CreateTuitionRequest.model_validate({
        'subject': ' Physics ',
        'class': 'HSC 1st Year',
        'location': 'Gulshan, Dhaka',
        'salary': 7000,
    })

    assert request.subject == 'Physics'
    assert request.class_name == 'HSC 1st Year'


def test_create_tuition_request_rejects_blank_subject() -> None:
    with pytest.raises(ValidationError):
        CreateTuitionRequest(subject='  ', class_name='Class 9', location='Dhaka', salary=4000)


def test_update_tuition_status_request_rejects_unknown_status() -> None:
    with pytest.raises(ValidationError):
        UpdateTuitionStatusRequest(status='archived')


def test_search_public_tuitions_lists_only_approved_posts(db, listed_tuitions) -> None:
    page = search_public_tuitions(db)

    assert page.total == 3
    assert {row.id for row in page.data} == {
        listed_tuitions['physics'].id,
        listed_tuitions['chemistry'].id,
        listed_tuitions['maths'].id,
    }


def test_search_public_tuitions_matches_subject_substring_case_insensitively(db, listed_tuitions) -> None:
    page = search_public_tuitions(db, search='phys')

    assert [row.id for row in page.data] == [listed_tuitions['physics'].id]


def test_search_public_tuitions_filters_by_subject(db, listed_tuitions) -> None:
    physics = search_public_tuitions(db, subject='Physics')
    chemistry = search_public_tuitions(db, subject='chemistry', class_name='class 10')

    assert [row.id for row in physics.data] == [listed_tuitions['physics'].id]
    assert [row.id for row in chemistry.data] == [listed_tuitions['chemistry'].id]
    assert search_public_tuitions(db, subject='Physics', location='Uttara').total == 0


def test_search_public_tuitions_matches_location(db, listed_tuitions) -> None:
    page = search_public_tuitions(db, search='uttara')

    assert [row.subject for row in page.data] == ['Chemistry']


def test_search_public_tuitions_sorts_by_salary(db, listed_tuitions) -> None:
    ascending = search_public_tuitions(db, sort='price_asc')
    descending = search_public_tuitions(db, sort='price_desc')

    assert [row.salary for row in ascending.data] == [4500, 7000, 8000]
    assert [row.salary for row in descending.data] == [8000, 7000, 4500]


def test_search_public_tuitions_reports_page_totals(db, listed_tuitions) -> None:
    page = search_public_tuitions(db, sort='price_asc', page=2, limit=2)

    assert page.total == 3
    assert page.current_page == 2
    assert page.total_pages == 2
    assert [row.salary for row in page.data] == [8000]


def test_search_public_tuitions_returns_empty_page_for_no_matches(db, listed_tuitions) -> None:
    page = search_public_tuitions(db, search='Astronomy')

    assert page.data == []
    assert page.total == 0
    assert page.total_pages == 0


def test_tuition_response_serializes_class_key(db, make_tuition) -> None:
    tuition = make_tuition(STUDENT, class_name='Class 8')

    payload = TuitionResponse.model_validate(tuition).model_dump(by_alias=True)

    assert payload['class'] == 'Class 8'


def test_get_tuition_returns_not_found_for_missing_post(db) -> None:
    with pytest.raises(HTTPException) as exception_info:
        get_tuition(tuition_id=404, db=db)

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == 'Tuition not found'


def test_create_tuition_starts_pending_and_belongs_to_caller(db, make_user) -> None:
    student = make_user(STUDENT)
    data = CreateTuitionRequest(subject='Biology', class_name='Class 11', location='Banani, Dhaka', salary=6000)

    tuition = create_tuition(data=data, student=student, db=db)

    assert tuition.status == 'pending'
    assert tuition.student_email == STUDENT
    assert tuition.assigned_tutor_email is None
    assert search_public_tuitions(db).total == 0


def test_list_tuition_posts_for_tutors_filters_by_status(db, make_user, listed_tuitions) -> None:
    tutor = make_user('tutor@example.com', role='tutor')

    pending = list_tuition_posts_for_tutors(
        status_filter='pending',
        subject=None,
        location=None,
        class_name=None,
        tutor=tutor,
        db=db,
    )

    assert [row.id for row in pending] == [listed_tuitions['pending'].id]


def test_update_tuition_status_approves_and_notifies_student(db, make_user, make_tuition) -> None:
    admin = make_user('admin@example.com', role='admin')
    tuition = make_tuition(STUDENT, subject='Biology', status='pending')

    updated = update_tuition_status(
        tuition_id=tuition.id,
        data=UpdateTuitionStatusRequest(status='approved'),
        admin=admin,
        db=db,
    )

    assert updated.status == 'approved'
    notification = db.query(Notification).filter(Notification.user_email == STUDENT).one()
    assert notification.type == 'tuition-status'


def test_update_tuition_status_only_closes_assigned_post(db, make_user, make_tuition) -> None:
    admin = make_user('admin@example.com', role='admin')
    tuition = make_tuition(STUDENT, status='ongoing', assigned_tutor_email='tutor@example.com')

    with pytest.raises(HTTPException) as exception_info:
        update_tuition_status(
            tuition_id=tuition.id,
            data=UpdateTuitionStatusRequest(status='rejected'),
            admin=admin,
            db=db,
        )

    assert exception_info.value.status_code == 409
    assert db.get(TuitionPost, tuition.id).status == 'ongoing'

    closed = update_tuition_status(
        tuition_id=tuition.id,
        data=UpdateTuitionStatusRequest(status='closed'),
        admin=admin,
        db=db,
    )
    assert closed.status == 'closed'
    assert closed.assigned_tutor_email == 'tutor@example.com'


def test_search_public_tuitions_treats_wildcards_literally(db, listed_tuitions, make_tuition) -> None:
    discounted = make_tuition(STUDENT, subject='Math 100% guaranteed')

    assert search_public_tuitions(db, subject='_').total == 0
    assert search_public_tuitions(db, search='%').total == 1
    assert [row.id for row in search_public_tuitions(db, subject='100%').data] == [discounted.id]
