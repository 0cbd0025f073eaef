import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from etuition.models.user import User
from etuition.routes.user_routes import (
    CreateUserRequest,
    TutorProfileRequest,
    UpdateRoleRequest,
    create_user,
    delete_user,
    get_user,
    search_tutors,
    update_tutor_profile,
    update_user_role,
)


def test_create_user_is_idempotent(db) -> None:
    first = create_user(data=CreateUserRequest(name='Ayesha'), email='ayesha@example.com', db=db)
    second = create_user(data=CreateUserRequest(name='Someone Else'), email='ayesha@example.com', db=db)

    assert first['message'] == 'User created'
    assert first['inserted_id'] is not None
    assert second == {'message': 'User already exists', 'inserted_id': None}
    user = db.query(User).one()
    assert user.role == 'student'
    assert user.name == 'Ayesha'


def test_get_user_returns_not_found(db) -> None:
    with pytest.raises(HTTPException) as exception_info:
        get_user(email='missing@example.com', db=db)

    assert exception_info.value.status_code == 404


def test_search_tutors_lists_only_tutors_by_name(db, make_user) -> None:
    make_user('rahim@tutor.com', role='tutor', name='Rahim Uddin')
    make_user('fatima@tutor.com', role='tutor', name='Fatima Begum')
    make_user('rahima@student.com', name='Rahima Student')

    page = search_tutors(db, search='rahim')

    assert [row.email for row in page.data] == ['rahim@tutor.com']
    assert page.total == 1
    assert page.current_page == 1


def test_search_tutors_paginates(db, make_user) -> None:
    for index in range(10):
        make_user(f'tutor{index}@example.com', role='tutor')

    page = search_tutors(db, page=2)

    assert page.total == 10
    assert page.total_pages == 2
    assert len(page.data) == 2


def test_update_tutor_profile_sets_only_provided_fields(db, make_user) -> None:
    tutor = make_user('tutor@example.com', role='tutor')
    tutor.location = 'Sylhet'
    db.commit()

    updated = update_tutor_profile(
        data=TutorProfileRequest(subjects=[' ICT ', '', 'Math'], hourly_rate=600),
        tutor=tutor,
        db=db,
    )

    assert updated.subjects == ['ICT', 'Math']
    assert updated.hourly_rate == 600
    assert updated.location == 'Sylhet'


def test_tutor_profile_request_rejects_negative_rate() -> None:
    with pytest.raises(ValidationError):
        TutorProfileRequest(hourly_rate=-1)


def test_update_user_role_changes_role(db, make_user) -> None:
    admin = make_user('admin@example.com', role='admin')
    user = make_user('student@example.com')

    updated = update_user_role(user_id=user.id, data=UpdateRoleRequest(role=' Tutor '), admin=admin, db=db)

    assert updated.role == 'tutor'


def test_delete_user_refuses_own_account(db, make_user) -> None:
    admin = make_user('admin@example.com', role='admin')
    user = make_user('student@example.com')

    with pytest.raises(HTTPException) as exception_info:
        delete_user(user_id=admin.id, admin=admin, db=db)

    assert exception_info.value.status_code == 400
    assert delete_user(user_id=user.id, admin=admin, db=db) == {'deleted_count': 1}
    assert db.query(User).count() == 1


def test_search_tutors_treats_wildcards_literally(db, make_user) -> None:
    make_user('rahim@tutor.com', role='tutor', name='Rahim Uddin')
    make_user('first_last@tutor.com', role='tutor', name='First Last')

    assert [row.email for row in search_tutors(db, search='_').data] == ['first_last@tutor.com']
    assert search_tutors(db, search='%').total == 0
