from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from etuition.auth.dependencies import get_verified_email
from etuition.database import get_db
from etuition.models.bookmark import Bookmark

router = APIRouter(tags=['bookmarks'])

BOOKMARK_TYPES = ('tutor', 'tuition')


def _validate_type(value: str) -> str:
    normalized = value.strip().lower()
    if normalized not in BOOKMARK_TYPES:
        raise ValueError('Bookmark type must be tutor or tuition.')
    return normalized


class ToggleBookmarkRequest(BaseModel):
    item_id: str
    type: str

    @field_validator('item_id')
    @classmethod
    def validate_item_id(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Item id is required.')
        return normalized

    @field_validator('type')
    @classmethod
    def validate_type(cls, value: str) -> str:
        return _validate_type(value)


class BookmarkResponse(BaseModel):
    id: int
    item_id: str
    item_type: str
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class BookmarkStateResponse(BaseModel):
    bookmarked: bool
    message: str | None = None


def find_bookmark(db: Session, user_email: str, item_id: str, item_type: str) -> Bookmark | None:
    return db.query(Bookmark).filter(
        Bookmark.user_email == user_email,
        Bookmark.item_id == item_id,
        Bookmark.item_type == item_type,
    ).first()


@router.post('/bookmarks', response_model=BookmarkStateResponse)
def toggle_bookmark(
    data: ToggleBookmarkRequest,
    email: str = Depends(get_verified_email),
    db: Session = Depends(get_db),
):
    existing = find_bookmark(db, email, data.item_id, data.type)
    if existing:
        db.delete(existing)
        db.commit()
        return BookmarkStateResponse(bookmarked=False, message='Bookmark removed')

    db.add(Bookmark(user_email=email, item_id=data.item_id, item_type=data.type))
    db.commit()
    return BookmarkStateResponse(bookmarked=True, message='Bookmark added')


@router.get('/my-bookmarks', response_model=list[BookmarkResponse])
def list_my_bookmarks(
    item_type: str | None = Query(default=None, alias='type'),
    email: str = Depends(get_verified_email),
    db: Session = Depends(get_db),
):
    query = db.query(Bookmark).filter(Bookmark.user_email == email)
    if item_type:
        query = query.filter(Bookmark.item_type == item_type.strip().lower())
    return query.order_by(Bookmark.created_at.desc(), Bookmark.id.desc()).all()


@router.get('/is-bookmarked', response_model=BookmarkStateResponse)
def is_bookmarked(
    item_id: str = Query(...),
    item_type: str = Query(..., alias='type'),
    email: str = Depends(get_verified_email),
    db: Session = Depends(get_db),
):
    existing = find_bookmark(db, email, item_id.strip(), item_type.strip().lower())
    return BookmarkStateResponse(bookmarked=existing is not None)
