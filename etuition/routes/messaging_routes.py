import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from etuition.auth.dependencies import get_verified_email
from etuition.database import get_db
from etuition.models.messaging import Conversation, Message
from etuition.models.user import User
from etuition.services.notifications import notify

router = APIRouter(tags=['messaging'])

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 4000


class StartConversationRequest(BaseModel):
    recipient_email: str

    @field_validator('recipient_email')
    @classmethod
    def validate_recipient_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if not normalized:
            raise ValueError('Recipient email is required.')
        return normalized


class SendMessageRequest(BaseModel):
    conversation_id: int
    content: str

    @field_validator('content')
    @classmethod
    def validate_content(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Message cannot be empty.')
        if len(normalized) > MAX_MESSAGE_LENGTH:
            raise ValueError(f'Message must be {MAX_MESSAGE_LENGTH} characters or fewer.')
        return normalized


class ParticipantResponse(BaseModel):
    email: str
    name: str | None = None
    photo_url: str | None = None


class ConversationResponse(BaseModel):
    id: int
    participants: list[str]
    last_message: str | None = None
    last_message_at: datetime | None = None
    created_at: datetime | None = None
    other_participant: ParticipantResponse | None = None

    class Config:
        from_attributes = True


class MessageResponse(BaseModel):
    id: int
    conversation_id: int
    sender_email: str
    content: str
    read: bool
    created_at: datetime | None = None

    class Config:
        from_attributes = True


def participant_pair(first: str, second: str) -> tuple[str, str]:
    return tuple(sorted((first, second)))


def get_conversation_for(db: Session, conversation_id: int, email: str) -> Conversation:
    conversation = db.get(Conversation, conversation_id)
    if conversation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Conversation not found.')
    if email not in conversation.participants:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='You are not part of this conversation.')
    return conversation


def describe_participant(db: Session, email: str) -> ParticipantResponse:
    user = db.query(User).filter(User.email == email).first()
    if user is None:
        return ParticipantResponse(email=email)
    return ParticipantResponse(email=user.email, name=user.name, photo_url=user.photo_url)


@router.post('/conversations', response_model=ConversationResponse)
def start_conversation(
    data: StartConversationRequest,
    email: str = Depends(get_verified_email),
    db: Session = Depends(get_db),
):
    if data.recipient_email == email:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='You cannot message yourself.')

    participant_a, participant_b = participant_pair(email, data.recipient_email)
    existing = db.query(Conversation).filter(
        Conversation.participant_a == participant_a,
        Conversation.participant_b == participant_b,
    ).first()
    if existing:
        return existing

    conversation = Conversation(participant_a=participant_a, participant_b=participant_b)
    try:
        db.add(conversation)
        db.commit()
    except IntegrityError:
        # Lost a race with the other participant; their row is the conversation.
        db.rollback()
        return db.query(Conversation).filter(
            Conversation.participant_a == participant_a,
            Conversation.participant_b == participant_b,
        ).one()
    db.refresh(conversation)
    return conversation


@router.get('/my-conversations', response_model=list[ConversationResponse])
def list_my_conversations(email: str = Depends(get_verified_email), db: Session = Depends(get_db)):
    conversations = (
        db.query(Conversation)
        .filter(or_(Conversation.participant_a == email, Conversation.participant_b == email))
        .order_by(Conversation.last_message_at.desc(), Conversation.id.desc())
        .all()
    )

    responses: list[ConversationResponse] = []
    for conversation in conversations:
        response = ConversationResponse.model_validate(conversation)
        response.other_participant = describe_participant(db, conversation.other_email(email))
        responses.append(response)
    return responses


@router.post('/messages', response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def send_message(
    data: SendMessageRequest,
    email: str = Depends(get_verified_email),
    db: Session = Depends(get_db),
):
    conversation = get_conversation_for(db, data.conversation_id, email)
    recipient_email = conversation.other_email(email)

    message = Message(conversation_id=conversation.id, sender_email=email, content=data.content)
    db.add(message)
    conversation.last_message = data.content
    conversation.last_message_at = datetime.now()
    db.commit()
    db.refresh(message)

    response = MessageResponse.model_validate(message)
    notify(db, recipient_email, 'message', 'You have a new message', '/dashboard/messages')
    return response


@router.get('/messages/{conversation_id}', response_model=list[MessageResponse])
def list_messages(
    conversation_id: int,
    email: str = Depends(get_verified_email),
    db: Session = Depends(get_db),
):
    conversation = get_conversation_for(db, conversation_id, email)
    return (
        db.query(Message)
        .filter(Message.conversation_id == conversation.id)
        .order_by(Message.created_at.asc(), Message.id.asc())
        .all()
    )
