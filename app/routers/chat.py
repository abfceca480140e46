from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.current_user import get_current_user
from app.core.deps import get_db
from app.core.enums import ChatType, MessageType
from app.models.chat import Chat, ChatParticipant, Message
from app.models.user import User
from app.schemas.chat import (
    ChatCreate,
    ChatRead,
    MessageCreate,
    MessageForward,
    MessageRead,
    MessageUpdate,
)
from app.schemas.user import UserBrief

router = APIRouter()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _membership(db: Session, chat_id: int, user_id: int) -> ChatParticipant:
    chat = db.get(Chat, chat_id)
    if not chat:
        raise HTTPException(status_code=404, detail="Chat not found")

    member = (
        db.query(ChatParticipant)
        .filter(ChatParticipant.chat_id == chat_id, ChatParticipant.user_id == user_id)
        .first()
    )
    if not member:
        raise HTTPException(status_code=403, detail="Not a participant of this chat")
    return member


def _own_message(db: Session, message_id: int, me: User) -> Message:
    message = db.get(Message, message_id)
    if not message:
        raise HTTPException(status_code=404, detail="Message not found")
    if message.sender_id != me.id:
        raise HTTPException(status_code=403, detail="You can only change your own messages")
    if message.is_deleted:
        raise HTTPException(status_code=400, detail="Message has been deleted")
    return message


def _chat_read(db: Session, chat: Chat, member: ChatParticipant) -> dict:
    last_message = (
        db.query(Message)
        .filter(Message.chat_id == chat.id)
        .order_by(Message.id.desc())
        .first()
    )

    unread = db.query(func.count(Message.id)).filter(
        Message.chat_id == chat.id,
        Message.sender_id != member.user_id,
        Message.is_deleted.is_(False),
    )
    if member.last_read_at is not None:
        unread = unread.filter(Message.created_at > member.last_read_at)

    return {
        "id": chat.id,
        "name": chat.name,
        "type": chat.type,
        "created_at": chat.created_at,
        "updated_at": chat.updated_at,
        "participants": [p.user for p in chat.participants],
        "last_message": last_message,
        "unread_count": unread.scalar() or 0,
    }


def _find_direct_chat(db: Session, user_id: int, other_id: int) -> Chat | None:
    mine = db.query(ChatParticipant.chat_id).filter(ChatParticipant.user_id == user_id)
    return (
        db.query(Chat)
        .join(ChatParticipant, ChatParticipant.chat_id == Chat.id)
        .filter(
            Chat.type == ChatType.DIRECT.value,
            Chat.id.in_(mine),
            ChatParticipant.user_id == other_id,
        )
        .first()
    )


@router.post("/chats", response_model=ChatRead, status_code=status.HTTP_201_CREATED)
def create_chat(
    payload: ChatCreate,
    response: Response,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    other_ids = [uid for uid in dict.fromkeys(payload.participant_ids) if uid != me.id]
    if not other_ids:
        raise HTTPException(status_code=400, detail="A chat needs at least one other participant")

    found = db.query(User.id).filter(User.id.in_(other_ids)).all()
    if len(found) != len(other_ids):
        raise HTTPException(status_code=404, detail="User not found")

    if payload.type == ChatType.DIRECT:
        existing = _find_direct_chat(db, me.id, other_ids[0])
        if existing:
            response.status_code = status.HTTP_200_OK
            return _chat_read(db, existing, _membership(db, existing.id, me.id))

    now = _now()
    chat = Chat(name=payload.name, type=payload.type.value, created_at=now, updated_at=now)
    chat.participants.append(ChatParticipant(user_id=me.id, is_admin=True, last_read_at=now))
    for uid in other_ids:
        chat.participants.append(ChatParticipant(user_id=uid))

    db.add(chat)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(chat)
    return _chat_read(db, chat, _membership(db, chat.id, me.id))


@router.get("/chats", response_model=list[ChatRead])
def my_chats(
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    memberships = (
        db.query(ChatParticipant)
        .join(Chat, Chat.id == ChatParticipant.chat_id)
        .filter(ChatParticipant.user_id == me.id)
        .order_by(Chat.updated_at.desc(), Chat.id.desc())
        .all()
    )
    return [_chat_read(db, m.chat, m) for m in memberships]


@router.get("/chats/{chat_id}/messages", response_model=list[MessageRead])
def list_messages(
    chat_id: int,
    limit: int = Query(default=50, ge=1, le=100),
    before_id: int | None = None,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    _membership(db, chat_id, me.id)

    q = db.query(Message).filter(Message.chat_id == chat_id)
    if before_id is not None:
        q = q.filter(Message.id < before_id)

    # newest page first, then flip to chronological order
    page = q.order_by(Message.id.desc()).limit(limit).all()
    return list(reversed(page))


@router.post(
    "/chats/{chat_id}/messages",
    response_model=MessageRead,
    status_code=status.HTTP_201_CREATED,
)
def send_message(
    chat_id: int,
    payload: MessageCreate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    member = _membership(db, chat_id, me.id)

    if payload.reply_to_id is not None:
        original = db.get(Message, payload.reply_to_id)
        if not original or original.chat_id != chat_id:
            raise HTTPException(status_code=400, detail="Reply target is not in this chat")

    now = _now()
    message = Message(
        chat_id=chat_id,
        sender_id=me.id,
        content=payload.content,
        type=payload.type.value,
        reply_to_id=payload.reply_to_id,
        created_at=now,
    )
    db.add(message)
    member.chat.updated_at = now
    member.last_read_at = now

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(message)
    return message


@router.post("/chats/{chat_id}/read", status_code=status.HTTP_204_NO_CONTENT)
def mark_read(
    chat_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    member = _membership(db, chat_id, me.id)
    member.last_read_at = _now()
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


@router.patch("/messages/{message_id}", response_model=MessageRead)
def edit_message(
    message_id: int,
    payload: MessageUpdate,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    message = _own_message(db, message_id, me)
    message.content = payload.content
    message.is_edited = True
    message.edited_at = _now()

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(message)
    return message


@router.delete("/messages/{message_id}", response_model=MessageRead)
def delete_message(
    message_id: int,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    message = _own_message(db, message_id, me)
    message.is_deleted = True
    message.content = ""

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(message)
    return message


@router.post(
    "/messages/{message_id}/forward",
    response_model=MessageRead,
    status_code=status.HTTP_201_CREATED,
)
def forward_message(
    message_id: int,
    payload: MessageForward,
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    source = db.get(Message, message_id)
    if not source:
        raise HTTPException(status_code=404, detail="Message not found")
    _membership(db, source.chat_id, me.id)
    target = _membership(db, payload.target_chat_id, me.id)
    if source.is_deleted:
        raise HTTPException(status_code=400, detail="Message has been deleted")

    now = _now()
    message = Message(
        chat_id=payload.target_chat_id,
        sender_id=me.id,
        content=payload.content or source.content,
        type=MessageType.TEXT.value,
        created_at=now,
    )
    db.add(message)
    target.chat.updated_at = now
    target.last_read_at = now

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(message)
    return message


@router.get("/find-user", response_model=UserBrief)
def find_user(
    email: str = Query(min_length=3),
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    user = db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user
