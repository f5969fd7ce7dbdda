from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from direct_chat.domain.entities.message import Message
from direct_chat.infrastructure.db.mappers import message as mapper
from direct_chat.infrastructure.db.models.message import MessageModel


def _between(user_a: UUID, user_b: UUID):
    return or_(
        and_(MessageModel.sender_id == user_a, MessageModel.receiver_id == user_b),
        and_(MessageModel.sender_id == user_b, MessageModel.receiver_id == user_a),
    )


class MessageReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, message_id: UUID) -> Message | None:
        model = await self._session.get(MessageModel, message_id)
        return mapper.model_to_entity(model) if model else None

    async def get_by_client_msg_id(
        self, sender_id: UUID, client_msg_id: UUID,
    ) -> Message | None:
        stmt = select(MessageModel).where(
            MessageModel.sender_id == sender_id,
            MessageModel.client_msg_id == client_msg_id,
        )
        model = (await self._session.execute(stmt)).scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def list_between(
        self,
        user_a: UUID,
        user_b: UUID,
        *,
        offset: int = 0,
        limit: int = 20,
    ) -> list[Message]:
        stmt = (
            select(MessageModel)
            .where(_between(user_a, user_b))
            .order_by(MessageModel.created_at.desc(), MessageModel.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def count_between(self, user_a: UUID, user_b: UUID) -> int:
        stmt = select(func.count()).select_from(MessageModel).where(_between(user_a, user_b))
        result = await self._session.execute(stmt)
        return result.scalar_one()

    async def unread_counts(self, receiver_id: UUID) -> dict[UUID, int]:
        stmt = (
            select(MessageModel.sender_id, func.count())
            .where(
                MessageModel.receiver_id == receiver_id,
                MessageModel.is_read.is_(False),
                MessageModel.is_deleted.is_(False),
            )
            .group_by(MessageModel.sender_id)
        )
        result = await self._session.execute(stmt)
        return {sender_id: count for sender_id, count in result.all()}


class MessageWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_if_not_exists(self, message: Message) -> tuple[Message, bool]:
        """Insert message idempotently. Returns (message, created_flag)."""
        stmt = (
            pg_insert(MessageModel)
            .values(**mapper.entity_to_values(message))
            .on_conflict_do_nothing(constraint="uq_message_idempotency")
            .returning(MessageModel)
        )
        result = await self._session.execute(stmt)
        row = result.scalar_one_or_none()

        if row is not None:
            return mapper.model_to_entity(row), True

        # Conflict: the sender already used this client_msg_id
        stmt = select(MessageModel).where(
            MessageModel.sender_id == message.sender_id,
            MessageModel.client_msg_id == message.client_msg_id,
        )
        existing = (await self._session.execute(stmt)).scalar_one()
        return mapper.model_to_entity(existing), False

    async def save(self, message: Message) -> Message:
        values = mapper.entity_to_values(message)
        del values["id"]
        stmt = (
            update(MessageModel)
            .where(MessageModel.id == message.id)
            .values(**values)
            .returning(MessageModel)
        )
        result = await self._session.execute(stmt)
        return mapper.model_to_entity(result.scalar_one())

    async def mark_read(
        self, sender_id: UUID, receiver_id: UUID, read_at: datetime,
    ) -> int:
        stmt = (
            update(MessageModel)
            .where(
                MessageModel.sender_id == sender_id,
                MessageModel.receiver_id == receiver_id,
                MessageModel.is_read.is_(False),
                MessageModel.is_deleted.is_(False),
            )
            .values(is_read=True, read_at=read_at, updated_at=read_at)
        )
        result = await self._session.execute(stmt)
        return result.rowcount
