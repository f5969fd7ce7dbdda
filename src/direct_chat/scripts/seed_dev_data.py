"""Seed development data: two users and a short conversation between them."""
from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timedelta, timezone

from direct_chat.domain.entities.message import Message
from direct_chat.domain.entities.user import User
from direct_chat.infrastructure.auth.passwords import Pbkdf2Hasher
from direct_chat.infrastructure.db.session import AsyncSessionLocal
from direct_chat.infrastructure.db.uow import SqlAlchemyUoW

logger = logging.getLogger(__name__)


async def seed() -> None:
    hasher = Pbkdf2Hasher()
    async with AsyncSessionLocal() as session, SqlAlchemyUoW(session) as uow:
        now = datetime.now(timezone.utc)

        users = []
        for full_name, email in [("Alice Doe", "alice@example.com"), ("Bob Roe", "bob@example.com")]:
            user = User(
                id=uuid.uuid4(),
                email=email,
                full_name=full_name,
                password_hash=hasher.hash("password123"),
                profile_pic="",
                created_at=now,
                updated_at=now,
            )
            users.append(await uow.users_w.create(user))
        alice, bob = users

        messages_data = [
            (alice, bob, "Hi Bob!"),
            (bob, alice, "Hey Alice, how are you?"),
            (alice, bob, "Good, thanks. Lunch tomorrow?"),
            (bob, alice, "Sure, noon works."),
        ]
        for i, (sender, receiver, text) in enumerate(messages_data):
            created_at = now + timedelta(seconds=i)
            msg = Message(
                id=uuid.uuid4(),
                sender_id=sender.id,
                receiver_id=receiver.id,
                text=text,
                image=None,
                client_msg_id=None,
                created_at=created_at,
                updated_at=created_at,
            )
            await uow.messages_w.create_if_not_exists(msg)

        await uow.commit()
        logger.info("Seeded users %s, %s with %d messages", alice.email, bob.email, len(messages_data))


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    asyncio.run(seed())


if __name__ == "__main__":
    main()
