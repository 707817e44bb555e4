# saferide/core/chat/repository.py
"""
История чата поездки.
"""

from __future__ import annotations

from uuid import UUID

from saferide.common.errors import StorageFailure
from saferide.common.logger import log_error
from saferide.infra.database import DatabaseManager, storage_errors


class ChatRepository:
    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def save_message(self, ride_id: UUID, sender_id: int, message: str) -> None:
        query = """
            INSERT INTO messages (ride_id, sender_id, message)
            VALUES ($1, $2, $3)
        """
        async with storage_errors("save chat message"):
            await self._db.execute(query, ride_id, sender_id, message)

    async def save_message_quietly(self, ride_id: UUID, sender_id: int, message: str) -> bool:
        """
        Сохраняет сообщение, не прерывая доставку при ошибке.
        Сообщение к этому моменту уже разослано участникам комнаты.
        """
        try:
            await self.save_message(ride_id, sender_id, message)
            return True
        except StorageFailure as e:
            await log_error(f"Сообщение чата поездки {ride_id} не сохранено: {e.message}")
            return False
