"""
Ticket External Storage
========================

Blob storage for attachment bytes. Only metadata lives in the database.
"""

import asyncio
import uuid
from pathlib import Path

from helpdesk.core import BlobStoreException
from helpdesk.shared.infrastructure.logging import get_logger
from helpdesk.tickets.application.services import IBlobStore

logger = get_logger(__name__)


class LocalBlobStore(IBlobStore):
    """
    Writes attachments under ``root/<ticket_id>/<comment_id>/``.

    File writes run in a worker thread so the event loop is not blocked.
    A short random prefix keeps two uploads with the same name apart.
    """

    def __init__(self, root: Path):
        self._root = Path(root)

    async def store(self, ticket_id: int, comment_id: int, file_name: str, data: bytes) -> str:
        safe_name = Path(file_name).name
        if not safe_name or safe_name in (".", ".."):
            raise BlobStoreException(
                f"Unusable attachment file name '{file_name}'",
                {"file_name": file_name}
            )

        target = self._root / str(ticket_id) / str(comment_id) / f"{uuid.uuid4().hex[:8]}-{safe_name}"

        try:
            await asyncio.to_thread(self._write, target, data)
        except OSError as e:
            raise BlobStoreException(
                f"Could not store attachment '{safe_name}'",
                {"file_name": safe_name, "error": str(e)}
            ) from e

        logger.debug(f"Stored attachment {target} ({len(data)} bytes)")
        return str(target)

    @staticmethod
    def _write(target: Path, data: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
