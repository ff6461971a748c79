"""Supabase-backed storage for DREAMCUT creative briefs.

Best effort only: save() logs and returns False on any failure and never
raises into the request path. The blocking supabase client runs in a
worker thread.

Version: 1.0.0
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from supabase import Client, create_client

from dreamcut.config import DreamcutConfig
from dreamcut.errors import PersistenceWarning
from dreamcut.state_machine import CreativeBrief

logger = logging.getLogger(__name__)

BRIEF_STATUS = "analyzed"


class BriefStore:
    """Inserts finished briefs into the briefs table."""

    def __init__(
        self,
        client: Optional[Client] = None,
        table: Optional[str] = None,
        url: Optional[str] = None,
        key: Optional[str] = None,
    ):
        self.table = table or DreamcutConfig.BRIEFS_TABLE
        self.client = client

        if self.client is None:
            url = url if url is not None else DreamcutConfig.SUPABASE_URL
            key = key if key is not None else DreamcutConfig.SUPABASE_KEY
            if url and key:
                try:
                    self.client = create_client(url, key)
                    logger.info("Supabase brief store initialized")
                except Exception as e:
                    logger.error(f"Failed to initialize Supabase: {e}")
            else:
                logger.info("Supabase not configured, brief persistence disabled")

    @property
    def enabled(self) -> bool:
        return self.client is not None

    @staticmethod
    def to_record(brief: CreativeBrief) -> Dict[str, Any]:
        """Row shape: {id, user_id, payload, status, created_at}"""
        return {
            "id": brief.id,
            "user_id": brief.user_id,
            "payload": brief.to_payload(),
            "status": BRIEF_STATUS,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }

    def _insert(self, record: Dict[str, Any]) -> None:
        try:
            self.client.table(self.table).insert(record).execute()
        except Exception as e:
            raise PersistenceWarning(f"Insert into {self.table} failed: {e}") from e

    async def save(self, brief: CreativeBrief) -> bool:
        """Persist a brief. Returns True on success, never raises."""
        if not self.enabled:
            logger.debug(f"Skipping persistence for {brief.id}: store disabled")
            return False

        try:
            await asyncio.to_thread(self._insert, self.to_record(brief))
        except Exception as e:
            logger.warning(f"Failed to store brief {brief.id}: {e}")
            return False

        logger.info(f"Stored brief {brief.id} in {self.table}")
        return True
