"""
Attachment handling — save uploads locally and describe them to the AI.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

import aiofiles

from courier.chat.base import ChatTransport
from courier.core.types import Attachment

logger = logging.getLogger(__name__)


async def process_attachments(
    attachments: tuple[Attachment, ...] | list[Attachment],
    transport: ChatTransport,
    uploads_dir: Path,
) -> str:
    """
    Download every attachment and return one prompt note per file.

    Attachments without a data reference are skipped; download failures
    are logged and skipped so the text part of the message still goes
    through.
    """
    lines: list[str] = []
    for attachment in attachments:
        if not attachment.resource_name:
            continue
        try:
            data = await transport.download(attachment.resource_name)
            uploads_dir.mkdir(parents=True, exist_ok=True)
            filename = Path(attachment.content_name).name or "attachment"
            save_path = (uploads_dir / f"{int(time.time() * 1000)}-{filename}").resolve()
            async with aiofiles.open(save_path, mode="wb") as f:
                await f.write(data)
        except Exception as e:
            logger.error(f"[attachment] failed to download {attachment.content_name}: {e}")
            continue
        logger.info(f"[attachment] downloaded {attachment.content_name} -> {save_path}")
        lines.append(
            f"The user attached {attachment.content_name} at {save_path}. "
            f"Use the Read tool to read this file, then respond to their message."
        )
    return "\n".join(lines)
