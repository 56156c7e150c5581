"""Vehicle image storage and management.

Files are stored under ``<tenant_id>/<vehicle_id>/<timestamp>-<filename>``
so one tenant's media never shares a prefix with another's. At most one
image per vehicle has is_cover set; the first upload becomes the cover.
"""

from __future__ import annotations

import re
import time
from pathlib import Path
from uuid import UUID

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from autogestao.core.config import settings
from autogestao.core.exceptions import ImageNotFoundError, StorageError
from autogestao.db.postgres import after_commit, after_rollback
from autogestao.models.image import Image
from autogestao.services.vehicles import VehicleService

logger = structlog.get_logger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


def sanitize_filename(filename: str) -> str:
    return _UNSAFE_CHARS.sub("_", filename).lower()


def build_file_key(
    tenant_id: UUID, vehicle_id: UUID, filename: str, timestamp_ms: int | None = None
) -> str:
    timestamp_ms = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)
    return f"{tenant_id}/{vehicle_id}/{timestamp_ms}-{sanitize_filename(filename)}"


class LocalImageStorage:
    """Filesystem-backed media storage rooted at settings.media_root."""

    def __init__(self, root: str | None = None, base_url: str | None = None) -> None:
        self._root = Path(root or settings.media_root)
        self._base_url = (base_url or settings.media_base_url).rstrip("/")

    def put(self, file_key: str, content: bytes) -> str:
        path = self._root / file_key
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        except OSError as e:
            logger.error("image_store_failed", file_key=file_key, error=str(e))
            raise StorageError() from e
        return f"{self._base_url}/{file_key}"

    def delete(self, file_key: str) -> None:
        try:
            (self._root / file_key).unlink(missing_ok=True)
        except OSError as e:
            logger.warning("image_unlink_failed", file_key=file_key, error=str(e))


class ImageService:
    """Upload, list, reorder and delete images of a tenant's vehicles."""

    def __init__(self, db: AsyncSession, storage: LocalImageStorage) -> None:
        self._db = db
        self._storage = storage
        self._vehicles = VehicleService(db)

    async def list_for_vehicle(
        self, vehicle_id: UUID, tenant_id: UUID
    ) -> list[Image]:
        await self._vehicles.get(vehicle_id, tenant_id)
        result = await self._db.execute(
            select(Image)
            .where(
                Image.vehicle_id == vehicle_id,
                Image.tenant_id == tenant_id,
            )
            .order_by(Image.display_order.asc())
        )
        return list(result.scalars().all())

    async def get_cover(self, vehicle_id: UUID, tenant_id: UUID) -> Image | None:
        result = await self._db.execute(
            select(Image)
            .where(
                Image.vehicle_id == vehicle_id,
                Image.tenant_id == tenant_id,
                Image.is_cover.is_(True),
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get(self, image_id: UUID, vehicle_id: UUID, tenant_id: UUID) -> Image:
        result = await self._db.execute(
            select(Image).where(
                Image.id == image_id,
                Image.vehicle_id == vehicle_id,
                Image.tenant_id == tenant_id,
            )
        )
        image = result.scalar_one_or_none()
        if image is None:
            raise ImageNotFoundError()
        return image

    async def upload(
        self,
        tenant_id: UUID,
        vehicle_id: UUID,
        content: bytes,
        filename: str,
        mime_type: str = "image/jpeg",
        set_as_cover: bool = False,
    ) -> Image:
        existing = await self.list_for_vehicle(vehicle_id, tenant_id)

        file_key = build_file_key(tenant_id, vehicle_id, filename)
        url = self._storage.put(file_key, content)

        is_cover = set_as_cover or not existing
        image = Image(
            tenant_id=tenant_id,
            vehicle_id=vehicle_id,
            url=url,
            file_key=file_key,
            filename=filename,
            mime_type=mime_type,
            file_size=len(content),
            is_cover=is_cover,
            display_order=len(existing),
        )
        # The stored file goes away with the row if the insert or the
        # request transaction fails.
        after_rollback(self._db, lambda: self._storage.delete(file_key))
        try:
            if is_cover and existing:
                await self._clear_cover(vehicle_id, tenant_id)
            self._db.add(image)
            await self._db.flush()
        except Exception:
            self._storage.delete(file_key)
            raise

        logger.info(
            "image_uploaded",
            tenant_id=str(tenant_id),
            vehicle_id=str(vehicle_id),
            file_key=file_key,
            is_cover=is_cover,
        )
        return image

    async def set_cover(
        self, image_id: UUID, vehicle_id: UUID, tenant_id: UUID
    ) -> Image:
        image = await self.get(image_id, vehicle_id, tenant_id)
        await self._clear_cover(vehicle_id, tenant_id)
        image.is_cover = True
        await self._db.flush()
        return image

    async def update_display_order(
        self, image_id: UUID, vehicle_id: UUID, tenant_id: UUID, display_order: int
    ) -> Image:
        image = await self.get(image_id, vehicle_id, tenant_id)
        image.display_order = display_order
        await self._db.flush()
        return image

    async def delete(self, image_id: UUID, vehicle_id: UUID, tenant_id: UUID) -> None:
        """Delete an image; if it was the cover, the next image takes over.

        The file is unlinked only once the transaction commits.
        """
        image = await self.get(image_id, vehicle_id, tenant_id)
        was_cover = image.is_cover
        file_key = image.file_key

        await self._db.execute(
            delete(Image).where(
                Image.id == image_id,
                Image.vehicle_id == vehicle_id,
                Image.tenant_id == tenant_id,
            )
        )
        after_commit(self._db, lambda: self._storage.delete(file_key))

        if was_cover:
            result = await self._db.execute(
                select(Image)
                .where(
                    Image.vehicle_id == vehicle_id,
                    Image.tenant_id == tenant_id,
                )
                .order_by(Image.display_order.asc())
                .limit(1)
            )
            successor = result.scalar_one_or_none()
            if successor is not None:
                successor.is_cover = True
                await self._db.flush()

    async def _clear_cover(self, vehicle_id: UUID, tenant_id: UUID) -> None:
        await self._db.execute(
            update(Image)
            .where(
                Image.vehicle_id == vehicle_id,
                Image.tenant_id == tenant_id,
                Image.is_cover.is_(True),
            )
            .values(is_cover=False)
        )
