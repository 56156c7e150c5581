"""Unit tests for image storage and cover management.

Tests:
  - file keys are prefixed by tenant and vehicle, filenames sanitized
  - the first upload becomes the cover
  - set_as_cover clears the existing cover
  - a failed insert removes the stored file; a rolled-back request does too
  - deleting the cover promotes the next image
  - files are unlinked only after the delete commits
  - local storage writes under media_root and maps OSError to StorageError
"""

from __future__ import annotations

import uuid
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from autogestao.core.exceptions import ImageNotFoundError, StorageError
from autogestao.db.postgres import run_after_commit, run_after_rollback
from autogestao.models.image import Image
from autogestao.models.vehicle import Vehicle
from autogestao.services.images import (
    ImageService,
    LocalImageStorage,
    build_file_key,
    sanitize_filename,
)


def _vehicle(tenant_id: uuid.UUID) -> Vehicle:
    return Vehicle(
        id=uuid.uuid4(),
        tenant_id=tenant_id,
        make="Honda",
        model="Civic",
        year=2019,
        price=90000.0,
        is_available=True,
    )


def _image(tenant_id: uuid.UUID, vehicle_id: uuid.UUID, cover: bool, order: int) -> Image:
    return Image(
        id=uuid.uuid4(),
        tenant_id=tenant_id,
        vehicle_id=vehicle_id,
        url=f"/media/{order}.jpg",
        file_key=f"{tenant_id}/{vehicle_id}/{order}.jpg",
        filename=f"{order}.jpg",
        mime_type="image/jpeg",
        file_size=10,
        is_cover=cover,
        display_order=order,
    )


def _storage() -> MagicMock:
    storage = MagicMock()
    storage.put.side_effect = lambda key, content: f"/media/{key}"
    return storage


class TestFileKeys:
    def test_sanitize(self) -> None:
        assert sanitize_filename("Foto Frontal (1).JPG") == "foto_frontal__1_.jpg"

    def test_key_layout(self, sample_tenant_id) -> None:
        vehicle_id = uuid.uuid4()
        key = build_file_key(sample_tenant_id, vehicle_id, "a b.png", timestamp_ms=42)
        assert key == f"{sample_tenant_id}/{vehicle_id}/42-a_b.png"


class TestUpload:
    @pytest.mark.asyncio
    async def test_first_upload_is_cover(
        self, test_db, make_result, sample_tenant_id
    ) -> None:
        vehicle = _vehicle(sample_tenant_id)
        test_db.execute.side_effect = [make_result(vehicle), make_result(items=[])]
        storage = _storage()

        image = await ImageService(test_db, storage).upload(
            sample_tenant_id, vehicle.id, b"jpegbytes", "frente.jpg"
        )

        assert image.is_cover is True
        assert image.display_order == 0
        assert image.file_size == 9
        assert image.file_key.startswith(f"{sample_tenant_id}/{vehicle.id}/")
        storage.put.assert_called_once()

    @pytest.mark.asyncio
    async def test_second_upload_is_not_cover(
        self, test_db, make_result, sample_tenant_id
    ) -> None:
        vehicle = _vehicle(sample_tenant_id)
        existing = [_image(sample_tenant_id, vehicle.id, True, 0)]
        test_db.execute.side_effect = [make_result(vehicle), make_result(items=existing)]

        image = await ImageService(test_db, _storage()).upload(
            sample_tenant_id, vehicle.id, b"x", "lado.jpg"
        )

        assert image.is_cover is False
        assert image.display_order == 1
        assert test_db.execute.await_count == 2

    @pytest.mark.asyncio
    async def test_set_as_cover_clears_previous(
        self, test_db, make_result, sample_tenant_id
    ) -> None:
        vehicle = _vehicle(sample_tenant_id)
        existing = [_image(sample_tenant_id, vehicle.id, True, 0)]
        test_db.execute.side_effect = [
            make_result(vehicle),
            make_result(items=existing),
            MagicMock(),
        ]

        image = await ImageService(test_db, _storage()).upload(
            sample_tenant_id, vehicle.id, b"x", "nova.jpg", set_as_cover=True
        )

        assert image.is_cover is True
        clear_stmt = str(test_db.execute.call_args_list[2][0][0])
        assert clear_stmt.startswith("UPDATE images")

    @pytest.mark.asyncio
    async def test_upload_to_other_tenant_vehicle(
        self, test_db, make_result, other_tenant_id
    ) -> None:
        from autogestao.core.exceptions import VehicleNotFoundError

        test_db.execute.return_value = make_result(None)
        storage = _storage()

        with pytest.raises(VehicleNotFoundError):
            await ImageService(test_db, storage).upload(
                other_tenant_id, uuid.uuid4(), b"x", "a.jpg"
            )
        storage.put.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_insert_removes_file(
        self, test_db, make_result, sample_tenant_id, tmp_path: Path
    ) -> None:
        vehicle = _vehicle(sample_tenant_id)
        test_db.execute.side_effect = [make_result(vehicle), make_result(items=[])]
        test_db.flush.side_effect = RuntimeError("insert failed")
        storage = LocalImageStorage(root=str(tmp_path), base_url="/media")

        with pytest.raises(RuntimeError):
            await ImageService(test_db, storage).upload(
                sample_tenant_id, vehicle.id, b"jpegbytes", "a.jpg"
            )

        assert [p for p in tmp_path.rglob("*") if p.is_file()] == []

    @pytest.mark.asyncio
    async def test_rolled_back_request_removes_file(
        self, test_db, make_result, sample_tenant_id
    ) -> None:
        vehicle = _vehicle(sample_tenant_id)
        test_db.execute.side_effect = [make_result(vehicle), make_result(items=[])]
        storage = _storage()

        image = await ImageService(test_db, storage).upload(
            sample_tenant_id, vehicle.id, b"x", "a.jpg"
        )
        storage.delete.assert_not_called()

        run_after_rollback(test_db)
        storage.delete.assert_called_once_with(image.file_key)

    @pytest.mark.asyncio
    async def test_committed_upload_keeps_file(
        self, test_db, make_result, sample_tenant_id
    ) -> None:
        vehicle = _vehicle(sample_tenant_id)
        test_db.execute.side_effect = [make_result(vehicle), make_result(items=[])]
        storage = _storage()

        await ImageService(test_db, storage).upload(
            sample_tenant_id, vehicle.id, b"x", "a.jpg"
        )
        run_after_commit(test_db)

        storage.delete.assert_not_called()


class TestDelete:
    @pytest.mark.asyncio
    async def test_deleting_cover_promotes_next(
        self, test_db, make_result, sample_tenant_id
    ) -> None:
        vehicle_id = uuid.uuid4()
        cover = _image(sample_tenant_id, vehicle_id, True, 0)
        successor = _image(sample_tenant_id, vehicle_id, False, 1)
        test_db.execute.side_effect = [
            make_result(cover),
            MagicMock(),
            make_result(successor),
        ]
        storage = _storage()

        await ImageService(test_db, storage).delete(cover.id, vehicle_id, sample_tenant_id)

        assert successor.is_cover is True
        storage.delete.assert_not_called()

        run_after_commit(test_db)
        storage.delete.assert_called_once_with(cover.file_key)

    @pytest.mark.asyncio
    async def test_deleting_non_cover(
        self, test_db, make_result, sample_tenant_id
    ) -> None:
        vehicle_id = uuid.uuid4()
        image = _image(sample_tenant_id, vehicle_id, False, 2)
        test_db.execute.side_effect = [make_result(image), MagicMock()]

        await ImageService(test_db, _storage()).delete(image.id, vehicle_id, sample_tenant_id)

        assert test_db.execute.await_count == 2

    @pytest.mark.asyncio
    async def test_rolled_back_delete_keeps_file(
        self, test_db, make_result, sample_tenant_id
    ) -> None:
        vehicle_id = uuid.uuid4()
        image = _image(sample_tenant_id, vehicle_id, False, 2)
        test_db.execute.side_effect = [make_result(image), MagicMock()]
        storage = _storage()

        await ImageService(test_db, storage).delete(image.id, vehicle_id, sample_tenant_id)
        run_after_rollback(test_db)

        storage.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_image(self, test_db, make_result, sample_tenant_id) -> None:
        test_db.execute.return_value = make_result(None)

        with pytest.raises(ImageNotFoundError):
            await ImageService(test_db, _storage()).delete(
                uuid.uuid4(), uuid.uuid4(), sample_tenant_id
            )


class TestLocalStorage:
    def test_put_and_delete(self, tmp_path: Path) -> None:
        storage = LocalImageStorage(root=str(tmp_path), base_url="/media/")

        url = storage.put("t/v/1-a.jpg", b"data")

        assert url == "/media/t/v/1-a.jpg"
        assert (tmp_path / "t/v/1-a.jpg").read_bytes() == b"data"
        storage.delete("t/v/1-a.jpg")
        assert not (tmp_path / "t/v/1-a.jpg").exists()

    def test_put_failure(self, tmp_path: Path) -> None:
        blocker = tmp_path / "t"
        blocker.write_text("not a directory")
        storage = LocalImageStorage(root=str(tmp_path))

        with pytest.raises(StorageError):
            storage.put("t/v/1-a.jpg", b"data")
