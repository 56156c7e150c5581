"""Unit tests for TenantService subdomain checks and AdminService."""

from __future__ import annotations

import uuid
from unittest.mock import MagicMock

import pytest

from autogestao.core.exceptions import BadRequestError, TenantNotFoundError
from autogestao.models.profile import Profile
from autogestao.services.admin import AdminService
from autogestao.services.tenants import TenantService


class TestSubdomainAvailability:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("subdomain", ["ab", "Loja_A", "x" * 33, "loja.a", ""])
    async def test_invalid_format(self, test_db, subdomain) -> None:
        available, reason = await TenantService(test_db).check_subdomain_available(
            subdomain
        )
        assert available is False
        assert reason == "Invalid subdomain"
        test_db.execute.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("subdomain", ["admin", "api", "www", "assets"])
    async def test_reserved(self, test_db, subdomain) -> None:
        available, reason = await TenantService(test_db).check_subdomain_available(
            subdomain
        )
        assert available is False
        assert reason == "Reserved subdomain"

    @pytest.mark.asyncio
    async def test_taken_even_if_inactive(
        self, test_db, make_result, sample_tenant
    ) -> None:
        sample_tenant.is_active = False
        test_db.execute.return_value = make_result(sample_tenant)

        available, reason = await TenantService(test_db).check_subdomain_available(
            "loja-a"
        )

        assert available is False
        assert reason == "Subdomain already exists"
        stmt = test_db.execute.call_args[0][0]
        assert "tenants.is_active" not in str(stmt.whereclause)

    @pytest.mark.asyncio
    async def test_available(self, test_db, make_result) -> None:
        test_db.execute.return_value = make_result(None)

        assert await TenantService(test_db).check_subdomain_available("loja-nova") == (
            True,
            None,
        )


class TestAdminService:
    @pytest.mark.asyncio
    async def test_create_tenant_with_owner(
        self, test_db, make_result, sample_user_id
    ) -> None:
        test_db.execute.return_value = make_result(None)

        tenant = await AdminService(test_db).create_tenant(
            "Loja-Nova", "Loja Nova", owner_user_id=sample_user_id, city="Recife",
            is_active=False,
        )

        assert tenant.subdomain == "loja-nova"
        assert tenant.city == "Recife"
        assert tenant.is_active is True
        profile = test_db.add.call_args_list[1][0][0]
        assert isinstance(profile, Profile)
        assert profile.role == "owner"
        assert profile.user_id == sample_user_id

    @pytest.mark.asyncio
    async def test_create_tenant_taken(self, test_db, make_result, sample_tenant) -> None:
        test_db.execute.return_value = make_result(sample_tenant)

        with pytest.raises(BadRequestError):
            await AdminService(test_db).create_tenant("loja-a", "Outra")
        test_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_set_status(self, test_db, make_result, sample_tenant) -> None:
        test_db.execute.return_value = make_result(sample_tenant)

        tenant = await AdminService(test_db).set_tenant_status(sample_tenant.id, False)

        assert tenant.is_active is False

    @pytest.mark.asyncio
    async def test_update_unknown_tenant(self, test_db, make_result) -> None:
        test_db.execute.return_value = make_result(None)

        with pytest.raises(TenantNotFoundError):
            await AdminService(test_db).update_tenant(uuid.uuid4(), {"name": "x"})

    @pytest.mark.asyncio
    async def test_update_ignores_protected_fields(
        self, test_db, make_result, sample_tenant
    ) -> None:
        test_db.execute.return_value = make_result(sample_tenant)

        await AdminService(test_db).update_tenant(
            sample_tenant.id, {"name": "Loja A Premium", "subdomain": "hack"}
        )

        assert sample_tenant.name == "Loja A Premium"
        assert sample_tenant.subdomain == "loja-a"

    @pytest.mark.asyncio
    async def test_platform_stats(self, test_db) -> None:
        counts = iter([10, 8, 120, 300, 25, 6])

        def _count(*_args, **_kwargs):
            result = MagicMock()
            result.scalar_one.return_value = next(counts)
            return result

        test_db.execute.side_effect = _count

        stats = await AdminService(test_db).get_platform_stats()

        assert stats.total_tenants == 10
        assert stats.active_tenants == 8
        assert stats.total_api_keys == 6
