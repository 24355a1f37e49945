"""
Unit tests for CredentialService and the password helpers.

bcrypt runs for real (4 rounds in tests); repositories are mocked.
"""

import pytest

from irm.core.exceptions import AuthenticationError, BusinessRuleViolation
from irm.models.investor import InvestorStatus
from irm.services.credential_service import (
    CredentialService,
    base_username,
    generate_password,
    hash_password,
    verify_password,
)

from .conftest import INVESTOR_ID, make_credential, make_investor


@pytest.fixture()
def service(credential_repo, investor_repo):
    credential_repo.update.side_effect = lambda c: c
    return CredentialService(credential_repo, investor_repo)


def _stored(credential_repo, investor_repo, password="Secret123", **investor_kwargs):
    credential = make_credential(password_hash=hash_password(password))
    credential_repo.get_by_identifier.return_value = credential
    investor_repo.get.return_value = make_investor(**investor_kwargs)
    return credential


class TestPasswordHelpers:
    def test_hash_round_trip(self):
        hashed = hash_password("Secret123")
        assert hashed != "Secret123"
        assert verify_password("Secret123", hashed)
        assert not verify_password("secret123", hashed)

    def test_malformed_hash_is_no_match(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False

    def test_long_passwords_truncated_consistently(self):
        long = "x" * 100
        assert verify_password(long, hash_password(long))

    def test_generated_password_mixes_character_classes(self):
        password = generate_password()
        assert len(password) == 12
        assert any(c.isupper() for c in password)
        assert any(c.islower() for c in password)
        assert any(c.isdigit() for c in password)

    @pytest.mark.parametrize(
        "first,last,expected",
        [("Ananya", "Iyer", "ananya.iyer"), ("Mary-Jo", "O'Neil", "maryjo.oneil"), ("", "", "investor")],
    )
    def test_base_username(self, first, last, expected):
        assert base_username(first, last) == expected


class TestBuildCredential:
    @pytest.mark.asyncio
    async def test_generated_username_and_password(self, service, credential_repo):
        credential_repo.get_by_username.return_value = None

        credential, password = await service.build_credential(make_investor())

        assert credential.username == "asha.verma"
        assert credential.investor_id == INVESTOR_ID
        assert verify_password(password, credential.password_hash)

    @pytest.mark.asyncio
    async def test_username_collision_gets_suffix(self, service, credential_repo):
        credential_repo.get_by_username.side_effect = [make_credential(), make_credential(), None]

        credential, _ = await service.build_credential(make_investor())

        assert credential.username == "asha.verma3"

    @pytest.mark.asyncio
    async def test_requested_username_and_password(self, service, credential_repo):
        credential_repo.get_by_username.return_value = None

        credential, password = await service.build_credential(
            make_investor(), username=" Asha ", password="Chosen123"
        )

        assert credential.username == "asha"
        assert password == "Chosen123"


class TestAuthenticate:
    @pytest.mark.asyncio
    async def test_login_sets_last_login(self, service, credential_repo, investor_repo):
        _stored(credential_repo, investor_repo)

        investor, credential = await service.login("asha.verma", "Secret123")

        assert investor.id == INVESTOR_ID
        assert credential.last_login_at is not None
        credential_repo.update.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_wrong_password(self, service, credential_repo, investor_repo):
        _stored(credential_repo, investor_repo)
        with pytest.raises(AuthenticationError):
            await service.login("asha.verma", "wrong")
        credential_repo.update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_identifier(self, service, credential_repo, investor_repo):
        credential_repo.get_by_identifier.return_value = None
        investor_repo.get_by_mobile.return_value = None
        with pytest.raises(AuthenticationError):
            await service.login("nobody", "Secret123")

    @pytest.mark.asyncio
    async def test_resolves_investor_id(self, service, credential_repo, investor_repo):
        credential = make_credential(password_hash=hash_password("Secret123"))
        credential_repo.get_by_identifier.return_value = None
        credential_repo.get_by_investor.return_value = credential
        investor_repo.get.return_value = make_investor()

        investor, _ = await service.authenticate(str(INVESTOR_ID), "Secret123")

        assert investor.id == INVESTOR_ID

    @pytest.mark.asyncio
    async def test_resolves_mobile(self, service, credential_repo, investor_repo):
        credential = make_credential(password_hash=hash_password("Secret123"))
        credential_repo.get_by_identifier.return_value = None
        credential_repo.get_by_investor.return_value = credential
        investor_repo.get_by_mobile.return_value = make_investor()
        investor_repo.get.return_value = make_investor()

        await service.authenticate("9876543210", "Secret123")

        investor_repo.get_by_mobile.assert_awaited_once_with("9876543210")

    @pytest.mark.asyncio
    async def test_inactive_investor_refused(self, service, credential_repo, investor_repo):
        _stored(credential_repo, investor_repo, status=InvestorStatus.INACTIVE)
        with pytest.raises(AuthenticationError) as exc_info:
            await service.login("asha.verma", "Secret123")
        assert exc_info.value.message == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_disabled_login_refused(self, service, credential_repo, investor_repo):
        credential = _stored(credential_repo, investor_repo)
        credential.is_active = False
        with pytest.raises(AuthenticationError):
            await service.login("asha.verma", "Secret123")


class TestChangePassword:
    @pytest.mark.asyncio
    async def test_changes_hash(self, service, credential_repo, investor_repo):
        _stored(credential_repo, investor_repo)

        credential = await service.change_password("asha.verma", "Secret123", "Newer4567")

        assert verify_password("Newer4567", credential.password_hash)
        assert credential.password_changed_at is not None

    @pytest.mark.asyncio
    async def test_same_password_rejected(self, service, credential_repo, investor_repo):
        _stored(credential_repo, investor_repo)
        with pytest.raises(BusinessRuleViolation):
            await service.change_password("asha.verma", "Secret123", "Secret123")

    @pytest.mark.asyncio
    async def test_wrong_current_password(self, service, credential_repo, investor_repo):
        _stored(credential_repo, investor_repo)
        with pytest.raises(AuthenticationError):
            await service.change_password("asha.verma", "nope", "Newer4567")
