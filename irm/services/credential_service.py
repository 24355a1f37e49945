"""
Investor login credentials.

Passwords are stored only as bcrypt hashes.  bcrypt reads at most 72 bytes
of input, so longer passwords are truncated explicitly before hashing and
verifying.

Login accepts any of: username, email, primary mobile number, or the
investor id.  Every failure (unknown identifier, wrong password, inactive
login, inactive investor) answers with the same 401 message.
"""

import logging
import re
import secrets
import string
import uuid
from datetime import datetime, timezone
from typing import Optional, Tuple

import bcrypt

from irm.core.config import settings
from irm.core.exceptions import AuthenticationError, BusinessRuleViolation
from irm.models.credential import InvestorCredential
from irm.models.investor import Investor, InvestorStatus
from irm.repositories.credential_repo import CredentialRepository
from irm.repositories.investor_repo import InvestorRepository

logger = logging.getLogger(__name__)

PASSWORD_ALPHABET = string.ascii_letters + string.digits
_USERNAME_STRIP_RE = re.compile(r"[^a-z0-9]+")


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(password.encode("utf-8")[:72], salt)
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8")[:72], password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


def generate_password(length: int = 12) -> str:
    """Random password with at least one lower, upper and digit character."""
    while True:
        password = "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))
        if (
            any(c.islower() for c in password)
            and any(c.isupper() for c in password)
            and any(c.isdigit() for c in password)
        ):
            return password


def base_username(first_name: str, last_name: str) -> str:
    """``first.last`` lowercased with anything but letters and digits removed."""
    first = _USERNAME_STRIP_RE.sub("", first_name.lower())
    last = _USERNAME_STRIP_RE.sub("", last_name.lower())
    return ".".join(part for part in (first, last) if part) or "investor"


class CredentialService:
    """Creates credentials and authenticates investors."""

    def __init__(self, credential_repo: CredentialRepository, investor_repo: InvestorRepository):
        self._repo = credential_repo
        self._investor_repo = investor_repo

    async def available_username(self, wanted: str) -> str:
        """``wanted`` if free, otherwise ``wanted2``, ``wanted3``, ..."""
        candidate = wanted
        suffix = 1
        while await self._repo.get_by_username(candidate) is not None:
            suffix += 1
            candidate = f"{wanted}{suffix}"
        return candidate

    async def build_credential(
        self,
        investor: Investor,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> Tuple[InvestorCredential, str]:
        """
        Prepare (but do not persist) a credential for ``investor``.

        Returns the credential and the plain-text password so the caller can
        include it in the welcome email.
        """
        wanted = username.strip().lower() if username else base_username(
            investor.first_name, investor.last_name
        )
        username = await self.available_username(wanted)
        password = password or generate_password()
        credential = InvestorCredential(
            investor_id=investor.id,
            username=username,
            password_hash=hash_password(password),
        )
        return credential, password

    async def _resolve(self, identifier: str) -> Optional[InvestorCredential]:
        identifier = identifier.strip()
        credential = await self._repo.get_by_identifier(identifier)
        if credential is not None:
            return credential

        investor = None
        try:
            investor = await self._investor_repo.get(uuid.UUID(identifier))
        except ValueError:
            investor = await self._investor_repo.get_by_mobile(identifier)
        if investor is None:
            return None
        return await self._repo.get_by_investor(investor.id)

    async def authenticate(
        self, identifier: str, password: str
    ) -> Tuple[Investor, InvestorCredential]:
        credential = await self._resolve(identifier)
        if credential is None or not verify_password(password, credential.password_hash):
            logger.warning("Failed login for identifier '%s'", identifier)
            raise AuthenticationError()

        investor = await self._investor_repo.get(credential.investor_id)
        if not credential.is_active or investor is None or investor.status != InvestorStatus.ACTIVE:
            logger.warning("Login refused for inactive account '%s'", credential.username)
            raise AuthenticationError()
        return investor, credential

    async def login(self, identifier: str, password: str) -> Tuple[Investor, InvestorCredential]:
        investor, credential = await self.authenticate(identifier, password)
        credential.last_login_at = datetime.now(timezone.utc)
        credential = await self._repo.update(credential)
        logger.info("Investor %s logged in as '%s'", investor.id, credential.username)
        return investor, credential

    async def change_password(
        self, identifier: str, current_password: str, new_password: str
    ) -> InvestorCredential:
        _, credential = await self.authenticate(identifier, current_password)
        if current_password == new_password:
            raise BusinessRuleViolation("New password must differ from the current password")
        credential.password_hash = hash_password(new_password)
        credential.password_changed_at = datetime.now(timezone.utc)
        credential = await self._repo.update(credential)
        logger.info("Password changed for '%s'", credential.username)
        return credential
