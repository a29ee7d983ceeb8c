"""Learner credential variants.

New learners sign in with username + date of birth. Learners created by the
older password-based registration keep a bcrypt hash and are checked
against it until they supply a date of birth, at which point they are moved
to the date-of-birth scheme (see ``LearnerAppService.update_onboarding``).
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Optional

import bcrypt

from curriculum_api.domain.learner.models import CREDENTIAL_DOB, CREDENTIAL_PASSWORD, Learner


def parse_date_of_birth(value) -> Optional[date]:
    """Accept YYYY-MM-DD or a full ISO timestamp; None when unparseable."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


class LearnerIdentity(ABC):
    scheme: str

    @abstractmethod
    def verify(self, date_of_birth: Optional[str] = None, password: Optional[str] = None) -> bool:
        ...


class DateOfBirthIdentity(LearnerIdentity):
    scheme = CREDENTIAL_DOB

    def __init__(self, stored: Optional[str]):
        self._stored = parse_date_of_birth(stored)

    def verify(self, date_of_birth: Optional[str] = None, password: Optional[str] = None) -> bool:
        entered = parse_date_of_birth(date_of_birth)
        return self._stored is not None and entered == self._stored


class PasswordIdentity(LearnerIdentity):
    scheme = CREDENTIAL_PASSWORD

    def __init__(self, password_hash: Optional[str]):
        self._hash = password_hash or ""

    def verify(self, date_of_birth: Optional[str] = None, password: Optional[str] = None) -> bool:
        if not password or not self._hash:
            return False
        try:
            return bcrypt.checkpw(password.encode("utf-8"), self._hash.encode("utf-8"))
        except ValueError:
            # Malformed stored hash
            return False


def identity_for(learner: Learner) -> LearnerIdentity:
    if learner.credential_scheme == CREDENTIAL_PASSWORD:
        return PasswordIdentity(learner.password_hash)
    return DateOfBirthIdentity(learner.date_of_birth)
