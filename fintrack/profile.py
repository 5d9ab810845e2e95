from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, List, Optional, Tuple

from fintrack.formatting import round_half_up
from fintrack.records import ZERO, UserProfile


@dataclass(frozen=True)
class SectionStatus:
    basic_info: bool
    contact_details: bool
    financial_info: bool

    @property
    def completed_count(self) -> int:
        return sum((self.basic_info, self.contact_details, self.financial_info))


@dataclass(frozen=True)
class ProfileCompletion:
    percentage: int
    completed_fields: Tuple[str, ...]
    missing_fields: Tuple[str, ...]
    sections: SectionStatus


def _has_address(user: UserProfile) -> bool:
    return bool(user.address and (user.address.street or user.address.city))


def _has_income(user: UserProfile) -> bool:
    return user.monthly_income is not None and user.monthly_income > ZERO


COMPLETION_CHECKS: List[Tuple[str, Callable[[UserProfile], bool]]] = [
    ("name", lambda user: bool(user.name)),
    ("email", lambda user: bool(user.email)),
    ("phone", lambda user: bool(user.phone)),
    ("address", _has_address),
    ("monthly_income", _has_income),
    ("occupation", lambda user: bool(user.occupation)),
    ("date_of_birth", lambda user: user.date_of_birth is not None),
    ("profile_image", lambda user: bool(user.profile_image)),
]


def calculate_profile_completion(user: Optional[UserProfile]) -> int:
    """Share of the eight profile checks that pass, as a whole percent."""
    if user is None:
        return 0
    passed = sum(1 for _, check in COMPLETION_CHECKS if check(user))
    return int(round_half_up(Decimal(passed) / len(COMPLETION_CHECKS) * 100))


def get_section_status(user: Optional[UserProfile]) -> SectionStatus:
    if user is None:
        return SectionStatus(basic_info=False, contact_details=False, financial_info=False)
    return SectionStatus(
        basic_info=bool(user.name and user.email),
        contact_details=bool(user.phone) or _has_address(user),
        financial_info=_has_income(user) and bool(user.occupation),
    )


def describe_profile_completion(user: Optional[UserProfile]) -> ProfileCompletion:
    completed: List[str] = []
    missing: List[str] = []
    for field_name, check in COMPLETION_CHECKS:
        if user is not None and check(user):
            completed.append(field_name)
        else:
            missing.append(field_name)
    return ProfileCompletion(
        percentage=calculate_profile_completion(user),
        completed_fields=tuple(completed),
        missing_fields=tuple(missing),
        sections=get_section_status(user),
    )
