"""
Agreement Service

Consent to personal-data processing. A user without a stored row has simply
not agreed yet; that is reported as a default value, not an error. The phone
number is stored as given, including an empty one.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from adtime.domain.models.agreement import UserAgreement

if TYPE_CHECKING:
    from adtime.modules.agreements.repository import AgreementRepository


class AgreementService:
    def __init__(self, agreement_repository: AgreementRepository) -> None:
        self._repository = agreement_repository

    async def save_user_agreement(self, user_id: int, phone_number: str) -> None:
        await self._repository.upsert_consent(user_id, phone_number)

    async def get_user_agreement(self, user_id: int) -> UserAgreement:
        agreement = await self._repository.get(user_id)
        return agreement if agreement is not None else UserAgreement.absent(user_id)
