from adtime.modules.agreements.repository import AgreementRepository
from adtime.modules.agreements.service import AgreementService

__all__ = ["AgreementRepository", "AgreementService"]
