# gamecore_pet/api/virtual_pets/errors.py
"""가상 펫 엔진의 도메인 예외. 라우트에서 error_code와 HTTP 상태로 변환된다."""

from typing import Optional


class VirtualPetError(Exception):
    error_code = "VIRTUAL_PET_ERROR"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PetNotFoundError(VirtualPetError):
    error_code = "PET_NOT_FOUND"
    status_code = 404


class ItemNotFoundError(VirtualPetError):
    error_code = "ITEM_NOT_FOUND"
    status_code = 404


class ItemTypeMismatchError(VirtualPetError):
    error_code = "ITEM_TYPE_MISMATCH"
    status_code = 400


class CareCooldownError(VirtualPetError):
    """같은 돌봄 행동의 대기 시간이 아직 지나지 않음."""
    error_code = "TOO_SOON"
    status_code = 429

    def __init__(self, message: str, retry_after_seconds: Optional[int] = None):
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds


class DuplicatePetError(VirtualPetError):
    error_code = "DUPLICATE_PET"
    status_code = 409


class RewardCreditFailedError(VirtualPetError):
    error_code = "REWARD_CREDIT_FAILED"
    status_code = 502
