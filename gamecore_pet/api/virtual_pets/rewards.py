# gamecore_pet/api/virtual_pets/rewards.py
import logging

from gamecore_pet.models.pet_care_log import CareAction
from .errors import RewardCreditFailedError

logger = logging.getLogger(__name__)

BASE_POINTS = {
    CareAction.FEED: 5,
    CareAction.PLAY: 8,
    CareAction.CLEAN: 6,
    CareAction.REST: 4,
}
DEFAULT_BASE_POINTS = 3


def calculate_points(action: CareAction, experience_gained: int) -> int:
    """행동별 기본 포인트 + 획득 경험치 // 10"""
    return BASE_POINTS.get(action, DEFAULT_BASE_POINTS) + experience_gained // 10


class RewardBridge:
    """돌봄 행동 보상 포인트를 계산하고 외부 지갑에 적립을 요청합니다."""

    def __init__(self, wallet_service):
        self.wallet_service = wallet_service

    def credit(self, owner_id: str, points: int, reference: str) -> None:
        """
        지갑에 포인트를 적립합니다.

        Raises:
            RewardCreditFailedError: 지갑 서비스가 적립을 거부했거나 호출에 실패한 경우
        """
        try:
            credited = self.wallet_service.credit(owner_id, points, reference=reference)
        except Exception as e:
            logger.error(f"Wallet credit raised for user {owner_id} (ref: {reference}): {e}", exc_info=True)
            raise RewardCreditFailedError("포인트 적립 중 오류가 발생했습니다.") from e

        if not credited:
            raise RewardCreditFailedError("포인트 적립에 실패했습니다. 잠시 후 다시 시도해주세요.")
