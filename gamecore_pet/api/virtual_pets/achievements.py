# gamecore_pet/api/virtual_pets/achievements.py
"""
업적 카탈로그와 달성 판정

업적은 정적 설정 테이블(ACHIEVEMENT_CATALOG)로 정의된다.
새 업적은 이 테이블에 항목을 추가하는 것만으로 생성/판정 흐름에 포함된다.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List

from gamecore_pet.models.virtual_pet import VirtualPet
from gamecore_pet.models.pet_achievement import PetAchievement

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AchievementDefinition:
    code: str
    name: str
    description: str
    category: str
    points_reward: int
    is_met: Callable[[VirtualPet], bool]
    unlocked_on_creation: bool = False


ACHIEVEMENT_CATALOG = (
    AchievementDefinition(
        code="first_steps", name="First Steps", description="첫 가상 펫을 만들었습니다",
        category="Creation", points_reward=50,
        is_met=lambda pet: True, unlocked_on_creation=True,
    ),
    AchievementDefinition(
        code="level_5", name="Level 5", description="레벨 5 달성",
        category="Leveling", points_reward=100,
        is_met=lambda pet: pet.level >= 5,
    ),
    AchievementDefinition(
        code="level_10", name="Level 10", description="레벨 10 달성",
        category="Leveling", points_reward=200,
        is_met=lambda pet: pet.level >= 10,
    ),
    AchievementDefinition(
        # 누적 돌봄 횟수(기간 초기화 없음)
        code="care_master", name="Care Master", description="돌봄 행동 100회 수행",
        category="Care", points_reward=150,
        is_met=lambda pet: pet.care_action_count >= 100,
    ),
)


def build_initial_achievements(pet_id: str, now: datetime) -> List[PetAchievement]:
    """펫 생성 시 카탈로그 전체를 펫의 업적 문서로 만든다."""
    achievements = []
    for definition in ACHIEVEMENT_CATALOG:
        achievement = PetAchievement(
            pet_id=pet_id,
            code=definition.code,
            name=definition.name,
            description=definition.description,
            category=definition.category,
            points_reward=definition.points_reward,
            created_at=now,
        )
        if definition.unlocked_on_creation:
            achievement.unlock(now)
        achievements.append(achievement)
    return achievements


class AchievementEvaluator:
    """돌봄 행동 직후 펫의 현재 누적 상태로 잠긴 업적을 판정합니다."""

    def __init__(self, catalog=ACHIEVEMENT_CATALOG):
        self.definitions = {definition.code: definition for definition in catalog}

    def evaluate(self, pet: VirtualPet, achievements: List[PetAchievement], now: datetime) -> List[PetAchievement]:
        """
        조건을 처음 만족한 업적을 달성 처리하고, 새로 달성된 업적 목록을 반환합니다.
        이미 달성된 업적은 건드리지 않으므로 여러 번 실행해도 결과가 같습니다.
        """
        newly_unlocked = []
        for achievement in achievements:
            if achievement.is_unlocked:
                continue
            definition = self.definitions.get(achievement.code)
            if definition is None:
                logger.warning(f"Unknown achievement code '{achievement.code}' for pet {pet.pet_id}")
                continue
            if definition.is_met(pet) and achievement.unlock(now):
                newly_unlocked.append(achievement)

        if newly_unlocked:
            logger.info(f"Pet {pet.pet_id} unlocked achievements: {[a.name for a in newly_unlocked]}")
        return newly_unlocked
