# gamecore_pet/api/virtual_pets/care_actions.py
"""
돌봄 행동 처리기 (Feed / Play / Clean / Rest / 색상 변경)

돌봄 행동 하나는 하나의 트랜잭션으로 처리된다:
펫 조회 -> 아이템 검증 -> 쿨다운 검사 -> 능력치/경험치 반영 -> 레벨업 -> 기록 추가
-> 업적 판정 -> 지갑 적립 -> 커밋.
지갑 적립이 실패하면 트랜잭션이 중단되어 펫, 기록, 업적 어느 것도 저장되지 않는다.
적립 멱등 키는 행동 직전의 마지막 수행 시각으로 만든다. 같은 상태에서 출발해 경합한 요청이나
충돌로 재실행된 트랜잭션은 모두 같은 키를 쓰므로 커밋된 기록 하나당 적립은 한 번만 반영된다.
"""

import logging
import math
import uuid
from dataclasses import dataclass, field
from datetime import timedelta, datetime
from typing import Dict, List, Optional

from gamecore_pet.models.virtual_pet import VirtualPet
from gamecore_pet.models.pet_item import PetItem
from gamecore_pet.models.pet_care_log import PetCareLog, CareAction
from gamecore_pet.utils.datetime_utils import Clock, DateTimeUtils
from .achievements import AchievementEvaluator
from .errors import PetNotFoundError, CareCooldownError, VirtualPetError
from .items import PetItemCatalog
from .leveling import apply_experience
from .rewards import RewardBridge, calculate_points

logger = logging.getLogger(__name__)

CARE_COOLDOWNS = {
    CareAction.FEED: timedelta(hours=1),
    CareAction.PLAY: timedelta(hours=2),
    CareAction.CLEAN: timedelta(hours=3),
    CareAction.REST: timedelta(hours=4),
}

LAST_INTERACTION_FIELDS = {
    CareAction.FEED: 'last_fed',
    CareAction.PLAY: 'last_played',
    CareAction.CLEAN: 'last_cleaned',
    CareAction.REST: 'last_rested',
}

COOLDOWN_MESSAGES = {
    CareAction.FEED: "아직 배가 고프지 않습니다. 먹이는 1시간에 한 번만 줄 수 있습니다.",
    CareAction.PLAY: "아직 놀 기분이 아닙니다. 놀이는 2시간에 한 번만 할 수 있습니다.",
    CareAction.CLEAN: "아직 깨끗합니다. 목욕은 3시간에 한 번만 할 수 있습니다.",
    CareAction.REST: "아직 피곤하지 않습니다. 휴식은 4시간에 한 번만 할 수 있습니다.",
}

# 휴식은 아이템 없이 고정 효과를 가진다.
REST_EFFECTS = {'health': 20, 'hunger': 0, 'energy': 50, 'happiness': 10, 'cleanliness': 0}
REST_EXPERIENCE = 10


@dataclass
class CareResult:
    """돌봄 행동 한 건의 결과."""
    pet: VirtualPet
    action: CareAction
    description: str
    stat_changes: Dict[str, int]
    experience_gained: int
    points_earned: int
    level_up: bool
    new_level: int
    message: str
    achievements: List[str] = field(default_factory=list)


def _describe(action: CareAction, pet: VirtualPet, item: Optional[PetItem]) -> str:
    if action is CareAction.FEED:
        return f"{pet.name}에게 {item.name}을(를) 먹였습니다"
    if action is CareAction.PLAY:
        return f"{item.name}(으)로 {pet.name}와(과) 놀아주었습니다"
    if action is CareAction.CLEAN:
        return f"{item.name}(으)로 {pet.name}을(를) 씻겨주었습니다"
    return f"{pet.name}이(가) 휴식을 취했습니다"


def _success_message(action: CareAction, pet: VirtualPet, item: Optional[PetItem]) -> str:
    if action is CareAction.FEED:
        return f"{pet.name}이(가) {item.name}을(를) 맛있게 먹었습니다!"
    if action is CareAction.PLAY:
        return f"{pet.name}이(가) 즐겁게 놀았습니다!"
    if action is CareAction.CLEAN:
        return f"{pet.name}이(가) 깨끗해졌습니다!"
    return f"{pet.name}이(가) 푹 쉬었습니다!"


def credit_reference(pet: VirtualPet, action: CareAction) -> str:
    """행동 반영 전 상태로 만든 지갑 멱등 키 (예: pet-1:Feed:2025-01-01T09:00:00Z)"""
    last_time = getattr(pet, LAST_INTERACTION_FIELDS[action])
    return f"{pet.pet_id}:{action.value}:{DateTimeUtils.to_iso_string(last_time)}"


class CareActionProcessor:
    """돌봄 행동의 검증, 효과 적용, 기록, 보상, 업적 판정을 하나의 단위로 처리합니다."""

    def __init__(self,
                 repository,
                 item_catalog: PetItemCatalog,
                 reward_bridge: RewardBridge,
                 achievement_evaluator: Optional[AchievementEvaluator] = None,
                 clock: Clock = DateTimeUtils.now):
        self.repository = repository
        self.item_catalog = item_catalog
        self.reward_bridge = reward_bridge
        self.achievement_evaluator = achievement_evaluator or AchievementEvaluator()
        self.clock = clock

    def feed(self, owner_id: str, item_id: str) -> CareResult:
        return self._perform(owner_id, CareAction.FEED, item_id)

    def play(self, owner_id: str, item_id: str) -> CareResult:
        return self._perform(owner_id, CareAction.PLAY, item_id)

    def clean(self, owner_id: str, item_id: str) -> CareResult:
        return self._perform(owner_id, CareAction.CLEAN, item_id)

    def rest(self, owner_id: str) -> CareResult:
        return self._perform(owner_id, CareAction.REST)

    def change_color(self, owner_id: str, new_color: str) -> VirtualPet:
        """쿨다운이나 능력치 변화 없이 색상만 바꿉니다."""

        def _change_color_in_transaction(uow) -> VirtualPet:
            pet = uow.get_pet(owner_id)
            if pet is None:
                raise PetNotFoundError("가상 펫이 없습니다.")
            old_color = pet.color
            pet.color = new_color
            pet.updated_at = self.clock()
            uow.save_pet(pet)
            logger.info(f"User {owner_id} changed pet {pet.name} color from {old_color} to {new_color}")
            return pet

        return self.repository.run_transaction(_change_color_in_transaction)

    def _check_cooldown(self, pet: VirtualPet, action: CareAction, now: datetime) -> None:
        elapsed = now - getattr(pet, LAST_INTERACTION_FIELDS[action])
        cooldown = CARE_COOLDOWNS[action]
        if elapsed < cooldown:
            remaining = (cooldown - elapsed).total_seconds()
            raise CareCooldownError(COOLDOWN_MESSAGES[action], retry_after_seconds=math.ceil(remaining))

    def _perform(self, owner_id: str, action: CareAction, item_id: Optional[str] = None) -> CareResult:
        log_id = str(uuid.uuid4())

        def _care_in_transaction(uow) -> CareResult:
            now = self.clock()
            pet = uow.get_pet(owner_id)
            if pet is None:
                raise PetNotFoundError("가상 펫이 없습니다.")

            item = None
            if action is not CareAction.REST:
                item = self.item_catalog.get_usable_item(item_id, action)

            self._check_cooldown(pet, action, now)
            reference = credit_reference(pet, action)
            achievements = uow.get_achievements(pet.pet_id)

            if item is not None:
                stat_changes = item.stat_effects()
                experience_gained = item.experience_effect
            else:
                stat_changes = dict(REST_EFFECTS)
                experience_gained = REST_EXPERIENCE

            for stat_name, delta in stat_changes.items():
                pet.apply_delta(stat_name, delta)
            setattr(pet, LAST_INTERACTION_FIELDS[action], now)
            pet.updated_at = now

            level_result = apply_experience(pet, experience_gained)
            points_earned = calculate_points(action, experience_gained)
            pet.care_action_count += 1

            log = PetCareLog(
                log_id=log_id,
                pet_id=pet.pet_id,
                user_id=owner_id,
                action=action,
                description=_describe(action, pet, item),
                health_change=stat_changes['health'],
                hunger_change=stat_changes['hunger'],
                energy_change=stat_changes['energy'],
                happiness_change=stat_changes['happiness'],
                cleanliness_change=stat_changes['cleanliness'],
                experience_gained=experience_gained,
                points_earned=points_earned,
                action_time=now,
            )
            unlocked = self.achievement_evaluator.evaluate(pet, achievements, now)

            uow.save_pet(pet)
            uow.add_care_log(log)
            for achievement in unlocked:
                uow.save_achievement(achievement)

            # 모든 쓰기가 준비된 뒤 마지막으로 적립한다. 실패하면 트랜잭션 전체가 취소된다.
            self.reward_bridge.credit(owner_id, points_earned, reference=reference)

            if level_result.leveled_up:
                message = f"축하합니다! {pet.name}이(가) 레벨 {pet.level}에 도달했습니다!"
            else:
                message = _success_message(action, pet, item)

            return CareResult(
                pet=pet,
                action=action,
                description=log.description,
                stat_changes=stat_changes,
                experience_gained=experience_gained,
                points_earned=points_earned,
                level_up=level_result.leveled_up,
                new_level=pet.level,
                message=message,
                achievements=[achievement.name for achievement in unlocked],
            )

        try:
            result = self.repository.run_transaction(_care_in_transaction)
        except VirtualPetError as e:
            logger.warning(f"{action.value} rejected for user {owner_id}: [{e.error_code}] {e.message}")
            raise

        logger.info(f"User {owner_id} performed {action.value} on pet {result.pet.name} "
                    f"(+{result.experience_gained} xp, {result.points_earned} points, level {result.new_level})")
        return result
