# gamecore_pet/api/virtual_pets/services.py
import logging
import math
import uuid
from collections import Counter, defaultdict
from datetime import timedelta
from typing import Dict, Any, List, Optional

from gamecore_pet.models.virtual_pet import VirtualPet
from gamecore_pet.models.pet_item import PetItem
from gamecore_pet.models.pet_care_log import CareAction
from gamecore_pet.models.pet_achievement import PetAchievement
from gamecore_pet.utils.datetime_utils import Clock, DateTimeUtils
from .achievements import AchievementEvaluator, build_initial_achievements
from .care_actions import CareActionProcessor, CareResult
from .decay import DecayScheduler, DecayReport
from .errors import PetNotFoundError, DuplicatePetError
from .items import PetItemCatalog
from .rewards import RewardBridge

DEFAULT_PERSONALITY = "Friendly"
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class VirtualPetService:
    """가상 펫 생성, 돌봄, 조회, 감쇠 실행을 외부(API/CLI)에 제공하는 서비스."""

    def __init__(self,
                 repository,
                 wallet_service,
                 clock: Clock = DateTimeUtils.now,
                 decay_max_workers: int = 8,
                 decay_batch_size: int = 100,
                 decay_min_interval_minutes: int = 60):
        self.repository = repository
        self.clock = clock
        self.item_catalog = PetItemCatalog(repository)
        self.care_processor = CareActionProcessor(
            repository=repository,
            item_catalog=self.item_catalog,
            reward_bridge=RewardBridge(wallet_service),
            achievement_evaluator=AchievementEvaluator(),
            clock=clock,
        )
        self.decay_scheduler = DecayScheduler(
            repository=repository,
            clock=clock,
            max_workers=decay_max_workers,
            batch_size=decay_batch_size,
            min_interval=timedelta(minutes=decay_min_interval_minutes),
        )
        logging.info("VirtualPetService initialized with dependencies.")

    # --- 생성 / 조회 ---

    def create_pet(self, owner_id: str, name: str, color: str,
                   personality: Optional[str] = None) -> VirtualPet:
        """[트랜잭션] 펫 생성과 업적 초기화를 원자적으로 처리합니다. 사용자당 펫은 하나입니다."""
        pet_id = str(uuid.uuid4())

        def _create_in_transaction(uow) -> VirtualPet:
            if uow.get_pet(owner_id) is not None:
                logging.warning(f"User {owner_id} tried to create a second virtual pet")
                raise DuplicatePetError("이미 가상 펫이 있습니다. 사용자당 하나의 펫만 만들 수 있습니다.")

            now = self.clock()
            new_pet = VirtualPet(
                pet_id=pet_id, owner_id=owner_id,
                name=name, color=color,
                personality=personality or DEFAULT_PERSONALITY,
                created_at=now, updated_at=now,
                last_fed=now, last_played=now, last_cleaned=now, last_rested=now,
            )
            uow.save_pet(new_pet)
            for achievement in build_initial_achievements(pet_id, now):
                uow.save_achievement(achievement)
            return new_pet

        pet = self.repository.run_transaction(_create_in_transaction)
        logging.info(f"Virtual pet {pet.pet_id} ({pet.name}) created for user {owner_id}")
        return pet

    def get_pet(self, owner_id: str) -> VirtualPet:
        pet = self.repository.get_pet(owner_id)
        if pet is None:
            raise PetNotFoundError("가상 펫이 없습니다.")
        return pet

    # --- 돌봄 행동 ---

    def feed(self, owner_id: str, item_id: str) -> CareResult:
        return self.care_processor.feed(owner_id, item_id)

    def play(self, owner_id: str, item_id: str) -> CareResult:
        return self.care_processor.play(owner_id, item_id)

    def clean(self, owner_id: str, item_id: str) -> CareResult:
        return self.care_processor.clean(owner_id, item_id)

    def rest(self, owner_id: str) -> CareResult:
        return self.care_processor.rest(owner_id)

    def change_color(self, owner_id: str, new_color: str) -> VirtualPet:
        return self.care_processor.change_color(owner_id, new_color)

    # --- 기록 / 업적 / 아이템 / 통계 ---

    def get_care_history(self, owner_id: str, page: int = 1,
                         page_size: int = DEFAULT_PAGE_SIZE) -> Dict[str, Any]:
        """
        돌봄 기록을 최신순으로 페이지 단위 조회합니다.
        page는 1 이상, page_size는 1~100 범위로 보정됩니다.
        """
        pet = self.get_pet(owner_id)
        page = max(page, 1)
        page_size = min(max(page_size, 1), MAX_PAGE_SIZE)

        logs = self.repository.list_care_logs(pet.pet_id, offset=(page - 1) * page_size, limit=page_size)
        total_count = pet.care_action_count
        return {
            'items': logs,
            'total_count': total_count,
            'page': page,
            'page_size': page_size,
            'total_pages': math.ceil(total_count / page_size),
        }

    def get_achievements(self, owner_id: str) -> List[PetAchievement]:
        pet = self.get_pet(owner_id)
        achievements = self.repository.get_achievements(pet.pet_id)
        return sorted(achievements, key=lambda a: (a.category, a.name))

    def get_available_items(self) -> List[PetItem]:
        return self.item_catalog.list_available()

    def get_statistics(self, owner_id: str) -> Dict[str, Any]:
        """누적 돌봄 통계를 집계합니다."""
        pet = self.get_pet(owner_id)
        logs = self.repository.list_care_logs(pet.pet_id)
        achievements = self.repository.get_achievements(pet.pet_id)

        action_counts = Counter(log.action.value for log in logs)
        points_by_action = defaultdict(int)
        for log in logs:
            points_by_action[log.action.value] += log.points_earned

        action_times = [log.action_time for log in logs]
        return {
            'pet_id': pet.pet_id,
            'pet_name': pet.name,
            'level': pet.level,
            'total_care_actions': len(logs),
            'total_experience_gained': sum(log.experience_gained for log in logs),
            'total_points_earned': sum(log.points_earned for log in logs),
            'achievements_unlocked': sum(1 for a in achievements if a.is_unlocked),
            'total_achievements': len(achievements),
            'first_care_action': min(action_times) if action_times else None,
            'last_care_action': max(action_times) if action_times else None,
            'action_counts': {action.value: action_counts.get(action.value, 0) for action in CareAction},
            'points_by_action': {action.value: points_by_action[action.value] for action in CareAction},
        }

    # --- 운영 ---

    def run_decay_pass(self) -> DecayReport:
        return self.decay_scheduler.run_pass()

    def seed_items(self) -> int:
        return self.item_catalog.seed_defaults()
