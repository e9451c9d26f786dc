# gamecore_pet/api/virtual_pets/items.py
import logging
from typing import List

from gamecore_pet.models.pet_item import PetItem, PetItemType
from gamecore_pet.models.pet_care_log import CareAction
from .errors import ItemNotFoundError, ItemTypeMismatchError

logger = logging.getLogger(__name__)

# 행동별로 사용할 수 있는 아이템 유형
ACTION_ITEM_TYPES = {
    CareAction.FEED: PetItemType.FOOD,
    CareAction.PLAY: PetItemType.TOY,
    CareAction.CLEAN: PetItemType.CLEANING,
}

# 'flask virtual-pets seed-items' 명령으로 등록되는 기본 카탈로그
DEFAULT_PET_ITEMS = [
    PetItem(item_id="basic-food", name="기본 사료", description="영양이 균형 잡힌 기본 사료",
            item_type=PetItemType.FOOD, category="Basic",
            health_effect=5, hunger_effect=30, energy_effect=10, happiness_effect=5,
            cleanliness_effect=0, experience_effect=5, price=10),
    PetItem(item_id="premium-food", name="프리미엄 사료", description="고급 재료로 만든 사료",
            item_type=PetItemType.FOOD, category="Premium",
            health_effect=15, hunger_effect=50, energy_effect=20, happiness_effect=15,
            cleanliness_effect=5, experience_effect=15, price=25),
    PetItem(item_id="special-treat", name="특제 간식", description="기분이 좋아지는 특별한 간식",
            item_type=PetItemType.FOOD, category="Treat",
            health_effect=10, hunger_effect=20, energy_effect=5, happiness_effect=25,
            cleanliness_effect=0, experience_effect=10, price=20),
    PetItem(item_id="basic-ball", name="기본 공", description="단순한 공 장난감",
            item_type=PetItemType.TOY, category="Basic",
            health_effect=5, hunger_effect=-10, energy_effect=-15, happiness_effect=20,
            cleanliness_effect=-5, experience_effect=8, price=15),
    PetItem(item_id="interactive-toy", name="인터랙티브 장난감", description="함께 놀 수 있는 장난감",
            item_type=PetItemType.TOY, category="Interactive",
            health_effect=10, hunger_effect=-15, energy_effect=-20, happiness_effect=30,
            cleanliness_effect=-8, experience_effect=15, price=30),
    PetItem(item_id="basic-cleaner", name="기본 세정제", description="순한 세정제",
            item_type=PetItemType.CLEANING, category="Basic",
            health_effect=5, hunger_effect=0, energy_effect=0, happiness_effect=10,
            cleanliness_effect=40, experience_effect=5, price=20),
    PetItem(item_id="premium-cleaner", name="프리미엄 세정제", description="향이 좋은 고급 세정제",
            item_type=PetItemType.CLEANING, category="Premium",
            health_effect=10, hunger_effect=0, energy_effect=0, happiness_effect=15,
            cleanliness_effect=60, experience_effect=10, price=35),
]


class PetItemCatalog:
    """돌봄 아이템 조회 및 행동과의 호환성 검증을 담당합니다."""

    def __init__(self, repository):
        self.repository = repository

    def get_usable_item(self, item_id: str, action: CareAction) -> PetItem:
        """
        활성 상태이고 행동에 맞는 유형의 아이템을 반환합니다.

        Raises:
            ItemNotFoundError: 아이템이 없거나 비활성 상태인 경우
            ItemTypeMismatchError: 아이템 유형이 행동과 맞지 않는 경우
        """
        item = self.repository.get_item(item_id)
        if item is None or not item.is_active:
            raise ItemNotFoundError("아이템을 찾을 수 없거나 사용할 수 없는 아이템입니다.")

        expected_type = ACTION_ITEM_TYPES[action]
        if item.item_type != expected_type:
            raise ItemTypeMismatchError(
                f"'{item.item_type.value}' 유형 아이템은 이 행동에 사용할 수 없습니다. "
                f"필요한 유형: {expected_type.value}"
            )
        return item

    def list_available(self) -> List[PetItem]:
        """활성 아이템을 카테고리, 이름 순으로 반환합니다."""
        items = [item for item in self.repository.list_items(active_only=True) if item.is_active]
        return sorted(items, key=lambda item: (item.category, item.name))

    def seed_defaults(self) -> int:
        """기본 카탈로그 중 아직 없는 아이템만 등록하고 등록 수를 반환합니다."""
        created = 0
        for item in DEFAULT_PET_ITEMS:
            if self.repository.get_item(item.item_id) is None:
                self.repository.save_item(item)
                created += 1
        logger.info(f"Seeded {created} pet items ({len(DEFAULT_PET_ITEMS)} in default catalog)")
        return created
