# gamecore_pet/models/pet_item.py
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Dict, Any
import logging


class PetItemType(Enum):
    """돌봄 아이템 유형. 휴식(Rest)은 아이템을 사용하지 않는다."""
    FOOD = "Food"
    TOY = "Toy"
    CLEANING = "Cleaning"


@dataclass
class PetItem:
    """
    Firestore 'pet_items' 컬렉션 문서 구조 (읽기 전용 참조 데이터).
    다섯 능력치 변화량과 경험치 변화량을 가진다. 변화량은 음수일 수 있다.
    """
    item_id: str
    name: str
    item_type: PetItemType
    description: str = ""
    category: str = "Basic"
    health_effect: int = 0
    hunger_effect: int = 0
    energy_effect: int = 0
    happiness_effect: int = 0
    cleanliness_effect: int = 0
    experience_effect: int = 0
    price: int = 0
    is_active: bool = True

    def stat_effects(self) -> Dict[str, int]:
        """능력치 이름별 변화량."""
        return {
            'health': self.health_effect,
            'hunger': self.hunger_effect,
            'energy': self.energy_effect,
            'happiness': self.happiness_effect,
            'cleanliness': self.cleanliness_effect,
        }

    def to_dict(self) -> Dict[str, Any]:
        item_dict = asdict(self)
        item_dict['item_type'] = self.item_type.value
        return item_dict

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PetItem":
        processed_data = data.copy()
        type_str = processed_data.get('item_type')
        if isinstance(type_str, str):
            try:
                processed_data['item_type'] = PetItemType(type_str)
            except ValueError:
                logging.warning(f"Invalid PetItemType value '{type_str}' for item {processed_data.get('item_id')}.")
                raise
        known = set(cls.__dataclass_fields__)
        return cls(**{k: v for k, v in processed_data.items() if k in known})
