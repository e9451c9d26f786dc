# gamecore_pet/models/pet_achievement.py
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Optional, Dict, Any

from gamecore_pet.utils.datetime_utils import DateTimeUtils


@dataclass
class PetAchievement:
    """
    Firestore 'pet_achievements' 컬렉션 문서 구조.
    문서 ID가 '{pet_id}_{code}' 이므로 (펫, 업적) 쌍은 유일하다.
    한 번 달성된 업적은 다시 잠기지 않는다.
    """
    pet_id: str
    code: str
    name: str
    description: str
    category: str
    points_reward: int
    created_at: datetime
    is_unlocked: bool = False
    unlocked_at: Optional[datetime] = None

    @property
    def doc_id(self) -> str:
        return f"{self.pet_id}_{self.code}"

    def unlock(self, when: datetime) -> bool:
        """잠긴 업적을 달성 처리합니다. 이미 달성된 경우 아무것도 바꾸지 않고 False."""
        if self.is_unlocked:
            return False
        self.is_unlocked = True
        self.unlocked_at = when
        return True

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PetAchievement":
        processed_data = DateTimeUtils.from_firestore(dict(data))
        known = set(cls.__dataclass_fields__)
        return cls(**{k: v for k, v in processed_data.items() if k in known})
