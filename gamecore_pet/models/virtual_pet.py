# gamecore_pet/models/virtual_pet.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List, Dict, Any, Tuple
import logging

from gamecore_pet.utils.datetime_utils import DateTimeUtils

# 다섯 가지 능력치. 저장 시 '<name>'(현재값)과 'max_<name>'(상한) 필드로 펼쳐진다.
STAT_NAMES: Tuple[str, ...] = ('health', 'hunger', 'energy', 'happiness', 'cleanliness')
DEFAULT_STAT_MAX = 100

TIMESTAMP_FIELDS = ('last_fed', 'last_played', 'last_cleaned', 'last_rested',
                    'created_at', 'updated_at', 'last_decayed_at')


@dataclass
class PetStat:
    """
    [0, maximum] 범위로 제한되는 능력치 한 쌍.
    모든 변경은 apply_delta를 거치므로 범위를 벗어날 수 없다.
    """
    current: int
    maximum: int = DEFAULT_STAT_MAX

    def __post_init__(self):
        if self.maximum < 0:
            raise ValueError(f"능력치 상한은 0 이상이어야 합니다: {self.maximum}")
        self.current = self._clamp(self.current)

    def _clamp(self, value: int) -> int:
        return min(max(int(value), 0), self.maximum)

    def apply_delta(self, delta: int) -> int:
        """변화량을 적용하고 범위로 제한된 새 값을 반환합니다."""
        self.current = self._clamp(self.current + delta)
        return self.current


def _full_stat() -> PetStat:
    return PetStat(current=DEFAULT_STAT_MAX, maximum=DEFAULT_STAT_MAX)


@dataclass
class VirtualPet:
    """
    Firestore 'virtual_pets' 컬렉션 문서 구조. 문서 ID는 소유자 ID(1인 1펫).
    능력치, 레벨, 마지막 상호작용 시각을 관리하며 DB 변환 로직을 포함한다.
    """
    pet_id: str
    owner_id: str
    name: str
    color: str
    personality: str
    created_at: datetime
    updated_at: datetime
    last_fed: datetime
    last_played: datetime
    last_cleaned: datetime
    last_rested: datetime
    level: int = 1
    experience: int = 0
    experience_to_next_level: int = 100
    health: PetStat = field(default_factory=_full_stat)
    hunger: PetStat = field(default_factory=_full_stat)
    energy: PetStat = field(default_factory=_full_stat)
    happiness: PetStat = field(default_factory=_full_stat)
    cleanliness: PetStat = field(default_factory=_full_stat)
    care_action_count: int = 0
    last_decayed_at: Optional[datetime] = None

    def stat(self, stat_name: str) -> PetStat:
        if stat_name not in STAT_NAMES:
            raise KeyError(f"알 수 없는 능력치입니다: {stat_name}")
        return getattr(self, stat_name)

    def apply_delta(self, stat_name: str, delta: int) -> int:
        """능력치 하나에 변화량을 적용하고 [0, max]로 제한된 새 값을 반환합니다."""
        return self.stat(stat_name).apply_delta(delta)

    @property
    def status(self) -> str:
        """체력 기준 컨디션 등급."""
        health = self.health.current
        if health >= 80:
            return "Excellent"
        if health >= 60:
            return "Good"
        if health >= 40:
            return "Fair"
        if health >= 20:
            return "Poor"
        return "Critical"

    @property
    def needs(self) -> List[str]:
        """돌봄이 필요한 항목 목록."""
        needs = []
        if self.hunger.current < 30:
            needs.append("Hungry")
        if self.energy.current < 30:
            needs.append("Tired")
        if self.happiness.current < 30:
            needs.append("Unhappy")
        if self.cleanliness.current < 30:
            needs.append("Dirty")
        if self.health.current < 50:
            needs.append("Sick")
        return needs

    def to_dict(self) -> Dict[str, Any]:
        """능력치 쌍을 평탄화한 저장용 딕셔너리를 반환합니다."""
        data = {
            'pet_id': self.pet_id,
            'owner_id': self.owner_id,
            'name': self.name,
            'color': self.color,
            'personality': self.personality,
            'level': self.level,
            'experience': self.experience,
            'experience_to_next_level': self.experience_to_next_level,
            'care_action_count': self.care_action_count,
        }
        for stat_name in STAT_NAMES:
            stat = self.stat(stat_name)
            data[stat_name] = stat.current
            data[f'max_{stat_name}'] = stat.maximum
        for ts_field in TIMESTAMP_FIELDS:
            data[ts_field] = getattr(self, ts_field)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VirtualPet":
        """
        Firestore에서 받은 딕셔너리로부터 VirtualPet 인스턴스를 생성합니다.
        평탄화된 능력치 필드를 PetStat으로 묶고, Timestamp를 UTC datetime으로 변환합니다.
        """
        processed_data = DateTimeUtils.from_firestore(dict(data))

        for stat_name in STAT_NAMES:
            maximum = processed_data.pop(f'max_{stat_name}', DEFAULT_STAT_MAX)
            current = processed_data.pop(stat_name, maximum)
            processed_data[stat_name] = PetStat(current=current, maximum=maximum)

        for ts_field in TIMESTAMP_FIELDS:
            value = processed_data.get(ts_field)
            if value is None:
                if ts_field != 'last_decayed_at':
                    logging.warning(f"Missing '{ts_field}' for virtual pet {processed_data.get('pet_id')}.")
                continue
            processed_data[ts_field] = DateTimeUtils.ensure_utc(value, ts_field)

        known = set(cls.__dataclass_fields__)
        return cls(**{k: v for k, v in processed_data.items() if k in known})
