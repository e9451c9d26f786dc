# gamecore_pet/models/pet_care_log.py
from dataclasses import dataclass, asdict
from datetime import datetime
from enum import Enum
from typing import Dict, Any

from gamecore_pet.utils.datetime_utils import DateTimeUtils


class CareAction(Enum):
    FEED = "Feed"
    PLAY = "Play"
    CLEAN = "Clean"
    REST = "Rest"


@dataclass(frozen=True)
class PetCareLog:
    """
    Firestore 'virtual_pet_care_logs' 컬렉션 문서 구조.
    성공한 돌봄 행동 한 건당 한 문서가 추가되며, 작성 후에는 수정되지 않는다.
    """
    log_id: str
    pet_id: str
    user_id: str
    action: CareAction
    description: str
    health_change: int
    hunger_change: int
    energy_change: int
    happiness_change: int
    cleanliness_change: int
    experience_gained: int
    points_earned: int
    action_time: datetime

    def to_dict(self) -> Dict[str, Any]:
        log_dict = asdict(self)
        log_dict['action'] = self.action.value
        return log_dict

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PetCareLog":
        processed_data = DateTimeUtils.from_firestore(dict(data))
        processed_data['action'] = CareAction(processed_data['action'])
        processed_data['action_time'] = DateTimeUtils.ensure_utc(processed_data.get('action_time'), 'action_time')
        known = set(cls.__dataclass_fields__)
        return cls(**{k: v for k, v in processed_data.items() if k in known})
