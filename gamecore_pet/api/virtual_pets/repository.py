# gamecore_pet/api/virtual_pets/repository.py
"""
가상 펫 Firestore 저장소

컬렉션 구조:
- virtual_pets            : 문서 ID = 소유자 ID (1인 1펫 보장)
- pet_items               : 문서 ID = 아이템 ID
- virtual_pet_care_logs   : 문서 ID = 로그 ID (추가 전용)
- pet_achievements        : 문서 ID = '{pet_id}_{code}' ((펫, 업적) 유일성 보장)

펫 상태를 바꾸는 모든 작업은 run_transaction 안에서 실행된다.
Firestore 트랜잭션의 낙관적 동시성 제어로 같은 펫에 대한 돌봄 행동과 감쇠가 섞이지 않는다.
"""

import logging
from typing import Any, Callable, List, Optional, TypeVar
from firebase_admin import firestore
from firebase_admin.firestore import Transaction

from gamecore_pet.models.virtual_pet import VirtualPet
from gamecore_pet.models.pet_item import PetItem
from gamecore_pet.models.pet_care_log import PetCareLog
from gamecore_pet.models.pet_achievement import PetAchievement
from gamecore_pet.utils.datetime_utils import DateTimeUtils

logger = logging.getLogger(__name__)

T = TypeVar('T')


class FirestorePetUnitOfWork:
    """
    트랜잭션 한 번의 읽기/쓰기 창구.
    Firestore 규칙상 모든 읽기(get_*)는 쓰기(save_*, add_*)보다 먼저 호출되어야 한다.
    """

    def __init__(self, repository: "VirtualPetRepository", transaction: Transaction):
        self.repository = repository
        self.transaction = transaction

    def get_pet(self, owner_id: str) -> Optional[VirtualPet]:
        doc = self.repository.pets_ref.document(owner_id).get(transaction=self.transaction)
        if not doc.exists:
            return None
        return VirtualPet.from_dict(doc.to_dict())

    def get_achievements(self, pet_id: str) -> List[PetAchievement]:
        query = self.repository.achievements_ref.where('pet_id', '==', pet_id)
        return [PetAchievement.from_dict(doc.to_dict()) for doc in query.stream(transaction=self.transaction)]

    def save_pet(self, pet: VirtualPet) -> None:
        pet_ref = self.repository.pets_ref.document(pet.owner_id)
        self.transaction.set(pet_ref, DateTimeUtils.for_firestore(pet.to_dict()))

    def add_care_log(self, log: PetCareLog) -> None:
        log_ref = self.repository.care_logs_ref.document(log.log_id)
        self.transaction.create(log_ref, DateTimeUtils.for_firestore(log.to_dict()))

    def save_achievement(self, achievement: PetAchievement) -> None:
        achievement_ref = self.repository.achievements_ref.document(achievement.doc_id)
        self.transaction.set(achievement_ref, DateTimeUtils.for_firestore(achievement.to_dict()))


class VirtualPetRepository:
    """가상 펫 엔진이 사용하는 Firestore 컬렉션 접근을 전담하는 클래스."""

    def __init__(self, db: Any = None):
        self.db = db or firestore.client()
        self.pets_ref = self.db.collection('virtual_pets')
        self.items_ref = self.db.collection('pet_items')
        self.care_logs_ref = self.db.collection('virtual_pet_care_logs')
        self.achievements_ref = self.db.collection('pet_achievements')
        logging.info("VirtualPetRepository initialized.")

    def run_transaction(self, callback: Callable[[FirestorePetUnitOfWork], T]) -> T:
        """
        callback을 Firestore 트랜잭션 안에서 실행합니다.
        충돌 시 Firestore가 callback을 재실행할 수 있으므로 callback 안의 외부 호출은 멱등이어야 합니다.
        """
        transaction = self.db.transaction()

        @firestore.transactional
        def _run_in_transaction(transaction: Transaction):
            return callback(FirestorePetUnitOfWork(self, transaction))

        return _run_in_transaction(transaction)

    # --- 펫 ---

    def get_pet(self, owner_id: str) -> Optional[VirtualPet]:
        doc = self.pets_ref.document(owner_id).get()
        if not doc.exists:
            return None
        return VirtualPet.from_dict(doc.to_dict())

    def list_owner_ids(self) -> List[str]:
        return [doc_ref.id for doc_ref in self.pets_ref.list_documents()]

    # --- 아이템 카탈로그 ---

    def get_item(self, item_id: str) -> Optional[PetItem]:
        doc = self.items_ref.document(item_id).get()
        if not doc.exists:
            return None
        return PetItem.from_dict(doc.to_dict())

    def list_items(self, active_only: bool = True) -> List[PetItem]:
        query = self.items_ref
        if active_only:
            query = query.where('is_active', '==', True)
        return [PetItem.from_dict(doc.to_dict()) for doc in query.stream()]

    def save_item(self, item: PetItem) -> None:
        self.items_ref.document(item.item_id).set(item.to_dict())

    # --- 돌봄 기록 / 업적 ---

    def list_care_logs(self, pet_id: str, offset: int = 0, limit: Optional[int] = None) -> List[PetCareLog]:
        """최신순으로 돌봄 기록을 조회합니다."""
        #  이 쿼리를 위해서는 'virtual_pet_care_logs' 컬렉션에 (pet_id, action_time DESC) 복합 색인이 필요합니다.
        query = self.care_logs_ref \
            .where('pet_id', '==', pet_id) \
            .order_by('action_time', direction=firestore.Query.DESCENDING)
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return [PetCareLog.from_dict(doc.to_dict()) for doc in query.stream()]

    def get_achievements(self, pet_id: str) -> List[PetAchievement]:
        query = self.achievements_ref.where('pet_id', '==', pet_id)
        return [PetAchievement.from_dict(doc.to_dict()) for doc in query.stream()]
