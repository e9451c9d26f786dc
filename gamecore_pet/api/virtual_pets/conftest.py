# gamecore_pet/api/virtual_pets/conftest.py
"""
가상 펫 테스트 공용 픽스처

- InMemoryPetRepository: Firestore 없이 트랜잭션 계약(커밋 전 쓰기 보류, 예외 시 폐기)을 지키는 저장소
  optimistic=True이면 Firestore처럼 읽은 문서가 커밋 전에 바뀌었을 때 callback을 다시 실행한다.
- FakeClock: 원하는 만큼 시간을 앞으로 돌릴 수 있는 시계
- RecordingWallet: 적립 요청을 기록하고 실패를 흉내 낼 수 있는 지갑 (같은 멱등 키는 한 번만 적립)
"""

import threading
from datetime import datetime, timedelta, timezone

import pytest
from flask_jwt_extended import create_access_token

from gamecore_pet import create_app
from gamecore_pet.models.virtual_pet import VirtualPet
from gamecore_pet.models.pet_item import PetItem, PetItemType
from gamecore_pet.models.pet_care_log import PetCareLog
from gamecore_pet.models.pet_achievement import PetAchievement
from gamecore_pet.api.virtual_pets.items import DEFAULT_PET_ITEMS
from gamecore_pet.api.virtual_pets.services import VirtualPetService

START_TIME = datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)
OWNER_ID = "user-rex"


class TransactionConflictError(Exception):
    pass


class InMemoryUnitOfWork:
    def __init__(self, repository: "InMemoryPetRepository"):
        self.repository = repository
        self.read_versions = {}
        self.staged_pets = {}
        self.staged_logs = {}
        self.staged_achievements = {}

    def get_pet(self, owner_id):
        if owner_id in self.repository.fail_on_owner_ids:
            raise RuntimeError(f"simulated storage failure for {owner_id}")
        self.read_versions[('pet', owner_id)] = self.repository.versions.get(('pet', owner_id), 0)
        return self.repository.get_pet(owner_id)

    def get_achievements(self, pet_id):
        self.read_versions[('achievements', pet_id)] = self.repository.versions.get(('achievements', pet_id), 0)
        return self.repository.get_achievements(pet_id)

    def save_pet(self, pet):
        self.staged_pets[pet.owner_id] = pet.to_dict()

    def add_care_log(self, log):
        if log.log_id in self.repository.care_logs or log.log_id in self.staged_logs:
            raise ValueError(f"care log {log.log_id} already exists")
        self.staged_logs[log.log_id] = log.to_dict()

    def save_achievement(self, achievement):
        self.staged_achievements[achievement.doc_id] = achievement.to_dict()

    def has_conflict(self):
        versions = self.repository.versions
        return any(versions.get(key, 0) != seen for key, seen in self.read_versions.items())

    def commit(self):
        versions = self.repository.versions
        for owner_id in self.staged_pets:
            versions[('pet', owner_id)] = versions.get(('pet', owner_id), 0) + 1
        for data in self.staged_achievements.values():
            key = ('achievements', data['pet_id'])
            versions[key] = versions.get(key, 0) + 1
        self.repository.pets.update(self.staged_pets)
        self.repository.care_logs.update(self.staged_logs)
        self.repository.achievements.update(self.staged_achievements)


class InMemoryPetRepository:
    """VirtualPetRepository와 같은 인터페이스를 가진 테스트용 저장소."""

    def __init__(self, optimistic: bool = False, max_attempts: int = 5):
        self.pets = {}
        self.items = {}
        self.care_logs = {}
        self.achievements = {}
        self.versions = {}
        self.fail_on_owner_ids = set()
        self.committed_transactions = 0
        self.transaction_attempts = 0
        self.optimistic = optimistic
        self.max_attempts = max_attempts
        # 다음 트랜잭션들의 callback 실행 직후, 커밋 검사 전에 하나씩 꺼내 실행된다.
        self.before_commit_hooks = []
        self._lock = threading.RLock()

    def run_transaction(self, callback):
        if not self.optimistic:
            with self._lock:
                self.transaction_attempts += 1
                uow = InMemoryUnitOfWork(self)
                result = callback(uow)
                uow.commit()
                self.committed_transactions += 1
                return result

        for _ in range(self.max_attempts):
            self.transaction_attempts += 1
            uow = InMemoryUnitOfWork(self)
            result = callback(uow)
            if self.before_commit_hooks:
                hook = self.before_commit_hooks.pop(0)
                hook()
            with self._lock:
                if uow.has_conflict():
                    continue
                uow.commit()
                self.committed_transactions += 1
                return result
        raise TransactionConflictError(f"transaction aborted after {self.max_attempts} attempts")

    def get_pet(self, owner_id):
        data = self.pets.get(owner_id)
        return VirtualPet.from_dict(data) if data else None

    def list_owner_ids(self):
        return list(self.pets.keys())

    def get_item(self, item_id):
        data = self.items.get(item_id)
        return PetItem.from_dict(data) if data else None

    def list_items(self, active_only=True):
        items = [PetItem.from_dict(data) for data in self.items.values()]
        return [item for item in items if item.is_active or not active_only]

    def save_item(self, item):
        self.items[item.item_id] = item.to_dict()

    def list_care_logs(self, pet_id, offset=0, limit=None):
        logs = [PetCareLog.from_dict(data) for data in self.care_logs.values() if data['pet_id'] == pet_id]
        logs.sort(key=lambda log: log.action_time, reverse=True)
        end = None if limit is None else offset + limit
        return logs[offset:end]

    def get_achievements(self, pet_id):
        return [PetAchievement.from_dict(data) for data in self.achievements.values() if data['pet_id'] == pet_id]

    # --- 테스트 보조 ---

    def put_pet(self, pet):
        with self._lock:
            key = ('pet', pet.owner_id)
            self.versions[key] = self.versions.get(key, 0) + 1
            self.pets[pet.owner_id] = pet.to_dict()


class FakeClock:
    def __init__(self, start: datetime = START_TIME):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


class RecordingWallet:
    def __init__(self):
        self.requests = []
        self.credits = []
        self.fail = False
        self.raise_error = None

    def credit(self, owner_id, points, reference, reason="pet_care"):
        self.requests.append(reference)
        if self.raise_error is not None:
            raise self.raise_error
        if self.fail:
            return False
        if any(credit["reference"] == reference for credit in self.credits):
            return True
        self.credits.append({"owner_id": owner_id, "points": points, "reference": reference})
        return True


@pytest.fixture
def clock():
    return FakeClock()


def _seeded_repository(**kwargs):
    repo = InMemoryPetRepository(**kwargs)
    for item in DEFAULT_PET_ITEMS:
        repo.save_item(item)
    repo.save_item(PetItem(item_id="retired-food", name="단종 사료", item_type=PetItemType.FOOD,
                           hunger_effect=10, experience_effect=5, is_active=False))
    return repo


@pytest.fixture
def repository():
    return _seeded_repository()


@pytest.fixture
def racing_repository():
    """충돌 시 callback을 재실행하는 저장소 (before_commit_hooks로 경합을 끼워 넣는다)"""
    return _seeded_repository(optimistic=True)


@pytest.fixture
def empty_repository():
    return InMemoryPetRepository()


@pytest.fixture
def wallet():
    return RecordingWallet()


@pytest.fixture
def service(repository, wallet, clock):
    return VirtualPetService(repository, wallet, clock=clock, decay_max_workers=4, decay_batch_size=2)


@pytest.fixture
def racing_service(racing_repository, wallet, clock):
    return VirtualPetService(racing_repository, wallet, clock=clock, decay_max_workers=2, decay_batch_size=2)


@pytest.fixture
def rex(service):
    """생성 직후의 'Rex' (모든 능력치 100, 레벨 1)"""
    return service.create_pet(OWNER_ID, "Rex", "Brown", "Playful")


@pytest.fixture
def app(repository, wallet, service):
    flask_app = create_app('testing', repository=repository, wallet_client=wallet)
    # 시간을 제어할 수 있도록 FakeClock을 쓰는 서비스로 교체
    flask_app.services['virtual_pets'] = service
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(app):
    with app.app_context():
        token = create_access_token(identity=OWNER_ID)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(app):
    with app.app_context():
        token = create_access_token(identity="operator", additional_claims={"role": "admin"})
    return {"Authorization": f"Bearer {token}"}
