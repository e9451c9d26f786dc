# gamecore_pet/api/virtual_pets/test_services.py
"""가상 펫 서비스(생성/조회/기록/통계/아이템) 테스트"""

import pytest

from gamecore_pet.models.pet_item import PetItemType
from gamecore_pet.models.pet_care_log import CareAction
from gamecore_pet.api.virtual_pets.errors import DuplicatePetError, PetNotFoundError
from gamecore_pet.api.virtual_pets.items import DEFAULT_PET_ITEMS
from gamecore_pet.api.virtual_pets.services import VirtualPetService


def _care_for_a_day(service, owner_id, clock):
    """Feed, Play, Clean, Rest 를 1분 간격으로 한 번씩 수행하고 먹이 시각을 반환한다."""
    fed_at = clock.advance(hours=4)
    service.feed(owner_id, "basic-food")
    clock.advance(minutes=1)
    service.play(owner_id, "basic-ball")
    clock.advance(minutes=1)
    service.clean(owner_id, "basic-cleaner")
    clock.advance(minutes=1)
    service.rest(owner_id)
    return fed_at


# --- 생성 / 조회 ---

def test_create_pet_initial_state(service, clock, repository):
    pet = service.create_pet("user-1", "Mochi", "White")

    assert pet.personality == "Friendly"
    assert (pet.level, pet.experience, pet.experience_to_next_level) == (1, 0, 100)
    for stat_name in ('health', 'hunger', 'energy', 'happiness', 'cleanliness'):
        assert pet.stat(stat_name).current == 100
        assert pet.stat(stat_name).maximum == 100
    assert pet.last_fed == pet.last_played == pet.last_cleaned == pet.last_rested == clock()
    assert repository.get_pet("user-1") == pet


def test_second_pet_for_same_owner_is_rejected(service, rex, repository):
    with pytest.raises(DuplicatePetError):
        service.create_pet(rex.owner_id, "Max", "Black")
    assert repository.get_pet(rex.owner_id).name == "Rex"
    assert len(repository.get_achievements(rex.pet_id)) == 4


def test_get_pet_for_unknown_owner(service):
    with pytest.raises(PetNotFoundError):
        service.get_pet("nobody")


# --- 돌봄 기록 ---

def test_care_history_is_newest_first_and_paged(service, rex, clock):
    for _ in range(3):
        _care_for_a_day(service, rex.owner_id, clock)

    history = service.get_care_history(rex.owner_id, page=1, page_size=5)

    assert history['total_count'] == 12
    assert history['total_pages'] == 3
    assert history['page'] == 1
    assert history['page_size'] == 5
    assert len(history['items']) == 5
    assert history['items'][0].action is CareAction.REST
    times = [log.action_time for log in history['items']]
    assert times == sorted(times, reverse=True)

    last_page = service.get_care_history(rex.owner_id, page=3, page_size=5)
    assert len(last_page['items']) == 2
    assert last_page['items'][-1].action is CareAction.FEED


def test_care_history_clamps_paging(service, rex, clock):
    _care_for_a_day(service, rex.owner_id, clock)

    history = service.get_care_history(rex.owner_id, page=0, page_size=500)

    assert history['page'] == 1
    assert history['page_size'] == 100
    assert history['total_pages'] == 1


def test_empty_care_history(service, rex):
    history = service.get_care_history(rex.owner_id)
    assert history['items'] == []
    assert history['total_count'] == 0
    assert history['total_pages'] == 0
    assert history['page_size'] == 20


# --- 업적 / 아이템 ---

def test_achievements_sorted_by_category_then_name(service, rex):
    achievements = service.get_achievements(rex.owner_id)
    assert [(a.category, a.name) for a in achievements] == [
        ("Care", "Care Master"),
        ("Creation", "First Steps"),
        ("Leveling", "Level 10"),
        ("Leveling", "Level 5"),
    ]


def test_available_items_exclude_inactive_and_are_sorted(service):
    items = service.get_available_items()
    assert "retired-food" not in [item.item_id for item in items]
    assert len(items) == len(DEFAULT_PET_ITEMS)
    keys = [(item.category, item.name) for item in items]
    assert keys == sorted(keys)


def test_seed_items_only_adds_missing_items(empty_repository, wallet, clock):
    service = VirtualPetService(empty_repository, wallet, clock=clock)

    assert service.seed_items() == len(DEFAULT_PET_ITEMS)
    assert service.seed_items() == 0
    assert empty_repository.get_item("basic-ball").item_type is PetItemType.TOY


# --- 통계 ---

def test_statistics_aggregate_the_care_log(service, rex, clock):
    first_fed_at = _care_for_a_day(service, rex.owner_id, clock)
    _care_for_a_day(service, rex.owner_id, clock)

    stats = service.get_statistics(rex.owner_id)

    assert stats['total_care_actions'] == 8
    # 경험치: food 5 + ball 8 + cleaner 5 + rest 10 = 28 (하루)
    assert stats['total_experience_gained'] == 56
    # 포인트: 5 + 8 + 6 + (4 + 1) = 24 (하루)
    assert stats['total_points_earned'] == 48
    assert stats['action_counts'] == {"Feed": 2, "Play": 2, "Clean": 2, "Rest": 2}
    assert stats['points_by_action'] == {"Feed": 10, "Play": 16, "Clean": 12, "Rest": 10}
    assert stats['first_care_action'] == first_fed_at
    assert stats['last_care_action'] == clock()
    assert stats['achievements_unlocked'] == 1
    assert stats['total_achievements'] == 4


def test_statistics_without_care(service, rex):
    stats = service.get_statistics(rex.owner_id)
    assert stats['total_care_actions'] == 0
    assert stats['first_care_action'] is None
    assert stats['action_counts'] == {"Feed": 0, "Play": 0, "Clean": 0, "Rest": 0}
