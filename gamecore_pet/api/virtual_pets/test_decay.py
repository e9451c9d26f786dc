# gamecore_pet/api/virtual_pets/test_decay.py
"""
능력치 감쇠 및 감쇠 스케줄러 테스트

사용법: python -m pytest gamecore_pet/api/virtual_pets/test_decay.py -v
"""

import pytest
from datetime import timedelta

from gamecore_pet.api.virtual_pets.decay import apply_decay, is_decay_due, DecayScheduler


def _age_interactions(pet, now, fed=0, played=0, cleaned=0, rested=0):
    """마지막 돌봄 시각을 now 기준 N시간 전으로 맞춘다."""
    pet.last_fed = now - timedelta(hours=fed)
    pet.last_played = now - timedelta(hours=played)
    pet.last_cleaned = now - timedelta(hours=cleaned)
    pet.last_rested = now - timedelta(hours=rested)


# --- 단일 펫 감쇠 규칙 ---

def test_hunger_decays_after_six_hours(rex, clock):
    now = clock.advance(hours=24)
    _age_interactions(rex, now, fed=8)

    changes = apply_decay(rex, now)

    assert rex.hunger.current == 90
    assert changes == {'hunger': -10}
    assert rex.last_decayed_at == now


def test_hunger_unchanged_below_threshold(rex, clock):
    now = clock.advance(hours=24)
    _age_interactions(rex, now, fed=5)

    assert apply_decay(rex, now) == {}
    assert rex.hunger.current == 100


def test_each_rule_uses_its_own_threshold_and_rate(rex, clock):
    now = clock.advance(hours=24)
    _age_interactions(rex, now, fed=7, played=10, cleaned=15, rested=13)

    apply_decay(rex, now)

    assert rex.hunger.current == 95        # 5 x (7 - 6)
    assert rex.happiness.current == 94     # 3 x (10 - 8)
    assert rex.cleanliness.current == 88   # 4 x (15 - 12)
    assert rex.energy.current == 82        # 6 x (13 - 10)
    assert rex.health.current == 100


def test_partial_hours_are_not_charged(rex, clock):
    now = clock.advance(hours=24)
    _age_interactions(rex, now)
    rex.last_fed = now - timedelta(hours=8, minutes=54)

    apply_decay(rex, now)

    assert rex.hunger.current == 90


def test_decay_clamps_at_zero(rex, clock):
    now = clock.advance(hours=48)
    _age_interactions(rex, now, fed=40)
    rex.hunger.current = 3

    apply_decay(rex, now)

    assert rex.hunger.current == 0


def test_low_stats_penalize_health_once_per_pass(rex, clock):
    now = clock.advance(hours=24)
    _age_interactions(rex, now)
    rex.hunger.current = 15
    rex.happiness.current = 10
    rex.energy.current = 19
    rex.cleanliness.current = 20

    changes = apply_decay(rex, now)

    # hunger 2 + happiness 1 + energy 1 (cleanliness 20은 해당 없음)
    assert rex.health.current == 96
    assert changes == {'health': -4}


def test_health_penalty_clamps_at_zero(rex, clock):
    now = clock.advance(hours=24)
    _age_interactions(rex, now)
    rex.hunger.current = 0
    rex.health.current = 1

    apply_decay(rex, now)

    assert rex.health.current == 0


def test_repeated_decay_at_same_time_does_not_double_charge(rex, clock):
    now = clock.advance(hours=24)
    _age_interactions(rex, now, fed=8)

    apply_decay(rex, now)
    apply_decay(rex, now)

    assert rex.hunger.current == 90


def test_later_decay_charges_only_new_overdue_hours(rex, clock):
    now = clock.advance(hours=24)
    _age_interactions(rex, now, fed=8)
    apply_decay(rex, now)

    apply_decay(rex, now + timedelta(hours=1))

    assert rex.hunger.current == 85


def test_care_after_decay_restarts_the_count(rex, clock):
    now = clock.advance(hours=24)
    _age_interactions(rex, now, fed=8)
    apply_decay(rex, now)
    rex.last_fed = now

    apply_decay(rex, now + timedelta(hours=7))

    assert rex.hunger.current == 85


def test_decay_is_due_after_min_interval(rex, clock):
    now = clock()
    interval = timedelta(minutes=60)
    assert is_decay_due(rex, now, interval)
    rex.last_decayed_at = now
    assert not is_decay_due(rex, now + timedelta(minutes=59), interval)
    assert is_decay_due(rex, now + timedelta(minutes=60), interval)


# --- 스케줄러 ---

def test_run_pass_decays_stored_pets_without_logs_or_rewards(service, rex, clock, repository, wallet):
    clock.advance(hours=8)

    report = service.run_decay_pass()

    assert report.processed == [rex.owner_id]
    pet = repository.get_pet(rex.owner_id)
    assert pet.hunger.current == 90
    assert pet.last_decayed_at == clock()
    assert repository.list_care_logs(rex.pet_id) == []
    assert wallet.credits == []


def test_retriggered_pass_skips_recently_decayed_pets(service, rex, clock, repository):
    rex.hunger.current = 10
    repository.put_pet(rex)
    clock.advance(hours=8)

    service.run_decay_pass()
    after_first = repository.get_pet(rex.owner_id)
    clock.advance(minutes=30)
    second = service.run_decay_pass()

    assert second.skipped == [rex.owner_id]
    assert repository.get_pet(rex.owner_id) == after_first


def test_failing_pet_does_not_abort_the_pass(service, clock, repository):
    owners = [f"user-{n}" for n in range(5)]
    for owner_id in owners:
        service.create_pet(owner_id, f"Pet {owner_id}", "White")
    repository.fail_on_owner_ids.add("user-2")
    clock.advance(hours=8)

    report = service.run_decay_pass()

    assert report.failed == ["user-2"]
    assert sorted(report.processed) == ["user-0", "user-1", "user-3", "user-4"]
    for owner_id in ["user-0", "user-1", "user-3", "user-4"]:
        assert repository.get_pet(owner_id).hunger.current == 90
    assert repository.get_pet("user-2").hunger.current == 100


def test_failed_pet_is_decayed_on_next_pass(service, rex, clock, repository):
    repository.fail_on_owner_ids.add(rex.owner_id)
    clock.advance(hours=8)
    assert service.run_decay_pass().failed == [rex.owner_id]

    repository.fail_on_owner_ids.clear()
    report = service.run_decay_pass()

    assert report.processed == [rex.owner_id]
    assert repository.get_pet(rex.owner_id).hunger.current == 90


@pytest.mark.parametrize("kwargs", [{"max_workers": 0}, {"batch_size": 0}])
def test_scheduler_rejects_invalid_limits(repository, kwargs):
    with pytest.raises(ValueError):
        DecayScheduler(repository, **kwargs)


# --- 돌봄 행동과 감쇠의 경합 ---

def _stats(pet):
    return (pet.health.current, pet.hunger.current, pet.energy.current,
            pet.happiness.current, pet.cleanliness.current)


def test_feed_retried_after_decay_commits_applies_on_top_of_decay(racing_service, racing_repository, clock, wallet):
    pet = racing_service.create_pet("user-bori", "Bori", "White")
    clock.advance(hours=20)
    racing_repository.before_commit_hooks.append(racing_service.run_decay_pass)

    racing_service.feed(pet.owner_id, "basic-food")

    # 감쇠(허기 30, 에너지 40, 행복 64, 청결 68) 후 기본 사료(+5/+30/+10/+5/0)를 먹인 것과 같아야 함
    stored = racing_repository.get_pet(pet.owner_id)
    assert _stats(stored) == (100, 60, 50, 69, 68)
    assert stored.last_decayed_at == clock()
    assert stored.care_action_count == 1
    assert len(wallet.credits) == 1


def test_decay_retried_after_feed_commits_keeps_the_feed(racing_service, racing_repository, clock):
    pet = racing_service.create_pet("user-bori", "Bori", "White")
    clock.advance(hours=20)
    racing_repository.before_commit_hooks.append(lambda: racing_service.feed(pet.owner_id, "basic-food"))

    report = racing_service.run_decay_pass()

    # 먹이를 준 직후 감쇠한 것과 같아야 함: 허기는 유지, 나머지는 감쇠
    assert report.processed == [pet.owner_id]
    stored = racing_repository.get_pet(pet.owner_id)
    assert _stats(stored) == (100, 100, 40, 64, 68)
    assert stored.last_fed == clock()
    assert stored.care_action_count == 1
    assert len(racing_repository.list_care_logs(pet.pet_id)) == 1
