# gamecore_pet/api/virtual_pets/decay.py
"""
시간 경과에 따른 능력치 감쇠

규칙:
- 능력치마다 마지막 돌봄 시각으로부터 임계 시간이 지나면, 초과한 '정수 시간'만큼 rate씩 감소한다.
- 네 능력치 중 20 미만인 항목마다 체력에 고정 페널티를 준다 (감쇠 1회당 한 번).
- 감쇠는 기록이나 보상을 만들지 않는다.

같은 시간대에 감쇠가 다시 실행되어도 중복 차감되지 않도록
펫의 last_decayed_at 이후 새로 초과된 시간만 차감한다.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from gamecore_pet.models.virtual_pet import VirtualPet
from gamecore_pet.utils.datetime_utils import Clock, DateTimeUtils

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecayRule:
    stat_name: str
    timestamp_field: str
    threshold_hours: int
    rate_per_hour: int


DECAY_RULES = (
    DecayRule('hunger', 'last_fed', threshold_hours=6, rate_per_hour=5),
    DecayRule('happiness', 'last_played', threshold_hours=8, rate_per_hour=3),
    DecayRule('cleanliness', 'last_cleaned', threshold_hours=12, rate_per_hour=4),
    DecayRule('energy', 'last_rested', threshold_hours=10, rate_per_hour=6),
)

HEALTH_PENALTIES = {'hunger': 2, 'happiness': 1, 'cleanliness': 1, 'energy': 1}
LOW_STAT_THRESHOLD = 20


def _overdue_hours(rule: DecayRule, since: datetime, at: datetime) -> int:
    elapsed = DateTimeUtils.hours_between(since, at)
    return max(int(elapsed - rule.threshold_hours), 0)


def is_decay_due(pet: VirtualPet, now: datetime, min_interval: timedelta) -> bool:
    return pet.last_decayed_at is None or now - pet.last_decayed_at >= min_interval


def apply_decay(pet: VirtualPet, now: datetime) -> Dict[str, int]:
    """
    펫 하나에 감쇠를 적용하고 실제로 바뀐 능력치 변화량을 반환합니다.

    Args:
        pet: 감쇠를 적용할 펫 (직접 수정됨)
        now: 감쇠 기준 시각

    Returns:
        {능력치 이름: 적용된 변화량(음수)} - 변화가 없으면 빈 딕셔너리
    """
    changes = {}
    for rule in DECAY_RULES:
        last_interaction = getattr(pet, rule.timestamp_field)
        overdue = _overdue_hours(rule, last_interaction, now)

        # 마지막 돌봄 이후의 감쇠 실행분만 이미 차감된 것으로 본다.
        already_charged = 0
        if pet.last_decayed_at is not None and pet.last_decayed_at > last_interaction:
            already_charged = _overdue_hours(rule, last_interaction, pet.last_decayed_at)

        hours_to_charge = overdue - already_charged
        if hours_to_charge <= 0:
            continue

        before = pet.stat(rule.stat_name).current
        after = pet.apply_delta(rule.stat_name, -rule.rate_per_hour * hours_to_charge)
        if after != before:
            changes[rule.stat_name] = after - before

    penalty = sum(points for stat_name, points in HEALTH_PENALTIES.items()
                  if pet.stat(stat_name).current < LOW_STAT_THRESHOLD)
    if penalty:
        before = pet.health.current
        after = pet.apply_delta('health', -penalty)
        if after != before:
            changes['health'] = after - before

    pet.last_decayed_at = now
    if changes:
        pet.updated_at = now
    return changes


@dataclass
class DecayReport:
    """감쇠 1회 실행 결과. 실패한 펫은 다음 실행에서 다시 처리된다."""
    started_at: datetime
    processed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


class DecayScheduler:
    """
    전체 펫을 배치 단위로 나누어 병렬로 감쇠시킵니다.
    펫마다 별도 트랜잭션을 쓰므로 한 펫의 실패가 다른 펫이나 배치 전체를 중단시키지 않습니다.
    """

    def __init__(self,
                 repository,
                 clock: Clock = DateTimeUtils.now,
                 max_workers: int = 8,
                 batch_size: int = 100,
                 min_interval: timedelta = timedelta(minutes=60)):
        if max_workers < 1 or batch_size < 1:
            raise ValueError("max_workers와 batch_size는 1 이상이어야 합니다.")
        self.repository = repository
        self.clock = clock
        self.max_workers = max_workers
        self.batch_size = batch_size
        self.min_interval = min_interval

    def run_pass(self) -> DecayReport:
        now = self.clock()
        report = DecayReport(started_at=now)
        owner_ids = self.repository.list_owner_ids()
        logger.info(f"Decay pass started for {len(owner_ids)} pets (batch size {self.batch_size})")

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            for start in range(0, len(owner_ids), self.batch_size):
                batch = owner_ids[start:start + self.batch_size]
                futures = {executor.submit(self._decay_pet, owner_id, now): owner_id for owner_id in batch}
                for future in as_completed(futures):
                    owner_id = futures[future]
                    try:
                        decayed = future.result()
                    except Exception as e:
                        logger.error(f"Decay failed for pet of user {owner_id}: {e}", exc_info=True)
                        report.failed.append(owner_id)
                        continue
                    (report.processed if decayed else report.skipped).append(owner_id)

        logger.info(f"Decay pass finished: {len(report.processed)} processed, "
                    f"{len(report.skipped)} skipped, {len(report.failed)} failed")
        return report

    def _decay_pet(self, owner_id: str, now: datetime) -> bool:
        def _decay_in_transaction(uow) -> bool:
            pet: Optional[VirtualPet] = uow.get_pet(owner_id)
            if pet is None or not is_decay_due(pet, now, self.min_interval):
                return False
            changes = apply_decay(pet, now)
            uow.save_pet(pet)
            if changes:
                logger.debug(f"Decayed pet {pet.pet_id}: {changes}")
            return True

        return self.repository.run_transaction(_decay_in_transaction)
