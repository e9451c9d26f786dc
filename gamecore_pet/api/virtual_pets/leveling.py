# gamecore_pet/api/virtual_pets/leveling.py
"""
레벨업 엔진

경험치 임계값: level * 100 + (level - 1) * 50  (레벨 1 -> 100, 2 -> 250, 3 -> 400 ...)
한 번의 행동으로 여러 레벨이 오를 수 있다.
"""

from dataclasses import dataclass

from gamecore_pet.models.virtual_pet import VirtualPet


def experience_to_next_level(level: int) -> int:
    if level < 1:
        raise ValueError(f"레벨은 1 이상이어야 합니다: {level}")
    return level * 100 + (level - 1) * 50


@dataclass(frozen=True)
class LevelUpResult:
    level: int
    experience: int
    experience_to_next_level: int
    levels_gained: int

    @property
    def leveled_up(self) -> bool:
        return self.levels_gained > 0


def resolve_level_ups(level: int, experience: int) -> LevelUpResult:
    """임계값을 넘는 동안 반복해서 레벨을 올린다. 종료 시 experience < threshold."""
    threshold = experience_to_next_level(level)
    levels_gained = 0
    while experience >= threshold:
        experience -= threshold
        level += 1
        levels_gained += 1
        threshold = experience_to_next_level(level)
    return LevelUpResult(
        level=level,
        experience=experience,
        experience_to_next_level=threshold,
        levels_gained=levels_gained,
    )


def apply_experience(pet: VirtualPet, amount: int) -> LevelUpResult:
    """펫에 경험치를 더하고 레벨업을 반영합니다. 경험치는 0 미만으로 내려가지 않습니다."""
    result = resolve_level_ups(pet.level, max(0, pet.experience + amount))
    pet.level = result.level
    pet.experience = result.experience
    pet.experience_to_next_level = result.experience_to_next_level
    return result
