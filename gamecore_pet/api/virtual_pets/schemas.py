# gamecore_pet/api/virtual_pets/schemas.py
from marshmallow import Schema, fields, validate

from gamecore_pet.models.pet_care_log import CareAction
from gamecore_pet.models.pet_item import PetItemType


# --- 요청 스키마 ---

class VirtualPetCreateSchema(Schema):
    """POST /api/virtual-pets/ 가상 펫 생성 요청 스키마."""
    name = fields.Str(required=True, validate=validate.Length(min=1, max=50))
    color = fields.Str(required=True, validate=validate.Length(min=1, max=30))
    personality = fields.Str(load_default="Friendly", validate=validate.Length(max=100))


class ColorChangeSchema(Schema):
    """PATCH /api/virtual-pets/me/color 요청 스키마."""
    color = fields.Str(required=True, validate=validate.Length(min=1, max=30),
                       error_messages={"required": "변경할 색상(color)은 필수입니다."})


class CareHistoryQuerySchema(Schema):
    """돌봄 기록 조회 쿼리 파라미터. page_size 상한(100)은 서비스에서 보정됩니다."""
    page = fields.Int(load_default=1, validate=validate.Range(min=1))
    page_size = fields.Int(load_default=20, validate=validate.Range(min=1))


# --- 응답 스키마 ---

def _stat_current(stat_name):
    return fields.Function(lambda pet: pet.stat(stat_name).current)


def _stat_max(stat_name):
    return fields.Function(lambda pet: pet.stat(stat_name).maximum)


class VirtualPetResponseSchema(Schema):
    """가상 펫 상태 응답 스키마 (컨디션 등급과 필요 항목 포함)."""
    pet_id = fields.Str(dump_only=True)
    owner_id = fields.Str(dump_only=True)
    name = fields.Str()
    color = fields.Str()
    personality = fields.Str()
    level = fields.Int()
    experience = fields.Int()
    experience_to_next_level = fields.Int()
    health = _stat_current('health')
    max_health = _stat_max('health')
    hunger = _stat_current('hunger')
    max_hunger = _stat_max('hunger')
    energy = _stat_current('energy')
    max_energy = _stat_max('energy')
    happiness = _stat_current('happiness')
    max_happiness = _stat_max('happiness')
    cleanliness = _stat_current('cleanliness')
    max_cleanliness = _stat_max('cleanliness')
    status = fields.Str()
    needs = fields.List(fields.Str())
    care_action_count = fields.Int()
    last_fed = fields.DateTime()
    last_played = fields.DateTime()
    last_cleaned = fields.DateTime()
    last_rested = fields.DateTime()
    created_at = fields.DateTime()
    updated_at = fields.DateTime()


class CareLogResponseSchema(Schema):
    log_id = fields.Str()
    action = fields.Enum(CareAction, by_value=True)
    description = fields.Str()
    health_change = fields.Int()
    hunger_change = fields.Int()
    energy_change = fields.Int()
    happiness_change = fields.Int()
    cleanliness_change = fields.Int()
    experience_gained = fields.Int()
    points_earned = fields.Int()
    action_time = fields.DateTime()


class CareHistoryResponseSchema(Schema):
    items = fields.List(fields.Nested(CareLogResponseSchema))
    total_count = fields.Int()
    page = fields.Int()
    page_size = fields.Int()
    total_pages = fields.Int()


class CareResultResponseSchema(Schema):
    """돌봄 행동 결과 응답 스키마."""
    pet_id = fields.Function(lambda result: result.pet.pet_id)
    pet_name = fields.Function(lambda result: result.pet.name)
    action = fields.Enum(CareAction, by_value=True)
    description = fields.Str()
    stat_changes = fields.Dict(keys=fields.Str(), values=fields.Int())
    experience_gained = fields.Int()
    points_earned = fields.Int()
    level_up = fields.Bool()
    new_level = fields.Int()
    achievements = fields.List(fields.Str())
    message = fields.Str()
    pet = fields.Nested(VirtualPetResponseSchema)


class AchievementResponseSchema(Schema):
    code = fields.Str()
    name = fields.Str()
    description = fields.Str()
    category = fields.Str()
    points_reward = fields.Int()
    is_unlocked = fields.Bool()
    unlocked_at = fields.DateTime(allow_none=True)


class PetItemResponseSchema(Schema):
    item_id = fields.Str()
    name = fields.Str()
    description = fields.Str()
    item_type = fields.Enum(PetItemType, by_value=True)
    category = fields.Str()
    health_effect = fields.Int()
    hunger_effect = fields.Int()
    energy_effect = fields.Int()
    happiness_effect = fields.Int()
    cleanliness_effect = fields.Int()
    experience_effect = fields.Int()
    price = fields.Int()


class PetStatisticsResponseSchema(Schema):
    pet_id = fields.Str()
    pet_name = fields.Str()
    level = fields.Int()
    total_care_actions = fields.Int()
    total_experience_gained = fields.Int()
    total_points_earned = fields.Int()
    achievements_unlocked = fields.Int()
    total_achievements = fields.Int()
    first_care_action = fields.DateTime(allow_none=True)
    last_care_action = fields.DateTime(allow_none=True)
    action_counts = fields.Dict(keys=fields.Str(), values=fields.Int())
    points_by_action = fields.Dict(keys=fields.Str(), values=fields.Int())


class DecayReportResponseSchema(Schema):
    started_at = fields.DateTime()
    processed = fields.List(fields.Str())
    skipped = fields.List(fields.Str())
    failed = fields.List(fields.Str())
