# gamecore_pet/utils/datetime_utils.py
"""
가상 펫 엔진의 시각 처리 유틸리티

쿨다운과 감쇠는 모두 '경과 시간'으로 판정되므로 엔진 안의 모든 시각은 UTC aware datetime으로 다룬다.
- 현재 시각은 Clock(인자 없는 함수)으로 주입받는다. 기본값은 DateTimeUtils.now
- 저장소에서 읽은 값(문자열, naive datetime, Firestore Timestamp)은 ensure_utc / from_firestore로 정규화
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable
from dateutil import parser as dateutil_parser

logger = logging.getLogger(__name__)

# 테스트에서는 고정/전진 가능한 시계를 주입한다.
Clock = Callable[[], datetime]


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class DateTimeUtils:
    """UTC 시각 생성, 파싱, 경과 시간 계산, Firestore 변환을 모아둔 클래스"""

    @staticmethod
    def now() -> datetime:
        return datetime.now(timezone.utc)

    @staticmethod
    def parse_iso_datetime(iso_string: str) -> datetime:
        """
        ISO 8601 문자열을 UTC datetime으로 변환합니다.
        'Z' 접미사와 오프셋을 모두 받으며, 오프셋이 없으면 UTC로 간주합니다.

        Raises:
            ValueError: 비어 있거나 형식이 잘못된 경우
        """
        if not iso_string:
            raise ValueError("빈 문자열은 시각으로 변환할 수 없습니다")
        try:
            parsed = dateutil_parser.isoparse(iso_string)
        except (ValueError, OverflowError) as e:
            logger.error(f"ISO datetime parse failed: {iso_string} - {e}")
            raise ValueError(f"잘못된 ISO 날짜 형식입니다: {iso_string}") from e
        return _as_utc(parsed)

    @staticmethod
    def to_iso_string(dt: datetime) -> str:
        """UTC ISO 문자열로 변환합니다. (예: 2025-01-01T09:00:00Z)"""
        return _as_utc(dt).isoformat().replace('+00:00', 'Z')

    @staticmethod
    def ensure_utc(value: Any, field_name: str = "datetime") -> datetime:
        """
        문자열 또는 datetime 값을 UTC datetime으로 정규화합니다.

        Raises:
            ValueError: 값이 없거나 시각으로 해석할 수 없는 타입인 경우
        """
        if value is None:
            raise ValueError(f"{field_name}은 필수 필드입니다")
        if isinstance(value, str):
            return DateTimeUtils.parse_iso_datetime(value)
        if isinstance(value, datetime):
            return _as_utc(value)
        raise ValueError(f"{field_name}은 문자열 또는 datetime 객체여야 합니다 (받은 타입: {type(value).__name__})")

    @staticmethod
    def hours_between(start: datetime, end: datetime) -> float:
        """start부터 end까지의 경과 시간(시간 단위, 소수 포함). end가 앞서면 음수."""
        return (end - start).total_seconds() / 3600.0

    @staticmethod
    def for_firestore(obj: Any) -> Any:
        """저장 직전 dict/list 안의 datetime을 모두 UTC aware로 맞춥니다."""
        if isinstance(obj, datetime):
            return _as_utc(obj)
        if isinstance(obj, dict):
            return {k: DateTimeUtils.for_firestore(v) for k, v in obj.items()}
        if isinstance(obj, list):
            return [DateTimeUtils.for_firestore(item) for item in obj]
        return obj

    @staticmethod
    def from_firestore(obj: Any) -> Any:
        """
        Firestore에서 읽은 dict/list 안의 시각 값을 UTC datetime으로 바꿉니다.
        DatetimeWithNanoseconds는 datetime 하위 타입이므로 먼저 처리되고,
        그 외 timestamp()를 가진 객체는 epoch 초로 변환합니다.
        """
        if isinstance(obj, datetime):
            return _as_utc(obj)
        if isinstance(obj, dict):
            return {k: DateTimeUtils.from_firestore(v) for k, v in obj.items()}
        if isinstance(obj, list):
            return [DateTimeUtils.from_firestore(item) for item in obj]
        if callable(getattr(obj, 'timestamp', None)):
            return datetime.fromtimestamp(obj.timestamp(), tz=timezone.utc)
        return obj
