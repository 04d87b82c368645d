"""
타임존 유틸리티

모든 생애주기 타임스탬프(followed_at, completed_at, balance_deducted_at)는 UTC로 기록합니다.
"""

from datetime import datetime, timedelta, timezone


def get_utc_now() -> datetime:
    """현재 UTC 시간을 반환합니다."""
    return datetime.now(timezone.utc)


def days_ago(days: int, now: datetime = None) -> datetime:
    """기준 시각으로부터 N일 전 UTC 시각"""
    return (now or get_utc_now()) - timedelta(days=days)
