# gamecore_pet/api/virtual_pets/commands.py
"""
운영용 Flask CLI 명령

    flask virtual-pets decay        # cron 등 외부 스케줄러에서 주기적으로 실행
    flask virtual-pets seed-items   # 기본 아이템 카탈로그 등록
"""

import json
import logging
import click
from flask import current_app
from flask.cli import AppGroup

from .schemas import DecayReportResponseSchema

virtual_pets_cli = AppGroup('virtual-pets', help="가상 펫 운영 명령")


@virtual_pets_cli.command('decay')
def run_decay_command():
    """전체 펫에 감쇠를 1회 적용합니다."""
    report = current_app.services['virtual_pets'].run_decay_pass()
    click.echo(json.dumps(DecayReportResponseSchema().dump(report), ensure_ascii=False, indent=2))
    if report.failed:
        logging.warning(f"Decay pass left {len(report.failed)} pets for the next run")


@virtual_pets_cli.command('seed-items')
def seed_items_command():
    """기본 아이템 카탈로그 중 없는 아이템을 등록합니다."""
    created = current_app.services['virtual_pets'].seed_items()
    click.echo(f"{created}개의 아이템을 등록했습니다.")
