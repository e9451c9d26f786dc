# gamecore_pet/services/wallet_service.py
import logging
from typing import Optional
import requests
from flask import Flask


class WalletService:
    """
    외부 지갑(포인트 원장) 서비스와의 통신을 담당하는 클래스입니다.
    이 엔진은 포인트를 저장하지 않고, 적립할 양을 계산해 credit 요청만 보냅니다.
    """

    def __init__(self, base_url: Optional[str] = None, api_key: Optional[str] = None,
                 timeout_seconds: float = 3.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/') if base_url else None
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()

    def init_app(self, app: Flask):
        """
        Flask 앱 초기화 과정에서 호출되어 지갑 서비스 주소와 타임아웃을 설정합니다.

        :param app: Flask 애플리케이션 객체
        """
        base_url = app.config.get('WALLET_SERVICE_URL')
        if not base_url:
            raise ValueError("WALLET_SERVICE_URL 설정이 .env 또는 설정 파일에 필요합니다.")
        self.base_url = base_url.rstrip('/')
        self.api_key = app.config.get('WALLET_API_KEY')
        self.timeout_seconds = float(app.config.get('WALLET_TIMEOUT_SECONDS', 3.0))
        logging.info("WalletService: 지갑 서비스 연동이 초기화되었습니다.")

    def credit(self, owner_id: str, points: int, reference: str, reason: str = "pet_care") -> bool:
        """
        사용자 지갑에 포인트 적립을 요청합니다.

        :param owner_id: 포인트를 받을 사용자 ID
        :param points: 적립할 포인트
        :param reference: 멱등 키 (돌봄 기록 ID). 같은 키로 재요청해도 한 번만 적립되어야 합니다.
        :param reason: 적립 사유
        :return: 적립 성공 여부
        """
        if not self.base_url:
            raise RuntimeError("WalletService가 초기화되지 않았습니다. init_app을 먼저 호출해주세요.")

        headers = {"Idempotency-Key": reference}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            response = self.session.post(
                f"{self.base_url}/wallets/{owner_id}/credits",
                json={"points": points, "reference": reference, "reason": reason},
                headers=headers,
                timeout=self.timeout_seconds
            )
        except requests.RequestException as e:
            logging.error(f"Wallet credit request failed for user {owner_id} (ref: {reference}): {e}", exc_info=True)
            return False

        if not response.ok:
            logging.error(f"Wallet credit rejected for user {owner_id} (ref: {reference}): "
                          f"{response.status_code} {response.text}")
            return False

        logging.info(f"Wallet credited {points} points to user {owner_id} (ref: {reference})")
        return True
