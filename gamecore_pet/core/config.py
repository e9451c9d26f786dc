# gamecore_pet/core/config.py

import os # 환경 변수(.env 포함)를 읽기 위해 사용합니다.

class Config:
    """모든 환경 설정의 기반이 되는 공통 설정 클래스입니다."""
    # JWT 토큰 서명 키. 토큰의 identity가 가상 펫 소유자 ID로 사용됩니다.
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')
    FIREBASE_CREDENTIALS_PATH = os.getenv('FIREBASE_CREDENTIALS_PATH')

    # 외부 지갑(포인트 원장) 서비스. 돌봄 보상 포인트 적립 요청을 보냅니다.
    WALLET_SERVICE_URL = os.getenv('WALLET_SERVICE_URL')
    WALLET_API_KEY = os.getenv('WALLET_API_KEY')
    WALLET_TIMEOUT_SECONDS = float(os.getenv('WALLET_TIMEOUT_SECONDS', 3.0))

    # 감쇠 배치: 동시 처리 펫 수, 배치 크기, 같은 펫을 다시 감쇠하기까지의 최소 간격(분)
    DECAY_MAX_WORKERS = int(os.getenv('DECAY_MAX_WORKERS', 8))
    DECAY_BATCH_SIZE = int(os.getenv('DECAY_BATCH_SIZE', 100))
    DECAY_MIN_INTERVAL_MINUTES = int(os.getenv('DECAY_MIN_INTERVAL_MINUTES', 60))

class DevelopmentConfig(Config):
    """개발 환경을 위한 설정 클래스입니다."""
    DEBUG = True
    # 개발용 Firebase 프로젝트의 서비스 계정 키 경로가 따로 있으면 우선 사용합니다.
    FIREBASE_CREDENTIALS_PATH = os.getenv('DEV_FIREBASE_CREDENTIALS_PATH', Config.FIREBASE_CREDENTIALS_PATH)

class TestingConfig(Config):
    """테스트 환경을 위한 설정 클래스입니다. 저장소와 지갑은 테스트에서 주입합니다."""
    TESTING = True
    DEBUG = False
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'testing-secret-key-with-enough-length-32')
    FIREBASE_CREDENTIALS_PATH = os.getenv('TEST_FIREBASE_CREDENTIALS_PATH')
    DECAY_MAX_WORKERS = 4

class ProductionConfig(Config):
    """운영 환경 설정 클래스입니다."""
    DEBUG = False

# FLASK_ENV 값(또는 create_app 인자)에 따라 설정 클래스를 선택하는 데 사용됩니다.
config_by_name = dict(
    development=DevelopmentConfig,
    testing=TestingConfig,
    production=ProductionConfig
)
