# gamecore_pet/__init__.py

# =====================================================================================
# 1. 환경 변수 로드 (가장 먼저 실행)
# =====================================================================================
from dotenv import load_dotenv
load_dotenv()

# =====================================================================================
# 2. 모듈 임포트 (Module Imports)
# =====================================================================================
import os
import logging
from flask import Flask, jsonify
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
import firebase_admin
from firebase_admin import credentials

# - 설정
from gamecore_pet.core.config import config_by_name

# - API 블루프린트 / CLI
from gamecore_pet.api.virtual_pets.routes import virtual_pets_bp
from gamecore_pet.api.virtual_pets.commands import virtual_pets_cli

# - 서비스 모듈
from gamecore_pet.services.wallet_service import WalletService
from gamecore_pet.api.virtual_pets.repository import VirtualPetRepository
from gamecore_pet.api.virtual_pets.services import VirtualPetService
from gamecore_pet.api.virtual_pets.errors import VirtualPetError


def create_app(config_name=None, repository=None, wallet_client=None):
    """
    Flask 애플리케이션 팩토리 함수.

    :param config_name: 'development' / 'testing' / 'production' (기본값: FLASK_ENV)
    :param repository: 저장소 주입 (테스트용). 주어지면 Firebase 초기화를 건너뜁니다.
    :param wallet_client: 지갑 클라이언트 주입 (테스트용). 주어지면 WalletService 설정을 건너뜁니다.
    """
    # =====================================================================================
    # 3. Flask 앱 생성 및 기본 설정
    # =====================================================================================
    config_name = config_name or os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    app.json.ensure_ascii = False

    # =====================================================================================
    # 4. 확장 기능 및 외부 서비스 초기화
    # =====================================================================================
    JWTManager(app)

    if repository is None:
        if not firebase_admin._apps:
            cred_path = app.config['FIREBASE_CREDENTIALS_PATH']
            if not cred_path or not os.path.exists(cred_path):
                raise FileNotFoundError(f"Firebase 인증 파일을 찾을 수 없습니다: {cred_path}")
            firebase_admin.initialize_app(credentials.Certificate(cred_path))
        repository = VirtualPetRepository()

    # =====================================================================================
    # 5. 서비스 인스턴스 생성 및 'app.services'에 저장 (의존성 주입)
    # =====================================================================================
    app.services = {}

    if wallet_client is None:
        try:
            wallet_client = WalletService()
            wallet_client.init_app(app)
            logging.info("Wallet service initialized successfully")
        except Exception as e:
            logging.error(f"Failed to initialize wallet service: {e}")
            raise
    app.services['wallet'] = wallet_client

    app.services['virtual_pets'] = VirtualPetService(
        repository=repository,
        wallet_service=app.services['wallet'],
        decay_max_workers=app.config['DECAY_MAX_WORKERS'],
        decay_batch_size=app.config['DECAY_BATCH_SIZE'],
        decay_min_interval_minutes=app.config['DECAY_MIN_INTERVAL_MINUTES']
    )

    # =====================================================================================
    # 6. 블루프린트 및 CLI 명령 등록
    # =====================================================================================
    app.register_blueprint(virtual_pets_bp, url_prefix='/api/virtual-pets')
    app.cli.add_command(virtual_pets_cli)

    # =====================================================================================
    # 7. 전역 에러 핸들러 설정
    # =====================================================================================
    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err):
        response = {"error_code": "VALIDATION_ERROR", "details": err.messages}
        return jsonify(response), 400

    @app.errorhandler(VirtualPetError)
    def handle_virtual_pet_error(err):
        response = {"error_code": err.error_code, "message": err.message}
        return jsonify(response), err.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(err):
        response = {"error_code": err.name.upper().replace(' ', '_'), "message": err.description}
        return jsonify(response), err.code

    @app.errorhandler(Exception)
    def handle_generic_exception(err):
        # 다른 핸들러에서 처리되지 않은 모든 예외를 여기서 처리
        logging.error(f"An unhandled exception occurred: {err}", exc_info=True)
        response = {"error_code": "INTERNAL_SERVER_ERROR", "message": "서버 내부에서 예상치 못한 오류가 발생했습니다."}
        return jsonify(response), 500

    # =====================================================================================
    # 8. 로깅 및 앱 반환
    # =====================================================================================
    if not app.debug:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]')

    logging.info(f"Flask app created for '{config_name}' environment.")

    return app
