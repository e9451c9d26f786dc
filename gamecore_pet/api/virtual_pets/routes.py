# gamecore_pet/api/virtual_pets/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity, get_jwt
from marshmallow import ValidationError

from .errors import VirtualPetError, CareCooldownError
from .schemas import (
    VirtualPetCreateSchema,
    ColorChangeSchema,
    CareHistoryQuerySchema,
    VirtualPetResponseSchema,
    CareResultResponseSchema,
    CareHistoryResponseSchema,
    AchievementResponseSchema,
    PetItemResponseSchema,
    PetStatisticsResponseSchema,
    DecayReportResponseSchema
)

virtual_pets_bp = Blueprint('virtual_pets_bp', __name__)

ADMIN_ROLE = 'admin'


def _domain_error_response(err: VirtualPetError):
    """도메인 예외를 error_code/message 형태의 JSON 응답으로 변환합니다."""
    body = {"error_code": err.error_code, "message": err.message}
    if isinstance(err, CareCooldownError) and err.retry_after_seconds is not None:
        body["retry_after_seconds"] = err.retry_after_seconds
    return jsonify(body), err.status_code


def _perform_care_action(action_name: str, *args):
    user_id = get_jwt_identity()
    service = current_app.services['virtual_pets']
    try:
        result = getattr(service, action_name)(user_id, *args)
        return jsonify(CareResultResponseSchema().dump(result)), 200
    except VirtualPetError as e:
        return _domain_error_response(e)
    except Exception as e:
        logging.error(f"Care action '{action_name}' API error (user: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "CARE_ACTION_FAILED", "message": "돌봄 처리 중 오류가 발생했습니다."}), 500


@virtual_pets_bp.route('/', methods=['POST'])
@jwt_required()
def create_virtual_pet():
    """가상 펫 생성 API. 사용자당 하나만 만들 수 있습니다."""
    user_id = get_jwt_identity()
    service = current_app.services['virtual_pets']
    try:
        data = VirtualPetCreateSchema().load(request.get_json() or {})
        new_pet = service.create_pet(user_id, data['name'], data['color'], data['personality'])
        return jsonify(VirtualPetResponseSchema().dump(new_pet)), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except VirtualPetError as e:
        return _domain_error_response(e)
    except Exception as e:
        logging.error(f"Virtual pet creation API error (user: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "PET_CREATION_FAILED", "message": "가상 펫 생성 중 오류가 발생했습니다."}), 500


@virtual_pets_bp.route('/me', methods=['GET'])
@jwt_required()
def get_my_virtual_pet():
    user_id = get_jwt_identity()
    service = current_app.services['virtual_pets']
    try:
        pet = service.get_pet(user_id)
        return jsonify(VirtualPetResponseSchema().dump(pet)), 200
    except VirtualPetError as e:
        return _domain_error_response(e)
    except Exception as e:
        logging.error(f"Get virtual pet API error (user: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "FETCH_FAILED", "message": "가상 펫 조회 중 오류가 발생했습니다."}), 500


@virtual_pets_bp.route('/me/feed/<string:item_id>', methods=['POST'])
@jwt_required()
def feed_virtual_pet(item_id: str):
    return _perform_care_action('feed', item_id)


@virtual_pets_bp.route('/me/play/<string:item_id>', methods=['POST'])
@jwt_required()
def play_with_virtual_pet(item_id: str):
    return _perform_care_action('play', item_id)


@virtual_pets_bp.route('/me/clean/<string:item_id>', methods=['POST'])
@jwt_required()
def clean_virtual_pet(item_id: str):
    return _perform_care_action('clean', item_id)


@virtual_pets_bp.route('/me/rest', methods=['POST'])
@jwt_required()
def rest_virtual_pet():
    return _perform_care_action('rest')


@virtual_pets_bp.route('/me/color', methods=['PATCH'])
@jwt_required()
def change_virtual_pet_color():
    user_id = get_jwt_identity()
    service = current_app.services['virtual_pets']
    try:
        data = ColorChangeSchema().load(request.get_json() or {})
        pet = service.change_color(user_id, data['color'])
        return jsonify(VirtualPetResponseSchema().dump(pet)), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except VirtualPetError as e:
        return _domain_error_response(e)
    except Exception as e:
        logging.error(f"Change color API error (user: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "UPDATE_FAILED", "message": "색상 변경 중 오류가 발생했습니다."}), 500


@virtual_pets_bp.route('/me/history', methods=['GET'])
@jwt_required()
def get_care_history():
    """돌봄 기록을 최신순으로 조회합니다. (쿼리: page, page_size)"""
    user_id = get_jwt_identity()
    service = current_app.services['virtual_pets']
    try:
        query = CareHistoryQuerySchema().load(request.args)
        history = service.get_care_history(user_id, query['page'], query['page_size'])
        return jsonify(CareHistoryResponseSchema().dump(history)), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except VirtualPetError as e:
        return _domain_error_response(e)
    except Exception as e:
        logging.error(f"Care history API error (user: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "FETCH_FAILED", "message": "돌봄 기록 조회 중 오류가 발생했습니다."}), 500


@virtual_pets_bp.route('/me/achievements', methods=['GET'])
@jwt_required()
def get_achievements():
    user_id = get_jwt_identity()
    service = current_app.services['virtual_pets']
    try:
        achievements = service.get_achievements(user_id)
        return jsonify(AchievementResponseSchema(many=True).dump(achievements)), 200
    except VirtualPetError as e:
        return _domain_error_response(e)
    except Exception as e:
        logging.error(f"Achievements API error (user: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "FETCH_FAILED", "message": "업적 조회 중 오류가 발생했습니다."}), 500


@virtual_pets_bp.route('/me/statistics', methods=['GET'])
@jwt_required()
def get_statistics():
    user_id = get_jwt_identity()
    service = current_app.services['virtual_pets']
    try:
        statistics = service.get_statistics(user_id)
        return jsonify(PetStatisticsResponseSchema().dump(statistics)), 200
    except VirtualPetError as e:
        return _domain_error_response(e)
    except Exception as e:
        logging.error(f"Statistics API error (user: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "FETCH_FAILED", "message": "통계 조회 중 오류가 발생했습니다."}), 500


@virtual_pets_bp.route('/items', methods=['GET'])
@jwt_required()
def get_available_items():
    service = current_app.services['virtual_pets']
    try:
        items = service.get_available_items()
        return jsonify(PetItemResponseSchema(many=True).dump(items)), 200
    except Exception as e:
        logging.error(f"Available items API error: {e}", exc_info=True)
        return jsonify({"error_code": "FETCH_FAILED", "message": "아이템 목록 조회 중 오류가 발생했습니다."}), 500


@virtual_pets_bp.route('/decay', methods=['POST'])
@jwt_required()
def run_decay_pass():
    """전체 펫 감쇠를 1회 실행합니다. role=admin 클레임이 있는 운영자 토큰만 호출할 수 있습니다."""
    if get_jwt().get('role') != ADMIN_ROLE:
        logging.warning(f"User {get_jwt_identity()} tried to trigger a decay pass without admin role")
        return jsonify({"error_code": "FORBIDDEN", "message": "운영자만 감쇠를 실행할 수 있습니다."}), 403
    service = current_app.services['virtual_pets']
    try:
        report = service.run_decay_pass()
        return jsonify(DecayReportResponseSchema().dump(report)), 200
    except Exception as e:
        logging.error(f"Decay pass API error: {e}", exc_info=True)
        return jsonify({"error_code": "DECAY_FAILED", "message": "감쇠 처리 중 오류가 발생했습니다."}), 500
