"""Upload blueprint: multipart asset upload."""
import logging
from flask import Blueprint, jsonify, request, g
from ..services.upload_service import get_upload_service
from shared.schemas import MediaResponse

logger = logging.getLogger(__name__)

bp = Blueprint('upload', __name__, url_prefix='/api')


@bp.route('/upload', methods=['POST'])
def upload_media():
    """Upload one photo or video into a project.

    Multipart fields: ``file``, ``projectId``, optional ``latitude``,
    ``longitude`` and ``capturedAt``.
    """
    logger.info(f"Media upload initiated by user_id={g.user_id}")
    media = get_upload_service().upload(
        g.user_id,
        request.form.get('projectId'),
        request.files.get('file'),
        latitude=request.form.get('latitude'),
        longitude=request.form.get('longitude'),
        captured_at=request.form.get('capturedAt'),
    )
    return jsonify(MediaResponse.model_validate(media).to_json()), 201
