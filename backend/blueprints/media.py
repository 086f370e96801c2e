"""Media blueprint: listing, metadata, file streaming and deletion."""
import logging
from flask import Blueprint, jsonify, request, g, send_file
from ..errors import ValidationError
from ..services.media_service import get_media_service
from shared.schemas import MediaResponse
from shared.validation import Validator

logger = logging.getLogger(__name__)

bp = Blueprint('media', __name__, url_prefix='/api')


@bp.route('/media', methods=['GET'])
def list_media():
    """List the caller's media, newest upload first."""
    project_id = request.args.get('projectId')
    file_type = request.args.get('fileType')

    if project_id:
        if not Validator.is_uuid(project_id):
            raise ValidationError('projectId must be a valid UUID')
        project_id = Validator.validate_uuid(project_id, 'projectId')
    else:
        project_id = None
    file_type = Validator.validate_file_type(file_type) if file_type else None

    items = get_media_service().list_media(g.user_id, project_id=project_id, file_type=file_type)
    return jsonify([MediaResponse.model_validate(m).to_json() for m in items])


@bp.route('/media/<media_id>', methods=['GET'])
def get_media(media_id):
    media = get_media_service().get_owned(g.user_id, media_id)
    return jsonify(MediaResponse.model_validate(media).to_json())


@bp.route('/media/<media_id>/file', methods=['GET'])
def get_media_file(media_id):
    """Stream the stored original."""
    media_service = get_media_service()
    media = media_service.get_owned(g.user_id, media_id)
    path = media_service.original_path(media)
    return send_file(media_service.open_file(path), mimetype=media.mime_type, conditional=True)


@bp.route('/media/<media_id>/thumbnail', methods=['GET'])
def get_media_thumbnail(media_id):
    """Stream the thumbnail, or the original when no thumbnail exists."""
    media_service = get_media_service()
    media = media_service.get_owned(g.user_id, media_id)
    path, is_thumbnail = media_service.preview_path(media)
    return send_file(
        media_service.open_file(path),
        mimetype='image/jpeg' if is_thumbnail else media.mime_type,
        conditional=True,
    )


@bp.route('/media/<media_id>', methods=['DELETE'])
def delete_media(media_id):
    get_media_service().delete(g.user_id, media_id)
    return jsonify({'message': 'Media deleted successfully'})
