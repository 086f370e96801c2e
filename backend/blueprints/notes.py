"""Project notes blueprint."""
import logging
from flask import Blueprint, jsonify, request, g
from sqlalchemy.exc import SQLAlchemyError
from ..models import db, Note, Project
from ..errors import NotFoundError, InternalError
from shared.schemas import NoteResponse
from shared.validation import Validator

logger = logging.getLogger(__name__)

bp = Blueprint('notes', __name__, url_prefix='/api')


def get_owned_project(project_id):
    if not Validator.is_uuid(project_id):
        raise NotFoundError('Project not found')
    project = db.session.query(Project).filter_by(id=project_id, user_id=g.user_id).first()
    if project is None:
        raise NotFoundError('Project not found')
    return project


@bp.route('/projects/<project_id>/notes', methods=['GET'])
def list_notes(project_id):
    project = get_owned_project(project_id)
    notes = (
        db.session.query(Note)
        .filter(Note.project_id == project.id)
        .order_by(Note.created_at.desc(), Note.id.desc())
        .all()
    )
    return jsonify([NoteResponse.model_validate(n).to_json() for n in notes])


@bp.route('/projects/<project_id>/notes', methods=['POST'])
def create_note(project_id):
    project = get_owned_project(project_id)
    data = request.get_json(silent=True)
    body = Validator.validate_note_body(data.get('body') if isinstance(data, dict) else None)

    note = Note(project_id=project.id, body=body)
    try:
        db.session.add(note)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Failed to create note for project {project.id}: {e}", exc_info=True)
        raise InternalError('Failed to create note')

    logger.info(f"Note created: id={note.id}, project_id={project.id}")
    return jsonify(NoteResponse.model_validate(note).to_json()), 201


@bp.route('/projects/<project_id>/notes/<int:note_id>', methods=['DELETE'])
def delete_note(project_id, note_id):
    project = get_owned_project(project_id)
    note = db.session.query(Note).filter_by(id=note_id, project_id=project.id).first()
    if note is None:
        raise NotFoundError('Note not found')

    try:
        db.session.delete(note)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Failed to delete note {note_id}: {e}", exc_info=True)
        raise InternalError('Failed to delete note')

    logger.info(f"Note deleted: id={note_id}, project_id={project.id}")
    return '', 204
