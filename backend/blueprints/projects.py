"""Projects blueprint for Flask API."""
from flask import Blueprint, request, jsonify
from sqlalchemy import func
from ..models import db, Project, Media, Note
from ..base.crud_base import OwnedCRUDBase
from ..utils import cascade_delete_project
from shared.validation import Validator
from shared.schemas import ProjectResponse, ProjectListItem, ProjectDetailResponse

bp = Blueprint('projects', __name__, url_prefix='/api')


class ProjectCRUD(OwnedCRUDBase):
    """CRUD operations for Project model."""

    def __init__(self):
        super().__init__(Project, logger_name='projects', singular_name='project')

    def serialize(self, project):
        return ProjectResponse.model_validate(project).to_json()

    def serialize_detail(self, project):
        notes_count = db.session.query(func.count(Note.id)).filter(Note.project_id == project.id).scalar()
        detail = ProjectDetailResponse.model_validate(project).model_copy(update={'notes_count': notes_count or 0})
        return detail.to_json()

    def list_with_counts(self, search=None):
        """Caller's projects with media counts, most recently updated first."""
        media_counts = (
            db.session.query(Media.project_id, func.count(Media.id).label('media_count'))
            .group_by(Media.project_id)
            .subquery()
        )
        query = (
            db.session.query(Project, func.coalesce(media_counts.c.media_count, 0))
            .outerjoin(media_counts, media_counts.c.project_id == Project.id)
            .filter(Project.user_id == self.current_user_id())
        )
        if search:
            query = query.filter(Project.name.ilike(f"%{search.strip()}%"))

        results = []
        for project, media_count in query.order_by(Project.updated_at.desc()).all():
            item = ProjectListItem.model_validate(project).model_copy(update={'media_count': media_count})
            results.append(item.to_json())
        return results

    def validate_create_data(self, data):
        return Validator.validate_project_data(data)

    def validate_update_data(self, data, project):
        return Validator.validate_project_update(data, project)


project_crud = ProjectCRUD()


@bp.route('/projects', methods=['GET'])
def get_projects():
    """List the caller's projects, optionally filtered by name."""
    return jsonify(project_crud.list_with_counts(search=request.args.get('search')))


@bp.route('/projects/<project_id>', methods=['GET'])
def get_project(project_id):
    """Get a single project with its media."""
    return project_crud.get_detail(project_id)


@bp.route('/projects', methods=['POST'])
def create_project():
    """Create a new project."""
    return project_crud.create()


@bp.route('/projects/<project_id>', methods=['PUT', 'PATCH'])
def update_project(project_id):
    """Update an existing project."""
    return project_crud.update(project_id)


@bp.route('/projects/<project_id>', methods=['DELETE'])
def delete_project(project_id):
    """Delete a project together with its media, notes and photos."""
    return project_crud.delete(project_id, cascade_func=cascade_delete_project)
