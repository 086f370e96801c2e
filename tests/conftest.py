"""Pytest configuration and fixtures for field documentation tests."""
import io
import os
import tempfile
import pytest
from PIL import Image
from backend.app import create_app
from backend.models import db


@pytest.fixture
def app(tmp_path):
    """Create and configure a test app instance."""
    # Create temporary database for testing
    db_fd, db_path = tempfile.mkstemp()

    test_config = {
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f'sqlite:///{db_path}',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'UPLOAD_DIR': str(tmp_path / 'uploads'),
        'LOG_DIR': str(tmp_path / 'logs'),
        'JWT_SECRET': 'test-access-secret',
        'JWT_REFRESH_SECRET': 'test-refresh-secret',
    }

    app = create_app(test_config)

    with app.app_context():
        db.create_all()

    yield app

    # Cleanup
    with app.app_context():
        db.session.remove()
        db.engine.dispose()
    os.close(db_fd)
    os.unlink(db_path)


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """A test runner for the app's Click commands."""
    return app.test_cli_runner()


@pytest.fixture
def upload_root(app):
    return app.config['UPLOAD_DIR']


@pytest.fixture
def register_user(client):
    """Register a user and return its record, auth headers and refresh token."""
    def _register(email='alice@example.com', password='secret123', name='Alice'):
        response = client.post('/api/auth/register', json={
            'email': email,
            'password': password,
            'name': name,
        })
        assert response.status_code == 201, response.get_json()
        data = response.get_json()
        return {
            'user': data['user'],
            'headers': {'Authorization': f"Bearer {data['accessToken']}"},
            'refresh_token': data['refreshToken'],
        }
    return _register


@pytest.fixture
def auth_headers(register_user):
    return register_user()['headers']


@pytest.fixture
def create_project(client):
    def _create(headers, **fields):
        payload = {'name': 'Riverside Survey'}
        payload.update(fields)
        response = client.post('/api/projects', json=payload, headers=headers)
        assert response.status_code == 201, response.get_json()
        return response.get_json()
    return _create


@pytest.fixture
def make_image():
    """Encode a solid-colour test image in memory."""
    def _make(size=(50, 50), fmt='PNG', mode='RGB', color=(200, 40, 40)):
        if mode == 'RGBA' and len(color) == 3:
            color = color + (128,)
        buffer = io.BytesIO()
        Image.new(mode, size, color).save(buffer, format=fmt)
        return buffer.getvalue()
    return _make


@pytest.fixture
def upload_file(client):
    """POST a multipart upload to /api/upload."""
    def _upload(headers, project_id, data, filename='photo.png', content_type='image/png', **fields):
        form = {}
        if project_id is not None:
            form['projectId'] = project_id
        if data is not None:
            form['file'] = (io.BytesIO(data), filename, content_type)
        form.update({k: v for k, v in fields.items() if v is not None})
        return client.post('/api/upload', data=form, headers=headers, content_type='multipart/form-data')
    return _upload


def files_under(root):
    """All regular files below ``root``."""
    found = []
    for dirpath, _dirnames, filenames in os.walk(root):
        found.extend(os.path.join(dirpath, name) for name in filenames)
    return sorted(found)


@pytest.fixture
def list_files():
    return files_under
