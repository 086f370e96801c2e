"""Tests for the media upload endpoint."""
import io
import os
import re
import uuid
from PIL import Image
from backend.config import UploadConfig
from backend.models import db, Media


def media_count(app):
    with app.app_context():
        return db.session.query(Media).count()


def test_photo_upload_creates_original_and_thumbnail(client, app, auth_headers, create_project, upload_file, make_image, upload_root):
    project = create_project(auth_headers)
    original = make_image(size=(50, 50))

    response = upload_file(auth_headers, project['id'], original, filename='wall crack.png')
    assert response.status_code == 201
    data = response.get_json()

    assert data['fileType'] == 'photo'
    assert data['mimeType'] == 'image/png'
    assert data['fileSize'] == len(original)
    assert data['projectId'] == project['id']
    assert data['project'] == {'id': project['id'], 'name': project['name']}
    assert data['latitude'] is None and data['longitude'] is None
    assert data['capturedAt']

    # Stored under <root>/<user>/<project>/ with a timestamped name
    expected_dir = os.path.join(os.path.realpath(upload_root), data['userId'], project['id'])
    assert os.path.isabs(data['filePath'])
    assert os.path.dirname(data['filePath']) == expected_dir
    stored_name = os.path.basename(data['filePath'])
    assert re.match(r'^\d+-wall_crack\.png$', stored_name)

    with open(data['filePath'], 'rb') as f:
        assert f.read() == original
    with Image.open(data['filePath']) as img:
        assert img.size == (50, 50)

    assert os.path.basename(data['thumbnailPath']) == f"thumb_{os.path.splitext(stored_name)[0]}.jpg"
    with Image.open(data['thumbnailPath']) as thumb:
        assert thumb.format == 'JPEG'
        assert thumb.width <= 300 and thumb.height <= 300


def test_large_photo_thumbnail_is_bounded(client, auth_headers, create_project, upload_file, make_image):
    project = create_project(auth_headers)
    response = upload_file(auth_headers, project['id'], make_image(size=(1200, 600), fmt='JPEG'),
                           filename='wide.jpg', content_type='image/jpeg')
    assert response.status_code == 201
    with Image.open(response.get_json()['thumbnailPath']) as thumb:
        assert thumb.size == (300, 150)


def test_upload_with_coordinates(client, auth_headers, create_project, upload_file, make_image):
    project = create_project(auth_headers)
    response = upload_file(auth_headers, project['id'], make_image(), latitude='40.0', longitude='-73.0')
    assert response.status_code == 201
    assert response.get_json()['latitude'] == 40.0
    assert response.get_json()['longitude'] == -73.0

    listed = client.get(f"/api/media?projectId={project['id']}", headers=auth_headers).get_json()
    assert len(listed) == 1
    assert listed[0]['latitude'] == 40.0
    assert listed[0]['longitude'] == -73.0


def test_upload_with_captured_at(client, auth_headers, create_project, upload_file, make_image):
    project = create_project(auth_headers)
    response = upload_file(auth_headers, project['id'], make_image(), capturedAt='2024-05-01T10:00:00Z')
    assert response.status_code == 201
    assert response.get_json()['capturedAt'].startswith('2024-05-01T10:00:00')


def test_video_upload_has_no_thumbnail(client, auth_headers, create_project, upload_file):
    project = create_project(auth_headers)
    response = upload_file(auth_headers, project['id'], b'\x00\x00\x00\x18ftypmp42' + b'\x00' * 64,
                           filename='walkthrough.mp4', content_type='video/mp4')
    assert response.status_code == 201
    data = response.get_json()
    assert data['fileType'] == 'video'
    assert data['thumbnailPath'] is None
    assert os.path.exists(data['filePath'])


def test_undecodable_photo_still_uploads_without_thumbnail(client, auth_headers, create_project, upload_file):
    project = create_project(auth_headers)
    response = upload_file(auth_headers, project['id'], b'definitely not a png', filename='broken.png')
    assert response.status_code == 201
    assert response.get_json()['thumbnailPath'] is None


def test_disallowed_type_rejected_without_side_effects(client, app, auth_headers, create_project, upload_file, upload_root, list_files):
    project = create_project(auth_headers)
    response = upload_file(auth_headers, project['id'], b'plain text', filename='notes.txt', content_type='text/plain')

    assert response.status_code == 400
    assert response.get_json()['error'] == 'Invalid file type'
    assert list_files(upload_root) == []
    assert media_count(app) == 0


def test_upload_requires_file(client, auth_headers, create_project, upload_file):
    project = create_project(auth_headers)
    response = upload_file(auth_headers, project['id'], None)
    assert response.status_code == 400
    assert response.get_json()['error'] == 'No file provided'


def test_upload_rejects_empty_file(client, app, auth_headers, create_project, upload_file):
    project = create_project(auth_headers)
    response = upload_file(auth_headers, project['id'], b'')
    assert response.status_code == 400
    assert media_count(app) == 0


def test_upload_project_id_errors(client, auth_headers, upload_file, make_image):
    missing = upload_file(auth_headers, None, make_image())
    assert missing.status_code == 400

    malformed = upload_file(auth_headers, 'not-a-uuid', make_image())
    assert malformed.status_code == 404

    unknown = upload_file(auth_headers, str(uuid.uuid4()), make_image())
    assert unknown.status_code == 404
    assert unknown.get_json()['error'] == 'Project not found'


def test_upload_into_foreign_project_is_not_found(client, app, register_user, create_project, upload_file, make_image, upload_root, list_files):
    alice = register_user(email='alice@example.com')
    bob = register_user(email='bob@example.com')
    project = create_project(alice['headers'])

    response = upload_file(bob['headers'], project['id'], make_image())
    assert response.status_code == 404
    assert list_files(upload_root) == []
    assert media_count(app) == 0


def test_upload_rejects_bad_coordinates(client, app, auth_headers, create_project, upload_file, make_image, upload_root, list_files):
    project = create_project(auth_headers)

    lone = upload_file(auth_headers, project['id'], make_image(), latitude='40.0')
    assert lone.status_code == 400

    out_of_range = upload_file(auth_headers, project['id'], make_image(), latitude='91', longitude='0')
    assert out_of_range.status_code == 400

    not_numeric = upload_file(auth_headers, project['id'], make_image(), latitude='abc', longitude='1')
    assert not_numeric.status_code == 400

    assert list_files(upload_root) == []
    assert media_count(app) == 0


def test_upload_rejects_bad_captured_at(client, auth_headers, create_project, upload_file, make_image):
    project = create_project(auth_headers)
    response = upload_file(auth_headers, project['id'], make_image(), capturedAt='yesterday')
    assert response.status_code == 400


def test_upload_rejects_oversized_file(client, app, auth_headers, create_project, upload_file, upload_root, list_files, monkeypatch):
    service = app.extensions['upload_service']
    monkeypatch.setattr(service, 'config', UploadConfig(
        max_file_size=100,
        allowed_image_types=frozenset({'image/png'}),
        allowed_video_types=frozenset(),
    ))
    project = create_project(auth_headers)

    response = upload_file(auth_headers, project['id'], b'\x89PNG' + b'\x00' * 200)
    assert response.status_code == 400
    assert 'too large' in response.get_json()['error']
    assert list_files(upload_root) == []
    assert media_count(app) == 0


def test_request_body_over_transport_limit(client, app, auth_headers, create_project):
    project = create_project(auth_headers)
    app.config['MAX_CONTENT_LENGTH'] = 1024

    response = client.post('/api/upload', data={
        'projectId': project['id'],
        'file': (io.BytesIO(b'\x00' * 4096), 'big.png', 'image/png'),
    }, headers=auth_headers, content_type='multipart/form-data')
    assert response.status_code == 400
    assert response.get_json()['error'] == 'File too large'


def test_upload_requires_authentication(client, upload_file, make_image):
    response = upload_file({}, str(uuid.uuid4()), make_image())
    assert response.status_code == 401


def test_project_detail_shows_uploaded_coordinates(client, auth_headers, create_project, upload_file, make_image):
    project = create_project(auth_headers, name='Site A')
    assert upload_file(auth_headers, project['id'], make_image(), latitude='40.0', longitude='-73.0').status_code == 201

    detail = client.get(f"/api/projects/{project['id']}", headers=auth_headers).get_json()
    assert len(detail['media']) == 1
    assert detail['media'][0]['latitude'] == 40.0
    assert detail['media'][0]['longitude'] == -73.0
