"""Tests for the projects API."""
import io
import os
import pytest
from backend.models import db, Project, Media, Note, Photo


def test_create_project(client, auth_headers):
    response = client.post('/api/projects', json={
        'name': '  North Ridge  ',
        'description': 'Retaining wall inspection',
        'address': '12 Quarry Road',
        'latitude': 51.5,
        'longitude': -0.12,
    }, headers=auth_headers)

    assert response.status_code == 201
    data = response.get_json()
    assert data['name'] == 'North Ridge'
    assert data['description'] == 'Retaining wall inspection'
    assert data['latitude'] == 51.5
    assert data['longitude'] == -0.12
    assert data['userId']
    assert data['createdAt']
    assert data['updatedAt']


def test_create_project_sanitizes_description(client, auth_headers):
    response = client.post('/api/projects', json={
        'name': 'Sanitized',
        'description': '<script>alert(1)</script><strong>Bold</strong>',
    }, headers=auth_headers)
    assert response.status_code == 201
    description = response.get_json()['description']
    assert '<script>' not in description
    assert '<strong>' not in description
    assert description.endswith('Bold')


def test_project_description_keeps_plain_text(client, auth_headers):
    response = client.post('/api/projects', json={
        'name': 'Ampersand',
        'description': 'Pump & valve check, flow < 5 l/s',
    }, headers=auth_headers)
    assert response.status_code == 201
    assert response.get_json()['description'] == 'Pump & valve check, flow < 5 l/s'


@pytest.mark.parametrize('payload', [
    {},
    {'name': '   '},
    {'name': 'x' * 201},
    {'name': 'Half pair', 'latitude': 10.0},
    {'name': 'Bad latitude', 'latitude': 95.0, 'longitude': 0.0},
    {'name': 'Bad longitude', 'latitude': 0.0, 'longitude': -181.0},
    {'name': 'Not a number', 'latitude': 'north', 'longitude': 0.0},
])
def test_create_project_rejects_invalid_input(client, auth_headers, payload):
    response = client.post('/api/projects', json=payload, headers=auth_headers)
    assert response.status_code == 400
    assert 'error' in response.get_json()


def test_list_projects_with_media_count_and_search(client, auth_headers, create_project, upload_file, make_image):
    bridge = create_project(auth_headers, name='Bridge Deck')
    create_project(auth_headers, name='Culvert Outfall')

    assert upload_file(auth_headers, bridge['id'], make_image()).status_code == 201
    assert upload_file(auth_headers, bridge['id'], make_image()).status_code == 201

    response = client.get('/api/projects', headers=auth_headers)
    assert response.status_code == 200
    projects = {p['name']: p for p in response.get_json()}
    assert projects['Bridge Deck']['mediaCount'] == 2
    assert projects['Culvert Outfall']['mediaCount'] == 0

    response = client.get('/api/projects?search=bridge', headers=auth_headers)
    assert [p['name'] for p in response.get_json()] == ['Bridge Deck']


def test_list_projects_only_returns_own(client, register_user, create_project):
    alice = register_user(email='alice@example.com')
    bob = register_user(email='bob@example.com')
    create_project(alice['headers'], name='Alice Site')

    response = client.get('/api/projects', headers=bob['headers'])
    assert response.status_code == 200
    assert response.get_json() == []


def test_project_detail_includes_media_and_notes_count(client, auth_headers, create_project, upload_file, make_image):
    project = create_project(auth_headers)
    upload = upload_file(auth_headers, project['id'], make_image()).get_json()
    client.post(f"/api/projects/{project['id']}/notes", json={'body': 'Crack on east wall'}, headers=auth_headers)

    response = client.get(f"/api/projects/{project['id']}", headers=auth_headers)
    assert response.status_code == 200
    data = response.get_json()
    assert [m['id'] for m in data['media']] == [upload['id']]
    assert data['notesCount'] == 1


def test_update_project_partial(client, auth_headers, create_project):
    project = create_project(auth_headers, name='Old Name', address='1 Main St', latitude=10.0, longitude=20.0)

    response = client.patch(f"/api/projects/{project['id']}", json={'name': 'New Name'}, headers=auth_headers)
    assert response.status_code == 200
    data = response.get_json()
    assert data['name'] == 'New Name'
    assert data['address'] == '1 Main St'
    assert data['latitude'] == 10.0

    response = client.put(f"/api/projects/{project['id']}", json={'latitude': 11.5}, headers=auth_headers)
    assert response.status_code == 200
    assert response.get_json()['latitude'] == 11.5
    assert response.get_json()['longitude'] == 20.0


def test_update_project_rejects_empty_name(client, auth_headers, create_project):
    project = create_project(auth_headers)
    response = client.patch(f"/api/projects/{project['id']}", json={'name': ''}, headers=auth_headers)
    assert response.status_code == 400


def test_update_project_rejects_lone_coordinate(client, auth_headers, create_project):
    project = create_project(auth_headers)
    response = client.patch(f"/api/projects/{project['id']}", json={'latitude': 10.0}, headers=auth_headers)
    assert response.status_code == 400


def test_foreign_project_is_not_found(client, register_user, create_project):
    alice = register_user(email='alice@example.com')
    bob = register_user(email='bob@example.com')
    project = create_project(alice['headers'])
    url = f"/api/projects/{project['id']}"

    assert client.get(url, headers=bob['headers']).status_code == 404
    assert client.patch(url, json={'name': 'Stolen'}, headers=bob['headers']).status_code == 404
    assert client.delete(url, headers=bob['headers']).status_code == 404
    assert client.get(url, headers=alice['headers']).get_json()['name'] == 'Riverside Survey'


def test_malformed_project_id_is_not_found(client, auth_headers):
    response = client.get('/api/projects/not-a-uuid', headers=auth_headers)
    assert response.status_code == 404
    assert response.get_json()['error'] == 'Project not found'


def test_delete_project_cascades(client, app, auth_headers, create_project, upload_file, make_image, upload_root, list_files):
    project = create_project(auth_headers)
    media = upload_file(auth_headers, project['id'], make_image()).get_json()
    client.post(f"/api/projects/{project['id']}/notes", json={'body': 'Note'}, headers=auth_headers)
    client.post(
        f"/api/projects/{project['id']}/photos",
        data={'photos': [(io.BytesIO(make_image()), 'extra.png', 'image/png')]},
        headers=auth_headers,
        content_type='multipart/form-data',
    )
    assert len(list_files(upload_root)) == 3

    response = client.delete(f"/api/projects/{project['id']}", headers=auth_headers)
    assert response.status_code == 200
    assert response.get_json()['summary'] == {'media': 1, 'notes': 1, 'photos': 1}

    assert not os.path.exists(media['filePath'])
    assert list_files(upload_root) == []
    with app.app_context():
        assert db.session.get(Project, project['id']) is None
        assert db.session.query(Media).count() == 0
        assert db.session.query(Note).count() == 0
        assert db.session.query(Photo).count() == 0

    assert client.delete(f"/api/projects/{project['id']}", headers=auth_headers).status_code == 404
