import json

import pytest

from lexcorpus.api import dependencies, state
from lexcorpus.api.server import app


@pytest.fixture
def client(corpus_db):
    assert dependencies.load_corpus(corpus_db)
    with app.test_client() as c:
        yield c
    dependencies.unload_corpus()


@pytest.fixture
def client_without_corpus(tmp_path):
    assert not dependencies.load_corpus(str(tmp_path / "missing.db"))
    with app.test_client() as c:
        yield c


def test_health_live(client):
    r = client.get('/api/health/live')
    assert r.status_code == 200
    assert r.get_json() == {"alive": True}


def test_health_reports_corpus(client):
    r = client.get('/api/health')
    assert r.status_code == 200
    data = r.get_json()
    assert data['status'] == 'ok'
    assert data['corpus_loaded'] is True
    assert data['statistics']['documents'] > 0


def test_ready_without_corpus(client_without_corpus):
    r = client_without_corpus.get('/api/health/ready')
    assert r.status_code == 503
    assert r.get_json()['checks']['corpus_loaded'] is False
    r = client_without_corpus.get('/api/health')
    assert r.get_json()['corpus_loaded'] is False


def test_ready_with_corpus(client):
    r = client.get('/api/health/ready')
    assert r.status_code == 200
    assert r.get_json()['ready'] is True


def test_version(client):
    r = client.get('/version')
    assert r.status_code == 200
    data = r.get_json()
    assert 'version' in data
    assert len(data['corpus']['fingerprint']) == 12
    assert client.get('/api/version').status_code == 200


def test_list_tools_endpoint(client):
    r = client.get('/api/tools')
    assert r.status_code == 200
    names = {t['name'] for t in r.get_json()['tools']}
    assert {'search_legislation', 'validate_citation', 'about'} <= names


def test_call_tool_with_bare_arguments(client):
    r = client.post('/api/tools/validate_citation',
                    data=json.dumps({"citation": "Section 21, Constitution 2013"}),
                    content_type='application/json')
    assert r.status_code == 200
    envelope = r.get_json()
    assert envelope['isError'] is False
    payload = json.loads(envelope['content'][0]['text'])
    assert payload['results']['document_id'] == 'constitution-2013'


def test_call_tool_with_wrapped_arguments(client):
    r = client.post('/api/tools/search_legislation', json={"arguments": {"query": "bí mật", "limit": 3}})
    assert r.status_code == 200
    payload = json.loads(r.get_json()['content'][0]['text'])
    assert payload['results']


def test_call_tool_invalid_arguments_stay_in_envelope(client):
    r = client.post('/api/tools/search_legislation', json={})
    assert r.status_code == 200
    assert r.get_json()['isError'] is True


def test_call_tool_bad_body(client):
    r = client.post('/api/tools/search_legislation', json=["not", "an", "object"])
    assert r.status_code == 400
    r = client.post('/api/tools/search_legislation', json={"arguments": "not_a_dict"})
    assert r.status_code == 400
    assert r.get_json()['error'] == 'validation_failed'


def test_unknown_tool_is_404(client):
    r = client.post('/api/tools/drop_tables', json={})
    assert r.status_code == 404


def test_tool_call_without_corpus_is_503(client_without_corpus):
    r = client_without_corpus.post('/api/tools/search_legislation', json={"query": "mạng"})
    assert r.status_code == 503
    r = client_without_corpus.post('/api/tools/format_citation', json={"citation": "Section 1, Hiến pháp 2013"})
    assert r.status_code == 200


def test_about_tool_over_http(client):
    r = client.post('/api/tools/about', json={})
    payload = json.loads(r.get_json()['content'][0]['text'])
    assert payload['database']['fingerprint'] == state.about_context.fingerprint


def test_request_id_is_echoed(client):
    r = client.get('/api/health/live', headers={'X-Request-ID': 'req-123'})
    assert r.headers['X-Request-ID'] == 'req-123'


def test_metrics_endpoint(client):
    client.post('/api/tools/list_sources', json={})
    r = client.get('/metrics')
    assert r.status_code == 200
    assert 'text/plain' in r.content_type
    body = r.get_data(as_text=True)
    assert 'lexcorpus_requests_total' in body
    assert 'lexcorpus_tool_calls_total' in body


def test_api_key_enforced(client, monkeypatch):
    from lexcorpus import config
    monkeypatch.setattr(config, 'API_KEY', 'secret')
    r = client.post('/api/tools/list_sources', json={})
    assert r.status_code == 401
    r = client.post('/api/tools/list_sources', json={}, headers={'X-API-Key': 'secret'})
    assert r.status_code == 200
