from io import BytesIO

from fastapi.testclient import TestClient
from PIL import Image

from calorie_lens.main import app


def make_test_image_bytes() -> bytes:
    image = Image.new('RGB', (120, 80), color='white')
    buf = BytesIO()
    image.save(buf, format='JPEG')
    return buf.getvalue()


def test_health_ok():
    with TestClient(app) as client:
        response = client.get('/health')
    assert response.status_code == 200
    body = response.json()
    assert body['ok'] is True
    assert body['model_loaded'] is True
    assert body['food_table_size'] == 75
    assert body['model_weights_path'] is None
    assert body['model_weights_sha256'] is None


def test_analyze_returns_items():
    image_bytes = make_test_image_bytes()
    with TestClient(app) as client:
        response = client.post('/analyze', files={'image': ('test.jpg', image_bytes, 'image/jpeg')})
    assert response.status_code == 200
    body = response.json()
    assert body['ok'] is True
    assert body['model'] == 'dummy-v1'
    assert isinstance(body['observations'], list)
    result = body['result']
    assert result['is_food'] is True
    assert [item['name'] for item in result['items']] == ['Pizza', 'Salad', 'French Fries']
    assert result['total_calories'] == sum(item['calories'] for item in result['items'])
    assert result['items'][0]['calories_per_serving'] == '266 kcal'
    assert result['items'][0]['confidence_percent'] == 91


def test_analyze_rejects_undecodable_image():
    with TestClient(app) as client:
        response = client.post(
            '/analyze',
            files={'image': ('test.jpg', b'not an image', 'image/jpeg')},
            headers={'x-request-id': 'req-1'},
        )
    assert response.status_code == 400
    body = response.json()
    assert body == {
        'ok': False,
        'error': 'IMAGE_UNPROCESSABLE',
        'message': 'cannot process image',
        'details': None,
        'request_id': 'req-1',
    }


def test_analyze_rejects_empty_upload():
    with TestClient(app) as client:
        response = client.post('/analyze', files={'image': ('test.jpg', b'', 'image/jpeg')})
    assert response.status_code == 400
    assert response.json()['error'] == 'MISSING_IMAGE'
    assert response.json()['message'] == 'cannot process image'


def test_resolve_observations():
    with TestClient(app) as client:
        response = client.post(
            '/resolve',
            json={'observations': [{'identifier': 'n07742313, apple', 'confidence': 0.92}, {'identifier': 'banana', 'confidence': 0.81}]},
        )
    assert response.status_code == 200
    result = response.json()['result']
    assert [(item['name'], item['calories'], item['portion_size']) for item in result['items']] == [
        ('Apple', 52, '100g'),
        ('Banana', 89, '100g'),
    ]
    assert result['total_calories'] == 141
    assert result['items_description'] == 'Apple, Banana'


def test_resolve_without_food_is_not_an_error():
    with TestClient(app) as client:
        response = client.post('/resolve', json={'observations': [{'identifier': 'laptop', 'confidence': 0.95}]})
    assert response.status_code == 200
    result = response.json()['result']
    assert result['is_food'] is False
    assert result['items'] == []
    assert result['message'] == 'no food detected'


def test_resolve_validates_confidence_range():
    with TestClient(app) as client:
        response = client.post('/resolve', json={'observations': [{'identifier': 'apple', 'confidence': 1.5}]})
    assert response.status_code == 422


def test_session_analyze_state_and_reset():
    image_bytes = make_test_image_bytes()
    with TestClient(app) as client:
        analyzed = client.post('/sessions/phone-1/analyze', files={'image': ('test.jpg', image_bytes, 'image/jpeg')})
        state = client.get('/sessions/phone-1').json()
        reset = client.post('/sessions/phone-1/reset').json()

    assert analyzed.status_code == 200
    assert state['is_processing'] is False
    assert state['result']['total_calories'] == analyzed.json()['result']['total_calories']
    assert reset['result'] is None
    assert reset['error_message'] is None


def test_session_keeps_error_message():
    with TestClient(app) as client:
        failed = client.post('/sessions/phone-2/analyze', files={'image': ('test.jpg', b'garbage', 'image/jpeg')})
        state = client.get('/sessions/phone-2').json()
    assert failed.status_code == 400
    assert state['error_message'] == 'cannot process image'
    assert state['result'] is None


def test_unknown_session_is_not_found_and_not_created():
    with TestClient(app) as client:
        responses = [client.get(f'/sessions/ghost-{index}') for index in range(5)]
        reset = client.post('/sessions/ghost-0/reset')
        stored = len(app.state.sessions)

    assert {response.status_code for response in responses} == {404}
    assert responses[0].json()['error'] == 'SESSION_NOT_FOUND'
    assert responses[0].json()['details'] == {'session_id': 'ghost-0'}
    assert reset.status_code == 404
    assert stored == 0
