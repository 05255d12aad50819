import json
import uuid
import pytest
from concurrent.futures import ThreadPoolExecutor

import scoring
from app import create_app, SCORE_STORE_EXTENSION, PAGE_NOT_FOUND
from store import ScoreStore

valid_receipts = {
    json.dumps({
        "retailer": "Target",
        "purchaseDate": "2022-01-01",
        "purchaseTime": "13:01",
        "items": [
            {
                "shortDescription": "Mountain Dew 12PK",
                "price": "6.49"
            }, {
                "shortDescription": "Emils Cheese Pizza",
                "price": "12.25"
            }, {
                "shortDescription": "Knorr Creamy Chicken",
                "price": "1.26"
            }, {
                "shortDescription": "Doritos Nacho Cheese",
                "price": "3.35"
            }, {
                "shortDescription": "   Klarbrunn 12-PK 12 FL OZ  ",
                "price": "12.00"
            }
        ],
        "total": "35.35"
    }): 28,
    json.dumps({
        "retailer": "M&M Corner Market",
        "purchaseDate": "2022-03-20",
        "purchaseTime": "14:33",
        "items": [
            {
                "shortDescription": "Gatorade",
                "price": "2.25"
            }, {
                "shortDescription": "Gatorade",
                "price": "2.25"
            }, {
                "shortDescription": "Gatorade",
                "price": "2.25"
            }, {
                "shortDescription": "Gatorade",
                "price": "2.25"
            }
        ],
        "total": "9.00"
    }): 109,
    json.dumps({
        "retailer": "Walgreens",
        "purchaseDate": "2022-01-02",
        "purchaseTime": "08:13",
        "total": "2.65",
        "items": [
            {"shortDescription": "Pepsi - 12-oz", "price": "1.25"},
            {"shortDescription": "Dasani", "price": "1.40"}
        ]
    }): 15,
    json.dumps({
        "retailer": "Target",
        "purchaseDate": "2022-01-02",
        "purchaseTime": "13:13",
        "total": "1.25",
        "items": [
            {"shortDescription": "Pepsi - 12-oz", "price": "1.25"}
        ]
    }): 31
}

text_receipt_attributes = ["retailer", "purchaseDate", "purchaseTime"]


@pytest.fixture
def store():
    return ScoreStore()


@pytest.fixture
def app(store):
    app = create_app(store)
    app.config['DEBUG'] = True
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def simple_receipt_skeleton():
    return {
        "retailer": "Target",
        "purchaseDate": "2022-01-02",
        "purchaseTime": "13:13",
        "total": "1.25",
        "items": [
            {"shortDescription": "Pepsi - 12-oz", "price": "1.25"}
        ]
    }


def post_receipt(client, receipt):
    return client.post('/receipts/process', content_type='application/json', data=json.dumps(receipt))


def test_process_valid_receipts(client):
    for test_json, expected_points in valid_receipts.items():
        expected = {"points": expected_points}
        process_response = client.post('/receipts/process', content_type='application/json', data=test_json)
        assert process_response.status_code == 200
        receipt_id = json.loads(process_response.data)["id"]
        uuid.UUID(receipt_id)
        get_response = client.get(f'/receipts/{receipt_id}/points')
        assert get_response.status_code == 200
        assert expected == json.loads(get_response.data)


def test_process_receipts_unique_ids(client, simple_receipt_skeleton):
    receipt_ids = []
    for i in range(10):
        process_response = post_receipt(client, simple_receipt_skeleton)
        receipt_ids.append(json.loads(process_response.data)["id"])
    assert len(set(receipt_ids)) == len(receipt_ids)


def test_process_receipt_without_content_type(client, simple_receipt_skeleton):
    process_response = client.post('/receipts/process', data=json.dumps(simple_receipt_skeleton))
    assert process_response.status_code == 200
    receipt_id = json.loads(process_response.data)["id"]
    assert json.loads(client.get(f'/receipts/{receipt_id}/points').data) == {"points": 31}


def test_process_receipts_malformed_json(client, store):
    for body in ['{"retailer": "Target"', 'not json', '', '[]', '"Target"']:
        process_response = client.post('/receipts/process', content_type='application/json', data=body)
        assert process_response.status_code == 400
        assert "error" in json.loads(process_response.data)
    assert len(store) == 0


def test_process_receipts_invalid_json_message(client):
    process_response = client.post('/receipts/process', content_type='application/json', data='not json')
    assert json.loads(process_response.data) == {"error": "Error: receipt body is not valid JSON"}


def test_process_receipt_null_body_scores_zero(client):
    process_response = client.post('/receipts/process', content_type='application/json', data='null')
    assert process_response.status_code == 200
    receipt_id = json.loads(process_response.data)["id"]
    assert json.loads(client.get(f'/receipts/{receipt_id}/points').data) == {"points": 0}


def test_process_receipt_large_exponent_total(client, simple_receipt_skeleton):
    # 6 retailer points + 75 for a whole, quarter-multiple total
    simple_receipt_skeleton["total"] = "1e30"
    process_response = post_receipt(client, simple_receipt_skeleton)
    assert process_response.status_code == 200
    receipt_id = json.loads(process_response.data)["id"]
    assert json.loads(client.get(f'/receipts/{receipt_id}/points').data) == {"points": 81}


def test_process_receipts_out_of_range_amounts(client, store, simple_receipt_skeleton):
    for price in ["1e999999999", "-1e999999999", "1e309"]:
        simple_receipt_skeleton["items"][0] = {"shortDescription": "abc", "price": price}
        process_response = post_receipt(client, simple_receipt_skeleton)
        assert process_response.status_code == 400
        assert json.loads(process_response.data) == {"error": f"Error: invalid price ({price})"}
    assert len(store) == 0


def test_process_receipts_invalid_text_attribute_formats(client, store, simple_receipt_skeleton):
    invalid_elements = [[], 25, 3.88, {}, True]
    for attribute in text_receipt_attributes:
        original = simple_receipt_skeleton[attribute]
        expected = {"error": f"Error: invalid {attribute} format"}
        for elem in invalid_elements:
            simple_receipt_skeleton[attribute] = elem
            process_response = post_receipt(client, simple_receipt_skeleton)
            assert process_response.status_code == 400
            assert json.loads(process_response.data) == expected
        simple_receipt_skeleton[attribute] = original
    assert len(store) == 0


def test_process_receipts_invalid_items_format(client, simple_receipt_skeleton):
    invalid_elements = [25, 3.88, {}, ""]
    expected = {"error": "Error: invalid receipt items list format"}
    for elem in invalid_elements:
        simple_receipt_skeleton["items"] = elem
        process_response = post_receipt(client, simple_receipt_skeleton)
        assert process_response.status_code == 400
        assert json.loads(process_response.data) == expected


def test_process_receipts_invalid_item_formats(client, simple_receipt_skeleton):
    invalid_elements = [None, 25, 3.88, [], ""]
    expected = {"error": "Error: invalid receipt item format"}
    for elem in invalid_elements:
        simple_receipt_skeleton["items"][0] = elem
        process_response = post_receipt(client, simple_receipt_skeleton)
        assert process_response.status_code == 400
        assert json.loads(process_response.data) == expected


def test_process_receipts_non_string_amounts(client, simple_receipt_skeleton):
    for elem in [25, 3.88, [], {}]:
        simple_receipt_skeleton["total"] = elem
        process_response = post_receipt(client, simple_receipt_skeleton)
        assert process_response.status_code == 400
        assert json.loads(process_response.data) == {"error": "Error: invalid total format"}


def test_process_receipts_unparsable_amounts(client, simple_receipt_skeleton):
    for price in ["test", "", "1.2.3", "NaN", "Infinity"]:
        simple_receipt_skeleton["items"][0]["price"] = price
        process_response = post_receipt(client, simple_receipt_skeleton)
        assert process_response.status_code == 400
        assert json.loads(process_response.data) == {"error": f"Error: invalid price ({price})"}


def test_process_receipts_invalid_date_and_time_score_nothing(client, simple_receipt_skeleton):
    # 31 points for the skeleton never include date or time bonuses
    for date, time in [("test", "99:13"), ("2023-15-15", "13:99"), ("", ""), (None, None)]:
        simple_receipt_skeleton["purchaseDate"] = date
        simple_receipt_skeleton["purchaseTime"] = time
        process_response = post_receipt(client, simple_receipt_skeleton)
        assert process_response.status_code == 200
        receipt_id = json.loads(process_response.data)["id"]
        assert json.loads(client.get(f'/receipts/{receipt_id}/points').data) == {"points": 31}


def test_process_receipt_missing_fields(client):
    process_response = post_receipt(client, {})
    assert process_response.status_code == 200
    receipt_id = json.loads(process_response.data)["id"]
    assert json.loads(client.get(f'/receipts/{receipt_id}/points').data) == {"points": 0}


def test_process_receipt_scoring_error(client, store, simple_receipt_skeleton, monkeypatch):
    monkeypatch.setattr(scoring, "RETAILER_NAME_FILTER", "[")
    process_response = post_receipt(client, simple_receipt_skeleton)
    assert process_response.status_code == 400
    assert json.loads(process_response.data)["error"].startswith("Error: cannot build retailer name filter")
    assert len(store) == 0


def test_get_points_nonexistent_id(client):
    res = client.get('/receipts/test/points')
    assert res.status_code == 404
    expected = {'error': 'ERROR: receipt id not found (test)'}
    assert json.loads(res.data) == expected


def test_get_points_random_unused_id(client):
    receipt_id = str(uuid.uuid4())
    res = client.get(f'/receipts/{receipt_id}/points')
    assert res.status_code == 404


def test_get_points_malformed_id(client):
    for path in ['/receipts/a_b/points', '/receipts/a%20b/points']:
        res = client.get(path)
        assert res.status_code == 404
        assert res.data.decode() == PAGE_NOT_FOUND


def test_unknown_paths_and_methods(client):
    assert client.get('/').status_code == 404
    assert client.get('/receipts').status_code == 404
    assert client.get('/receipts/process').status_code == 404
    assert client.put('/receipts/process').status_code == 404
    for path in ['/receipts/process', '/receipts/test/points']:
        res = client.options(path)
        assert res.status_code == 404
        assert res.data.decode() == PAGE_NOT_FOUND
    res = client.post('/receipts/test/points')
    assert res.status_code == 404
    assert res.data.decode() == PAGE_NOT_FOUND


def test_apps_do_not_share_stores(client, simple_receipt_skeleton):
    receipt_id = json.loads(post_receipt(client, simple_receipt_skeleton).data)["id"]
    other_client = create_app().test_client()
    assert other_client.get(f'/receipts/{receipt_id}/points').status_code == 404


def test_injected_store_is_used(app, client, store, simple_receipt_skeleton):
    assert app.extensions[SCORE_STORE_EXTENSION] is store
    receipt_id = json.loads(post_receipt(client, simple_receipt_skeleton).data)["id"]
    assert store.get(receipt_id) == 31


def test_get_points_idempotency(client, simple_receipt_skeleton):
    process_response = post_receipt(client, simple_receipt_skeleton)
    receipt_id = json.loads(process_response.data)["id"]
    for i in range(5):
        get_response = client.get(f'/receipts/{receipt_id}/points')
        assert get_response.status_code == 200
        assert json.loads(get_response.data)["points"] == 31


def test_process_receipts_concurrency(client, store, simple_receipt_skeleton):
    params = [simple_receipt_skeleton] * 3000

    def test_post(json_param):
        return client.post('/receipts/process', content_type='application/json', json=json_param).get_json()["id"]

    with ThreadPoolExecutor(max_workers=50) as pool:
        receipt_ids = list(pool.map(test_post, params))
    assert len(set(receipt_ids)) == 3000
    assert len(store) == 3000
    assert all(store.get(receipt_id) == 31 for receipt_id in receipt_ids)


def test_get_points_concurrency(client, simple_receipt_skeleton):
    process_response = post_receipt(client, simple_receipt_skeleton)
    receipt_id = json.loads(process_response.data)["id"]
    params = [receipt_id] * 3000

    def test_get(id_param):
        return client.get(f'/receipts/{id_param}/points').get_json()

    with ThreadPoolExecutor(max_workers=50) as pool:
        results = list(pool.map(test_get, params))
    assert all(result == {"points": 31} for result in results)
