"""End-to-end tests for the /api/ordertime serverless handlers."""

import httpx
import pytest

from api.ordertime import live, report

from .conftest import list_transport, serve


# ---------------------------------------------------------------------------
# /api/ordertime/report
# ---------------------------------------------------------------------------


class TestReportHandler:

    @pytest.fixture(autouse=True)
    def _env(self, monkeypatch):
        monkeypatch.setenv('OT_REPORT_URL', 'https://ot.example.com/report.csv')
        monkeypatch.setenv('OT_BEARER_TOKEN', 'tok')

    def test_csv_report(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, text='Item,Qty,Bin\nWidget,10,A1\n')
        )

        with serve(report.handler, transport) as url:
            response = httpx.get(url)

        assert response.status_code == 200
        assert response.headers['Cache-Control'] == 's-maxage=30, stale-while-revalidate=300'
        assert response.json() == {'rows': [{
            'item': 'Widget',
            'serial': '',
            'expiration': '',
            'qty': 10,
            'cost': None,
            'bin': 'A1',
        }]}

    def test_json_report(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=[
            {'SKU': 'W-1', 'Lot/Serial': 'L9', 'Quantity': '1,500', 'Unit Cost': '2.5', 'Loc': 'B2'},
        ]))

        with serve(report.handler, transport) as url:
            rows = httpx.get(url).json()['rows']

        assert rows == [{
            'item': 'W-1',
            'serial': 'L9',
            'expiration': '',
            'qty': 1500,
            'cost': 2.5,
            'bin': 'B2',
        }]

    def test_upstream_failure_is_502(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(401, text='denied ' * 100))

        with serve(report.handler, transport) as url:
            response = httpx.get(url)

        assert response.status_code == 502
        body = response.json()
        assert body['error'] == 'OrderTime fetch failed: 401'
        assert len(body['body']) == 400

    def test_missing_url_is_500(self, monkeypatch):
        monkeypatch.delenv('OT_REPORT_URL')

        with serve(report.handler) as url:
            response = httpx.get(url)

        assert response.status_code == 500
        assert response.json() == {'error': 'OT_REPORT_URL is not set'}

    def test_transport_error_is_500(self):
        def respond(request):
            raise httpx.ConnectError('connection refused', request=request)

        with serve(report.handler, httpx.MockTransport(respond)) as url:
            response = httpx.get(url)

        assert response.status_code == 500
        assert 'connection refused' in response.json()['error']


# ---------------------------------------------------------------------------
# /api/ordertime/live
# ---------------------------------------------------------------------------


COLLECTIONS = {
    'InventoryBalance': [
        {'Id': 1, 'OnHand': 5, 'ItemRef': {'Id': 1}, 'BinRef': {'Id': 100}, 'LocationRef': {'Name': 'PHL'}},
        {'Id': 2, 'OnHand': 6, 'ItemRef': {'Id': 1}, 'LotOrSerialRef': {'Id': 10}, 'BinRef': {'Id': 100}, 'LocationRef': {'Name': 'PHL'}},
        {'Id': 3, 'OnHand': 9, 'ItemRef': {'Id': 2}, 'BinRef': {'Id': 101}, 'LocationRef': {'Name': 'NYC'}},
    ],
    'LotOrSerialNo': [{'Id': 10, 'LotOrSerialNumber': 'SN-1', 'ExpirationDate': '2027-01-01'}],
    'PartItem': [{'Id': 1, 'Name': 'Widget', 'StandardCost': 3}, {'Id': 2, 'Name': 'Gadget'}],
    'Bin': [{'Id': 100, 'Name': 'C-05-01'}, {'Id': 101, 'Name': 'D-02-01'}],
}


class TestLiveHandler:

    @pytest.fixture(autouse=True)
    def _env(self, monkeypatch):
        monkeypatch.setenv('OT_BASE_URL', 'https://ot.example.com/api')
        monkeypatch.setenv('OT_API_KEY', 'secret-key')

    def test_all_rows(self):
        with serve(live.handler, list_transport(COLLECTIONS)) as url:
            response = httpx.get(url)

        assert response.status_code == 200
        assert response.headers['Cache-Control'] == 'no-store'
        assert response.headers['Access-Control-Allow-Origin'] == '*'
        assert [r['qty'] for r in response.json()['rows']] == [5, 6, 9]

    def test_query_filters(self):
        with serve(live.handler, list_transport(COLLECTIONS)) as url:
            response = httpx.get(url, params={'qtygt': '5', 'binPrefix': 'C-05', 'location': 'PHL'})

        assert response.json() == {'rows': [{
            'item': 'Widget',
            'serial': 'SN-1',
            'expiration': '2027-01-01',
            'qty': 6,
            'cost': 3,
            'bin': 'C-05-01',
        }]}

    def test_missing_envs(self, monkeypatch):
        monkeypatch.delenv('OT_API_KEY')

        with serve(live.handler) as url:
            response = httpx.get(url)

        assert response.status_code == 500
        assert response.headers['Access-Control-Allow-Origin'] == '*'
        assert response.json() == {'error': 'Missing envs', 'haveBaseUrl': True, 'haveKey': False}

    def test_upstream_failure_is_500(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(400, text='Unknown type'))

        with serve(live.handler, transport) as url:
            response = httpx.get(url)

        assert response.status_code == 500
        assert response.json() == {'error': 'OT /list InventoryBalance 400: Unknown type'}

    def test_auth_exhausted_is_500(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(401, text='Unauthorized'))

        with serve(live.handler, transport) as url:
            response = httpx.get(url)

        assert response.status_code == 500
        assert 'auth failed' in response.json()['error']


def test_options_preflight():
    with serve(live.handler) as url:
        response = httpx.options(url)

    assert response.status_code == 200
    assert response.headers['Access-Control-Allow-Methods'] == 'GET, OPTIONS'


def test_json_report_keeps_zero_cost(monkeypatch):
    monkeypatch.setenv('OT_REPORT_URL', 'https://ot.example.com/report.json')
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, json=[{'Item': 'A', 'Qty': 1, 'Cost': 0}])
    )

    with serve(report.handler, transport) as url:
        rows = httpx.get(url).json()['rows']

    assert rows[0]['cost'] == 0
