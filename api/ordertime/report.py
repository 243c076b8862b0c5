"""
/api/ordertime/report.py - Inventory from an OrderTime report export

Vercel Serverless Function

GET /api/ordertime/report

Downloads the report at OT_REPORT_URL (CSV or JSON) and returns:
    {"rows": [{"item", "serial", "expiration", "qty", "cost", "bin"}]}
"""

from http.server import BaseHTTPRequestHandler
import json
import logging

from .client import OrderTimeClient
from .config import ReportConfig
from .errors import ConfigurationError, UpstreamFetchError
from .normalize import normalize_records


logger = logging.getLogger(__name__)

CACHE_CONTROL = 's-maxage=30, stale-while-revalidate=300'


def get_report_inventory(client: OrderTimeClient) -> list[dict]:
    """Fetch the report and map every record onto the output shape."""
    records = client.fetch_report()
    return [row.to_dict() for row in normalize_records(records)]


class handler(BaseHTTPRequestHandler):
    """Vercel serverless function handler"""

    transport = None

    def _send_json(self, status: int, payload: dict, headers: dict = None):
        self.send_response(status)
        self.send_header('Content-Type', 'application/json')
        for name, value in (headers or {}).items():
            self.send_header(name, value)
        self.end_headers()
        self.wfile.write(json.dumps(payload).encode())

    def do_GET(self):
        """GET /api/ordertime/report - Normalized rows from the report export"""
        try:
            config = ReportConfig.from_env()

            with OrderTimeClient(report=config, transport=self.transport) as client:
                rows = get_report_inventory(client)

            self._send_json(200, {'rows': rows}, {'Cache-Control': CACHE_CONTROL})

        except ConfigurationError as e:
            logger.error("Report endpoint misconfigured: %s", e)
            self._send_json(500, {'error': str(e)})

        except UpstreamFetchError as e:
            self._send_json(502, {'error': str(e), 'body': e.body})

        except Exception as e:
            logger.exception("Report endpoint failed")
            self._send_json(500, {'error': str(e)})

    def do_OPTIONS(self):
        """Handle CORS preflight"""
        self.send_response(200)
        self.send_header('Access-Control-Allow-Origin', '*')
        self.send_header('Access-Control-Allow-Methods', 'GET, OPTIONS')
        self.send_header('Access-Control-Allow-Headers', 'Content-Type')
        self.end_headers()
