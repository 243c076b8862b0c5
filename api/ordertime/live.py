"""
/api/ordertime/live.py - Live inventory from OrderTime's REST API

Vercel Serverless Function

GET /api/ordertime/live
GET /api/ordertime/live?location=PHL&binPrefix=C-05&qtygt=0

Query params:
- location: keep balances at this location name (exact match)
- binPrefix: keep rows whose bin starts with this
- qtygt: keep rows with quantity strictly greater than this (default 0)

Returns:
    {"rows": [{"item", "serial", "expiration", "qty", "cost", "bin"}]}
"""

from http.server import BaseHTTPRequestHandler
import json
import logging
from urllib.parse import urlparse, parse_qs

from .client import OrderTimeClient
from .config import LiveConfig
from .errors import ConfigurationError
from .inventory import get_live_inventory
from .normalize import to_number


logger = logging.getLogger(__name__)


class handler(BaseHTTPRequestHandler):
    """Vercel serverless function handler"""

    transport = None

    def _send_json(self, status: int, payload: dict, headers: dict = None):
        self.send_response(status)
        self.send_header('Content-Type', 'application/json')
        self.send_header('Access-Control-Allow-Origin', '*')
        for name, value in (headers or {}).items():
            self.send_header(name, value)
        self.end_headers()
        self.wfile.write(json.dumps(payload).encode())

    def do_GET(self):
        """GET /api/ordertime/live - Joined inventory rows"""
        try:
            # Parse query params
            parsed = urlparse(self.path)
            params = parse_qs(parsed.query)
            location = params.get('location', [None])[0]
            bin_prefix = params.get('binPrefix', [None])[0]
            qtygt = to_number(params.get('qtygt', ['0'])[0])

            config = LiveConfig.from_env()

            with OrderTimeClient(live=config, transport=self.transport) as client:
                rows = get_live_inventory(
                    client,
                    qtygt=qtygt,
                    bin_prefix=bin_prefix,
                    location=location,
                )

            self._send_json(
                200,
                {'rows': [row.to_dict() for row in rows]},
                {'Cache-Control': 'no-store'},
            )

        except ConfigurationError as e:
            logger.error("Live endpoint misconfigured: %s", e)
            payload = {'error': str(e)}
            if 'have_base_url' in e.flags:
                payload['haveBaseUrl'] = e.flags['have_base_url']
                payload['haveKey'] = e.flags['have_key']
            self._send_json(500, payload)

        except Exception as e:
            logger.exception("Live endpoint failed")
            self._send_json(500, {'error': str(e)})

    def do_OPTIONS(self):
        """Handle CORS preflight"""
        self.send_response(200)
        self.send_header('Access-Control-Allow-Origin', '*')
        self.send_header('Access-Control-Allow-Methods', 'GET, OPTIONS')
        self.send_header('Access-Control-Allow-Headers', 'Content-Type')
        self.end_headers()
