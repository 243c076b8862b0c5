"""
OrderTime API Integration

Two ways to get inventory out of OrderTime:

1. Report export: GET a saved report URL that returns CSV or JSON.
2. REST list API: POST {base_url}/list with an entity type and page.

List request body:
    {
        "Type": "InventoryBalance",
        "PageNumber": 1,
        "NumberOfRecords": 500,
        "Filters": [],
        "Sortation": {"PropertyName": "Id", "Direction": 1}
    }

Response: {"Records": [...]} or a bare list.

Authentication for /list isn't documented for every tenant, so the
client tries a few header styles in order and moves on only when the
response looks like an auth rejection.
"""

import base64
import json
import logging
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import httpx

from .config import DEFAULT_TIMEOUT, LiveConfig, ReportConfig
from .csv_parser import parse_csv
from .errors import AuthExhaustedError, UpstreamFetchError


logger = logging.getLogger(__name__)

# Safety cap for endpoints that never return a short page
MAX_PAGES = 200

DEFAULT_SORT = {'PropertyName': 'Id', 'Direction': 1}

AUTH_FAILURE_PATTERN = re.compile(
    r'incorrect api key|unauthorized|forbidden|invalid token',
    re.IGNORECASE,
)


# ============================================================
# AUTH STRATEGIES
# ============================================================

@dataclass
class AuthScheme:
    """One way of presenting credentials to OrderTime"""
    name: str
    headers: dict


def basic_auth_header(user: str, password: str) -> str:
    token = base64.b64encode(f"{user}:{password}".encode()).decode()
    return f"Basic {token}"


def build_auth_schemes(config: LiveConfig) -> list[AuthScheme]:
    """
    Header styles to try against /list, in order.

    Basic auth is only attempted when both OT_BASIC_USER and
    OT_BASIC_PASS are set.
    """
    key = config.api_key
    schemes = [
        AuthScheme('bearer', {'Authorization': f"Bearer {key}"}),
        AuthScheme('ApiKey', {'ApiKey': key}),
        AuthScheme('X-API-KEY', {'X-API-KEY': key}),
        AuthScheme('x-api-key', {'x-api-key': key}),
    ]
    if config.basic_user and config.basic_pass:
        schemes.append(AuthScheme(
            'basic',
            {'Authorization': basic_auth_header(config.basic_user, config.basic_pass)},
        ))
    return schemes


def is_auth_failure(response: httpx.Response) -> bool:
    """
    Decide whether a failed /list call should fall through to the
    next auth scheme.

    OrderTime doesn't use a consistent status code for bad credentials,
    so this matches on the response text.
    """
    return bool(AUTH_FAILURE_PATTERN.search(response.text or ''))


def report_auth_headers(config: ReportConfig) -> dict:
    """Bearer token wins over basic credentials; neither means no header."""
    if config.bearer_token:
        return {'Authorization': f"Bearer {config.bearer_token}"}
    if config.basic_user and config.basic_pass:
        return {'Authorization': basic_auth_header(config.basic_user, config.basic_pass)}
    return {}


def parse_report_body(raw: str) -> list[dict]:
    """
    Turn a report export into records.

    JSON is tried first; if it doesn't parse or isn't a list, the same
    text is read as CSV.
    """
    try:
        data = json.loads(raw)
    except ValueError:
        data = None

    if isinstance(data, list):
        return [r for r in data if isinstance(r, dict)]

    return parse_csv(raw)


def extract_records(data) -> list:
    """Page payload is either {"Records": [...]} or a bare list."""
    if isinstance(data, dict) and isinstance(data.get('Records'), list):
        return data['Records']
    if isinstance(data, list):
        return data
    return []


# ============================================================
# CLIENT
# ============================================================

class OrderTimeClient:
    """
    Client for OrderTime's report export and /list API.

    Usage:
        config = LiveConfig.from_env()
        with OrderTimeClient(live=config) as client:
            balances = client.list_all(config.types['inventory'])
    """

    def __init__(
        self,
        report: ReportConfig = None,
        live: LiveConfig = None,
        transport: httpx.BaseTransport = None,
    ):
        self.report = report
        self.live = live

        config = live or report
        timeout = config.timeout if config else DEFAULT_TIMEOUT
        self._http = httpx.Client(timeout=timeout, transport=transport)

    def close(self):
        self._http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    # ------------------------------------------------------------
    # Report export
    # ------------------------------------------------------------

    def fetch_report(self) -> list[dict]:
        """
        Download the configured report and return its rows as dicts.

        Raises:
            UpstreamFetchError: non-2xx response (body truncated to 400 chars)
        """
        if self.report is None:
            raise ValueError("OrderTimeClient was created without a ReportConfig")

        response = self._http.get(
            self.report.report_url,
            headers=report_auth_headers(self.report),
        )

        if not response.is_success:
            logger.warning("Report fetch failed with status %s", response.status_code)
            raise UpstreamFetchError(response.status_code, response.text)

        records = parse_report_body(response.text)
        logger.info("Report returned %d records", len(records))
        return records

    # ------------------------------------------------------------
    # /list API
    # ------------------------------------------------------------

    def list_page(
        self,
        entity_type: str,
        page: int = 1,
        page_size: int = None,
        filters: list = None,
        sort: dict = None,
    ):
        """
        Fetch a single page of an entity type.

        Tries each auth scheme in turn. A rejection that looks like an
        auth problem moves on to the next scheme; anything else fails
        immediately.

        Raises:
            UpstreamFetchError: non-auth failure
            AuthExhaustedError: every scheme was rejected
        """
        if self.live is None:
            raise ValueError("OrderTimeClient was created without a LiveConfig")

        body = {
            'Type': entity_type,
            'PageNumber': page,
            'NumberOfRecords': page_size or self.live.page_size,
            'Filters': filters or [],
            'Sortation': sort or DEFAULT_SORT,
        }

        last_text = ''
        for scheme in build_auth_schemes(self.live):
            headers = {**scheme.headers, 'Content-Type': 'application/json'}
            response = self._http.post(self.live.list_url, headers=headers, json=body)

            if response.is_success:
                logger.debug("OT /list %s page %d accepted %s auth", entity_type, page, scheme.name)
                return response.json()

            last_text = response.text
            if not is_auth_failure(response):
                raise UpstreamFetchError(
                    response.status_code,
                    last_text,
                    message=f"OT /list {entity_type} {response.status_code}: {last_text}",
                )

            logger.warning(
                "OT /list %s rejected %s auth (%s), trying next scheme",
                entity_type, scheme.name, response.status_code,
            )

        raise AuthExhaustedError(entity_type, last_text)

    def list_all(
        self,
        entity_type: str,
        page_size: int = None,
        filters: list = None,
        sort: dict = None,
    ) -> list[dict]:
        """
        Fetch every record of an entity type.

        Pages are read in order until one comes back short, or
        MAX_PAGES is reached.
        """
        if self.live is None:
            raise ValueError("OrderTimeClient was created without a LiveConfig")

        page_size = page_size or self.live.page_size
        records = []

        for page in range(1, MAX_PAGES + 1):
            data = self.list_page(entity_type, page, page_size, filters, sort)
            batch = extract_records(data)
            records.extend(batch)

            if len(batch) < page_size:
                break
        else:
            logger.warning("OT /list %s hit the %d page cap", entity_type, MAX_PAGES)

        logger.info("OT /list %s: %d records", entity_type, len(records))
        return records

    def list_many(self, entity_types: list[str], page_size: int = None) -> list[list[dict]]:
        """
        Fetch several entity types in parallel.

        Results come back in the same order as entity_types.
        """
        with ThreadPoolExecutor(max_workers=max(len(entity_types), 1)) as pool:
            futures = [pool.submit(self.list_all, t, page_size) for t in entity_types]
            return [f.result() for f in futures]


# ============================================================
# CLI TESTING
# ============================================================

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)

    print("=" * 60)
    print("ORDERTIME API CLIENT TEST")
    print("=" * 60)

    config = LiveConfig.from_env()
    print(f"\n  Base URL: {config.base_url}")
    print(f"  API Key: {config.api_key[:4]}...{config.api_key[-4:]}")
    print(f"  Types: {config.types}")

    with OrderTimeClient(live=config) as client:
        page = extract_records(client.list_page(config.types['inventory'], page_size=5))
        print(f"\n  First inventory page: {len(page)} records")
        for record in page:
            print(f"    - {record}")
