"""
HTTP client for the ClickHouse analytics store.

Every query is an HTTPS POST of the raw query text:
- basic authentication
- Content-Type: text/plain
- TLS peer verification always on
- explicit timeout (a timeout is reported as StoreError)

No retries. Callers that want retry/backoff wrap execute().
"""

import json
import logging
from typing import Dict, List, Optional, Union

import requests
from requests.auth import HTTPBasicAuth

from clicktrack_app.config import AnalyticsStoreConfig
from clicktrack_app.exceptions import ParseError, StoreError
from .query import Query


logger = logging.getLogger(__name__)


def parse_json_each_row(body: str) -> List[Dict]:
    """
    Parse a JSONEachRow response: one JSON object per non-empty line.

    Raises:
        ParseError: If any line is not a JSON object
    """
    rows = []
    for line in body.strip().split("\n"):
        line = line.strip()
        if not line:
            continue
        try:
            row = json.loads(line)
        except json.JSONDecodeError as e:
            raise ParseError(f"Malformed JSONEachRow line: {e}", line=line) from e
        if not isinstance(row, dict):
            raise ParseError("JSONEachRow line is not an object", line=line)
        rows.append(row)
    return rows


class ClickHouseClient:
    """
    Synchronous ClickHouse HTTP client.

    Args:
        config: Connection details (host, port, credentials, timeout)
        session: Optional requests.Session (injected in tests)
    """

    def __init__(self, config: AnalyticsStoreConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()
        self.auth = HTTPBasicAuth(config.username, config.password)

    @property
    def url(self) -> str:
        return self.config.url

    def execute(self, query: Union[Query, str]) -> str:
        """
        Send one query and return the response body.

        Args:
            query: A Query (rendered here) or already-rendered query text

        Returns:
            Response body: empty for writes, JSONEachRow text for reads

        Raises:
            StoreError: On a non-2xx response or any transport failure
        """
        name = query.name if isinstance(query, Query) else "raw"
        text = query.render() if isinstance(query, Query) else query

        try:
            response = self.session.post(
                self.url,
                data=text.encode("utf-8"),
                auth=self.auth,
                headers={
                    "Content-Type": "text/plain; charset=utf-8",
                    "X-ClickHouse-Database": self.config.database,
                },
                timeout=self.config.timeout,
                verify=self.config.ca_bundle or True,
            )
        except requests.Timeout as e:
            raise StoreError(f"ClickHouse query '{name}' timed out after {self.config.timeout}s") from e
        except requests.RequestException as e:
            raise StoreError(f"ClickHouse query '{name}' transport error: {e}") from e

        if not 200 <= response.status_code < 300:
            raise StoreError(
                f"ClickHouse query '{name}' failed with HTTP {response.status_code}: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        logger.debug("ClickHouse query '%s' succeeded", name)
        return response.text

    def select(self, query: Union[Query, str]) -> List[Dict]:
        """Run a JSONEachRow read query and return its rows"""
        return parse_json_each_row(self.execute(query))

    def ping(self) -> bool:
        """Check the store answers a trivial query"""
        try:
            self.execute("SELECT 1")
            return True
        except StoreError as e:
            logger.warning("ClickHouse ping failed: %s", e)
            return False
