"""
Doris FE REST client for light schema change.

Two calls make up one schema change:
1. GET  /api/enable_light_schema_change/<db>/<table>  - capability check
2. POST /api/query/default_cluster/<db>                - execute the ALTER

Both succeed only on HTTP 2xx with a JSON body whose "code" is "0".
"""

import json
import logging
import random
import time
from typing import Any, Dict, List, Optional

import requests
from requests.auth import HTTPBasicAuth

from dorisclient import metrics
from dorisclient.config import DorisOptions
from dorisclient.exceptions import DorisConfigException

logger = logging.getLogger(__name__)

CHECK_SCHEMA_CHANGE_API = 'http://{endpoint}/api/enable_light_schema_change/{database}/{table}'
SCHEMA_CHANGE_API = 'http://{endpoint}/api/query/default_cluster/{database}'
SUCCESS_CODE = '0'
CHECK_PARAM_KEYS = frozenset(('isDropColumn', 'columnName'))


def parse_endpoints(fenodes: Optional[str]) -> List[str]:
    """Split a comma-separated FE node list, dropping blanks."""
    return [node.strip() for node in (fenodes or '').split(',') if node.strip()]


def random_endpoint(fenodes: Optional[str]) -> str:
    """
    Pick one FE endpoint at random.

    Args:
        fenodes: Comma-separated 'host:port' list

    Raises:
        DorisConfigException: If no endpoint is configured
    """
    nodes = parse_endpoints(fenodes)
    if not nodes:
        raise DorisConfigException(f"fenodes is empty or invalid: {fenodes!r}")
    endpoint = random.choice(nodes)
    logger.debug(f"Selected Doris FE endpoint {endpoint}")
    return endpoint


class DorisRestClient:
    """
    HTTP client for the Doris FE schema change APIs.

    Every request opens its own requests.Session, closed on all exit paths.
    No retries: a call succeeds, is refused, or fails, and the caller decides.
    """

    def __init__(self, options: DorisOptions):
        self.options = options
        self.timeout = options.request_timeout

    def check_schema_change(self, database: str, table: str, params: Dict[str, Any]) -> bool:
        """
        Ask Doris whether the column change can be applied as a light schema change.

        Args:
            database: Doris database
            table: Doris table
            params: {"isDropColumn": bool, "columnName": str}

        Returns:
            bool: True if light schema change is enabled for this change
        """
        if len(params) != 2 or set(params) != CHECK_PARAM_KEYS:
            logger.warning(f"Invalid schema change check params {params}, refusing")
            return False

        url = CHECK_SCHEMA_CHANGE_API.format(
            endpoint=random_endpoint(self.options.fenodes),
            database=database,
            table=table,
        )
        success = self._handle_response('check_schema_change', 'GET', url, params)
        if not success:
            logger.warning(f"schema change can not do table {database}.{table}")
        return success

    def execute_schema_change(self, database: str, ddl: str) -> bool:
        """
        Execute an ALTER statement on Doris.

        Args:
            database: Doris database the statement runs in
            ddl: ALTER TABLE statement

        Returns:
            bool: True if Doris accepted the statement
        """
        url = SCHEMA_CHANGE_API.format(
            endpoint=random_endpoint(self.options.fenodes),
            database=database,
        )
        return self._handle_response(
            'execute_schema_change', 'POST', url, {'stmt': ddl},
            headers={'Content-Type': 'application/json'},
        )

    def _handle_response(
        self,
        api: str,
        method: str,
        url: str,
        payload: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None
    ) -> bool:
        """
        Send one request and apply the Doris response contract.

        Returns:
            bool: True on HTTP 2xx with code "0"; False otherwise, including
            transport errors
        """
        start_time = time.time()
        try:
            with requests.Session() as session:
                response = session.request(
                    method,
                    url,
                    data=json.dumps(payload),
                    headers=headers,
                    auth=HTTPBasicAuth(self.options.username, self.options.password),
                    timeout=self.timeout,
                )
                logger.debug(f"method: {method}, url: {url}, status: {response.status_code}")

                if not 200 <= response.status_code < 300:
                    logger.error(
                        f"Request failed: {method} {url} - Status: {response.status_code} - {response.text}"
                    )
                    return False

                try:
                    body = response.json()
                except ValueError:
                    logger.error(f"Doris returned a non-JSON response: {response.text}")
                    return False

                code = str(body.get('code', '-1')) if isinstance(body, dict) else '-1'
                if code == SUCCESS_CODE:
                    return True

                logger.error(f"schema change response: {response.text}")
                return False

        except requests.exceptions.Timeout:
            logger.error(f"Request timeout after {self.timeout} seconds: {method} {url}")
            return False
        except requests.exceptions.RequestException as e:
            logger.error(f"http request error: {method} {url} - {e}")
            return False
        finally:
            metrics.doris_request_duration.labels(api=api).observe(time.time() - start_time)
