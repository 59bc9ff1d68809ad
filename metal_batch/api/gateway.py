"""
MetalGateway: authenticated async access to the Metal merchant API.

Four remote operations:
- list merchant tokens
- create token (asynchronous job, returns a job id)
- create liquidity for a token
- fetch raw job status

Error Handling:
    No exception crosses this boundary. Transport errors (httpx.HTTPError,
    an unencodable header, a closed client) and decode errors degrade to the
    sentinel of each return type ([], False, "") and produce one structured
    log line. Batch tasks run detached, so a raised exception would have no
    observer.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, TYPE_CHECKING
from urllib.parse import quote

import httpx

from metal_batch.api.models import Credential, TokenRecord
from metal_batch.infra.codec import decode, encode, get_bool, get_str
from metal_batch.infra.logging_cfg import LOGGER_NAME, log_event

if TYPE_CHECKING:
    from metal_batch.monitoring.metrics_rich import BatchMetrics

log = logging.getLogger(LOGGER_NAME)

DEFAULT_BASE_URL = "https://api.metal.build"
API_KEY_HEADER = "x-api-key"
JSON_CONTENT_TYPE = "application/json"


class MetalGateway:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        liquidity_base_url: Optional[str] = None,
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
        metrics: Optional["BatchMetrics"] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.liquidity_base_url = (liquidity_base_url or base_url).rstrip("/")
        self.metrics = metrics
        # If a shared client is passed in, we won't close it in close(); otherwise we own the client.
        if client is not None:
            self.client = client
            self._owns_client = False
        else:
            self.client = httpx.AsyncClient(http2=True, timeout=timeout)
            self._owns_client = True

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "MetalGateway":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # ========== Operations ==========

    async def list_merchant_tokens(self, credential: Credential, merchant_address: str) -> List[TokenRecord]:
        """
        Tokens owned by ``merchant_address``, in server order.

        The endpoint returns every token visible to the key, so filtering
        happens here. Entries that are not objects, belong to another
        merchant, or lack an address are skipped.
        """
        op = "list_tokens"
        body = await self._request(op, "GET", f"{self.base_url}/merchant/all-tokens", credential)
        if body is None:
            return []

        result = decode(body)
        if not result.ok:
            self._record_error(op, "decode", error=result.error)
            return []
        if not result.is_array:
            self._record_error(op, "decode", error="response is not an array")
            return []

        tokens: List[TokenRecord] = []
        skipped = 0
        for entry in result.value:
            if not isinstance(entry, dict) or get_str(entry, "merchantAddress") != merchant_address:
                continue
            record = TokenRecord.from_wire(entry)
            if record is None:
                skipped += 1
                continue
            tokens.append(record)

        if skipped:
            log_event(log, "token_entries_skipped", level=logging.WARNING, count=skipped)
        log_event(log, "merchant_tokens_listed", level=logging.DEBUG,
                  merchant=merchant_address, count=len(tokens))
        return tokens

    async def create_liquidity(self, credential: Credential, token_address: str) -> bool:
        """True only when the service answers with ``"success": true``."""
        op = "create_liquidity"
        url = f"{self.liquidity_base_url}/token/{quote(token_address, safe='')}/liquidity"
        body = await self._request(op, "POST", url, credential, payload={"tokenAddress": token_address})
        if body is None:
            return False

        result = decode(body)
        if not result.ok:
            self._record_error(op, "decode", error=result.error)
            return False
        if not result.is_object:
            self._record_error(op, "decode", error="response is not an object")
            return False
        return get_bool(result.value, "success")

    async def create_token(
        self,
        credential: Credential,
        name: str,
        symbol: str,
        merchant_address: str,
    ) -> str:
        """
        Submit a token creation job.

        Returns the job id, or "" when the job was not accepted.
        """
        op = "create_token"
        payload: Dict[str, Any] = {
            "name": name,
            "symbol": symbol,
            "merchantAddress": merchant_address,
            "canDistribute": True,
            "canLP": True,
        }
        body = await self._request(op, "POST", f"{self.base_url}/merchant/create-token", credential, payload=payload)
        if body is None:
            return ""

        result = decode(body)
        if not result.ok:
            self._record_error(op, "decode", error=result.error)
            return ""
        if not result.is_object:
            self._record_error(op, "decode", error="response is not an object")
            return ""

        job_id = get_str(result.value, "jobId")
        if not job_id:
            self._record_error(op, "missing_job_id", symbol=symbol)
        return job_id

    async def get_job_status(self, credential: Credential, job_id: str) -> str:
        """Raw status body for ``job_id``; "" on transport failure."""
        if not job_id:
            return ""
        url = f"{self.base_url}/merchant/create-token/status/{quote(job_id, safe='')}"
        body = await self._request("job_status", "GET", url, credential)
        return body or ""

    # ========== Transport ==========

    async def _request(
        self,
        operation: str,
        method: str,
        url: str,
        credential: Credential,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Optional[str]:
        """
        Perform one authenticated request.

        Returns the body text, or None when the request could not complete.
        Non-2xx responses still return their body.
        """
        headers = {API_KEY_HEADER: credential.value}
        content = None
        if payload is not None:
            headers["Content-Type"] = JSON_CONTENT_TYPE
            content = encode(payload)

        start = time.time()
        try:
            resp = await self.client.request(method, url, headers=headers, content=content)
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError, RuntimeError) as exc:
            self._record_error(operation, "transport", error=f"{type(exc).__name__}: {exc}")
            return None

        if self.metrics:
            self.metrics.request_latency_ms.labels(operation=operation).observe((time.time() - start) * 1000)
        if resp.is_error:
            log_event(log, "http_status_error", level=logging.WARNING,
                      operation=operation, status=resp.status_code)
        return resp.text

    def _record_error(self, operation: str, kind: str, **data: Any) -> None:
        if self.metrics:
            self.metrics.gateway_errors.labels(operation=operation, kind=kind).inc()
        log_event(log, "gateway_error", level=logging.WARNING, operation=operation, kind=kind, **data)
