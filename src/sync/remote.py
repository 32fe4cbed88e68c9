"""HTTP client for the authoritative remote record collection."""

from dataclasses import replace

import httpx
import structlog

from errors import NetworkError, ServerError
from records.models import Origin, Record
from records.schema import RecordSchema, ValidationError, dump_record

from .retry import RetryPolicy, Transient

logger = structlog.get_logger().bind(source="remote")


class RemoteStoreClient:
    """Fetch and push records over a JSON REST endpoint.

    ``GET {base_url}/records`` returns an array of records; ``POST`` of an
    array returns the accepted records with server ids. Transport failures
    map to NetworkError, bad statuses or bodies to ServerError. Transient
    failures (transport, 5xx) are retried a bounded number of times.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        token: str | None = None,
        max_attempts: int = 2,
        min_wait: float = 0.5,
        max_wait: float = 2.0,
        client: httpx.Client | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.client = client or httpx.Client(timeout=timeout, headers=headers)
        self._retry = RetryPolicy(max_attempts=max_attempts, min_wait=min_wait, max_wait=max_wait)

    def close(self):
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def fetch(self, limit: int | None = None) -> list[Record]:
        """Fetch the remote record set.

        Raises:
            NetworkError: transport failure.
            ServerError: non-success status or malformed body.
        """
        params = {"limit": limit} if limit else None
        data = self._request("GET", "/records", params=params)
        records = []
        for item in data:
            parsed = self._parse(item)
            if not parsed.id:
                raise ServerError("Server returned a record without an id")
            record = parsed.to_record(origin=Origin.REMOTE)
            # Server records are known by the server's id
            records.append(replace(record, remote_id=record.remote_id or record.id))
        logger.info("remote.fetched", count=len(records))
        return records

    def push(self, records: list[Record]) -> list[Record]:
        """Push records; returns them updated with server ids and versions.

        Accepted entries are matched to the pushed ones by the echoed
        ``clientId``, or by position when the server does not echo it.
        Records the server did not acknowledge are left out of the result.
        """
        if not records:
            return []
        body = []
        for r in records:
            item = dump_record(r)
            item["clientId"] = r.id
            if r.remote_id:
                item["id"] = r.remote_id
            else:
                item.pop("id", None)
            body.append(item)

        data = self._request("POST", "/records", json=body)
        by_id = {r.id: r for r in records}
        accepted = []
        for position, item in enumerate(data):
            parsed = self._parse(item)
            local = by_id.get(parsed.client_id) if parsed.client_id else None
            if local is None and parsed.client_id is None and position < len(records):
                local = records[position]
            if local is None or not parsed.id:
                logger.warning("remote.push_unmatched", position=position)
                continue
            server = parsed.to_record()
            accepted.append(
                replace(
                    local,
                    version=max(local.version, server.version),
                    last_modified=server.last_modified if parsed.last_modified else local.last_modified,
                    remote_id=server.id,
                )
            )
        logger.info("remote.pushed", sent=len(records), accepted=len(accepted))
        return accepted

    def _request(self, method: str, path: str, **kwargs) -> list:
        return self._retry.call(self._send, method, path, **kwargs)

    def _send(self, method: str, path: str, **kwargs) -> list:
        url = f"{self.base_url}{path}"
        try:
            response = self.client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise Transient(NetworkError(f"Timed out talking to {url}")) from e
        except httpx.RequestError as e:
            raise Transient(NetworkError(f"Could not reach {url}: {e}")) from e

        if response.status_code >= 500:
            raise Transient(
                ServerError(
                    f"{method} {url} failed with {response.status_code}",
                    status_code=response.status_code,
                )
            )
        if not response.is_success:
            raise ServerError(
                f"{method} {url} failed with {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ServerError(f"{method} {url} returned invalid JSON") from e
        if not isinstance(data, list):
            raise ServerError(f"{method} {url} returned {type(data).__name__}, expected array")
        return data

    @staticmethod
    def _parse(item) -> RecordSchema:
        try:
            return RecordSchema.model_validate(item)
        except ValidationError as e:
            raise ServerError(f"Malformed record from server: {e.error_count()} error(s)") from e
