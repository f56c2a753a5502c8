"""
Sui full node client (JSON-RPC over HTTP).

Only the read side the indexer needs: paged, filtered event queries.

lib: requests

14-10-2026
"""

import abc
import asyncio
import itertools

import requests
from pydantic import ValidationError

from votechain.indexer.events import EventId, EventPage

FULLNODE_URLS = {
    "mainnet": "https://fullnode.mainnet.sui.io:443",
    "testnet": "https://fullnode.testnet.sui.io:443",
    "devnet": "https://fullnode.devnet.sui.io:443",
    "localnet": "http://127.0.0.1:9000",
}


class SuiRpcError(Exception):
    """
    The node could not answer a query (transport error, HTTP error or
    JSON-RPC error object). Always batch-level: nothing was fetched.
    """

    def __init__(self, message: str, code: int | None = None) -> None:
        self.code = code
        super().__init__(message)


def get_fullnode_url(network: str) -> str:
    try:
        return FULLNODE_URLS[network]
    except KeyError:
        raise ValueError("Unknown Sui network: {}".format(network)) from None


def get_event_type(package_id: str, module_name: str, event_name: str) -> str:
    """
    Full Move event type, e.g. "0x123...::vote::EventElectionCreated"
    """
    return "{}::{}::{}".format(package_id, module_name, event_name)


class EventSource(abc.ABC):
    """
    Anything that can answer "events matching `query`, strictly after
    `cursor`, in ledger order".
    """

    @abc.abstractmethod
    async def query_events(
        self, query: dict, cursor: EventId | None = None, limit: int | None = None, descending_order: bool = False
    ) -> EventPage:
        ...

    async def close(self):
        pass


class SuiClient(EventSource):
    """
    Client for a Sui full node. A single instance is shared by all
    trackers; each request runs in a worker thread so a slow node
    only stalls the tracker that issued the call.
    """

    def __init__(self, url: str, timeout: float = 30, session: requests.Session | None = None) -> None:
        self.url = url
        self.timeout = timeout
        self.http = session or requests.Session()
        self._ids = itertools.count(1)

    def _call(self, method: str, params: list):
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        try:
            response = self.http.post(self.url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as e:
            raise SuiRpcError("{} failed: {}".format(method, e)) from e
        except ValueError as e:
            raise SuiRpcError("{} returned a non JSON body".format(method)) from e

        if "error" in body and body["error"] is not None:
            error = body["error"]
            raise SuiRpcError(
                "{} failed: {}".format(method, error.get("message", error)), code=error.get("code")
            )
        if "result" not in body:
            raise SuiRpcError("{} returned no result".format(method))
        return body["result"]

    async def call(self, method: str, params: list):
        return await asyncio.to_thread(self._call, method, params)

    async def query_events(
        self, query: dict, cursor: EventId | None = None, limit: int | None = None, descending_order: bool = False
    ) -> EventPage:
        params = [
            query,
            cursor.to_rpc() if cursor is not None else None,
            limit,
            descending_order,
        ]
        result = await self.call("suix_queryEvents", params)
        try:
            return EventPage.model_validate(result)
        except ValidationError as e:
            raise SuiRpcError("suix_queryEvents returned an unexpected page: {}".format(e)) from e

    async def close(self):
        self.http.close()
