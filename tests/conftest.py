# conftest.py
from collections.abc import Mapping
from typing import Any

import pytest

from index_discovery.config import Settings
from index_discovery.schemas.query import CollectionConfig, NamedQuery, ParamClassification

# Real console links returned by the backend for the admins collection.
ADMINS_LINK_ACTIVE = (
    "https://console.firebase.google.com/u/0/project/liang-dev/firestore/databases/"
    "firestore-demo-api/indexes?create_composite=ClFwcm9qZWN0cy9saWFuZy1kZXYvZGF0YWJhc2VzL2ZpcmVz"
    "dG9yZS1kZW1vLWFwaS9jb2xsZWN0aW9uR3JvdXBzL2FkbWlucy9pbmRleGVzL18QARoNCglkZWxldGVkQXQQARoMCghp"
    "c0FjdGl2ZRABGg0KCWNyZWF0ZWRBdBACGgwKCF9fbmFtZV9fEAI"
)
ADMINS_LINK_DEFAULT = (
    "https://console.firebase.google.com/v1/r/project/liang-dev/firestore/databases/"
    "firestore-demo-api/indexes?create_composite=ClFwcm9qZWN0cy9saWFuZy1kZXYvZGF0YWJhc2VzL2ZpcmVz"
    "dG9yZS1kZW1vLWFwaS9jb2xsZWN0aW9uR3JvdXBzL2FkbWlucy9pbmRleGVzL18QARoNCglkZWxldGVkQXQQARoNCglj"
    "cmVhdGVkQXQQAhoMCghfX25hbWVfXxAC"
)


def encode_varint(value: int) -> bytes:
    """Protobuf varint encoding, for building test payloads."""
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def index_error_message(link: str) -> str:
    """Backend message for a missing index, as the document store words it."""
    return f"9 FAILED_PRECONDITION: The query requires an index. You can create it here: {link}"


class FakeExecutor:
    """Executor returning canned outcomes keyed by (collection, frozen params)."""

    def __init__(self, outcomes: dict[tuple[str, str], Exception | Any] | None = None):
        self.outcomes = outcomes or {}
        self.calls: list[tuple[str, dict[str, Any], int]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    @staticmethod
    def key(collection: str, params: Mapping[str, Any]) -> tuple[str, str]:
        return collection, repr(sorted(params.items()))

    def set(self, collection: str, params: Mapping[str, Any], outcome: Exception | Any) -> None:
        self.outcomes[self.key(collection, params)] = outcome

    async def execute(self, collection: str, params: Mapping[str, Any], limit: int) -> Any:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            self.calls.append((collection, dict(params), limit))
            outcome = self.outcomes.get(self.key(collection, params), {"data": []})
            if isinstance(outcome, Exception):
                raise outcome
            return outcome
        finally:
            self.in_flight -= 1


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def orders_classification() -> ParamClassification:
    return ParamClassification(
        equality=["memberId", "status"],
        range={
            "minCreatedAt": "createdAt",
            "maxCreatedAt": "createdAt",
            "minAmount": "totalAmount",
            "maxAmount": "totalAmount",
        },
    )


@pytest.fixture
def orders_config(orders_classification: ParamClassification) -> CollectionConfig:
    return CollectionConfig(
        collection_name="orders",
        endpoint="/api/admin/orders",
        classification=orders_classification,
        queries=[
            NamedQuery(name="default sort", params={}),
            NamedQuery(
                name="member + status, by amount asc",
                params={
                    "memberId": "m1",
                    "status": "pending",
                    "orderBy": "totalAmount",
                    "order": "asc",
                },
            ),
            NamedQuery(name="min amount", params={"minAmount": 100}),
            NamedQuery(name="broken", params={"status": "bogus"}),
        ],
    )


@pytest.fixture
def test_settings() -> Settings:
    # Settings for the HTTP executor pointed at a fake backend
    return Settings(
        backend_base_url="http://backend.test",
        backend_auth_token="test-token",
        request_timeout=5,
    )
