"""
Shared pytest fixtures for ClusterScope tests.

Doubles and payload builders live in helpers.py.
"""

from typing import Optional

import httpx
import pytest

from clusterscope.aggregation.engine import AggregationEngine
from clusterscope.auth.session import Session
from helpers import FakeControlPlane, cluster_api, fetcher_factory


@pytest.fixture
def session() -> Session:
    return Session(
        client_id="00000000-0000-0000-0000-000000000001",
        client_secret="s3cret",
        tenant_id="00000000-0000-0000-0000-0000000000aa",
        subscription_id="00000000-0000-0000-0000-0000000000bb",
    )


@pytest.fixture
def control_plane() -> FakeControlPlane:
    return FakeControlPlane()


@pytest.fixture
def make_engine():
    def build(control_plane: FakeControlPlane,
              transport: Optional[httpx.MockTransport] = None) -> AggregationEngine:
        return AggregationEngine(
            control_plane_factory=control_plane,
            fetcher_factory=fetcher_factory(transport or cluster_api())
        )
    return build
