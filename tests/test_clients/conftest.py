"""Client-specific test fixtures: raw API response objects and subprocess results."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest


@pytest.fixture
def mock_releases_response() -> MagicMock:
    """A GitHub releases response mixing stable, prerelease, draft and chart-only tags."""
    response = MagicMock()
    response.status_code = 200
    response.json.return_value = [
        {"tag_name": "v1.5.0", "prerelease": False, "draft": False},
        {"tag_name": "v1.5.0-rc.1", "prerelease": True, "draft": False},
        {"tag_name": "v1.4.1", "prerelease": False, "draft": False},
        {"tag_name": "v1.6.0", "prerelease": False, "draft": True},
        {"tag_name": "karpenter-chart-1.4.0", "prerelease": False, "draft": False},
        {"tag_name": "1.0.8", "prerelease": False, "draft": False},
    ]
    return response


@pytest.fixture
def helm_list_output() -> str:
    """JSON printed by `helm list --all-namespaces --output json`."""
    return json.dumps(
        [
            {
                "name": "ingress-nginx",
                "namespace": "ingress",
                "chart": "ingress-nginx-4.10.0",
                "app_version": "1.10.0",
                "status": "deployed",
            },
            {
                "name": "karpenter",
                "namespace": "kube-system",
                "chart": "karpenter-1.0.8",
                "app_version": "v1.0.8",
                "status": "deployed",
            },
        ]
    )
