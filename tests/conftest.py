"""
pytest 설정 및 공용 fixture.

설치된 다른 버전의 gdm_deploy 보다 현재 레포 소스를 먼저 import 하도록 repo root 를 sys.path 최상단에 둔다.
gcloud 호출은 모두 fake_gcloud 로 대체해 실제 프로세스를 띄우지 않는다.
"""

from __future__ import annotations

import json
import os
import sys
from typing import List

import pytest


def pytest_configure() -> None:
    repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    if repo_root not in sys.path:
        sys.path.insert(0, repo_root)


@pytest.fixture
def sa_token() -> str:
    return json.dumps(
        {
            "type": "service_account",
            "project_id": "token-project",
            "client_email": "deployer@token-project.iam.gserviceaccount.com",
        }
    )


@pytest.fixture
def fake_gcloud(monkeypatch: pytest.MonkeyPatch) -> List[list[str]]:
    """활성화/배포 명령을 실행하지 않고 argv 만 기록한다."""
    from gdm_deploy import gcp_auth, gcp_deployment_manager
    from gdm_deploy.subprocess_utils import RunResult

    recorded: List[list[str]] = []

    def fake_run(cmd: list[str]) -> RunResult:
        recorded.append(list(cmd))
        return RunResult(returncode=0)

    monkeypatch.setattr(gcp_auth, "run_command", fake_run)
    monkeypatch.setattr(gcp_deployment_manager, "run_command", fake_run)
    return recorded
