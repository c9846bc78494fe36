from __future__ import annotations

from pathlib import Path
from typing import Callable, List

import pytest

from gdm_deploy import gcp_auth, gcp_deployment_manager, pipeline
from gdm_deploy.config import ExecutionParameters
from gdm_deploy.errors import (
    CommandError,
    CredentialActivationError,
    DeploymentExecutionError,
    MissingRequiredParameter,
    TemplateRenderError,
)
from gdm_deploy.subprocess_utils import RunResult


MakeParams = Callable[..., ExecutionParameters]


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    (tmp_path / ".gdm.yml").write_text("replicas: {{.replicas}}\nname: {{.name}}")
    return tmp_path


@pytest.fixture
def make_params(workdir: Path, sa_token: str) -> MakeParams:
    def _make(**overrides) -> ExecutionParameters:
        values = {
            "deployment": "dep1",
            "token": sa_token,
            "gcloud_cmd": "gcloud",
            "key_file": str(workdir / "gcloud.json"),
            "vars": {"name": "svc", "replicas": 3},
        }
        values.update(overrides)
        return ExecutionParameters(**values)

    return _make


def test_dry_run_never_executes_deploy(
    workdir: Path,
    make_params: MakeParams,
    fake_gcloud: List[list[str]],
    capsys: pytest.CaptureFixture[str],
) -> None:
    invocation = pipeline.execute(make_params(dry_run=True))

    assert not invocation.executed
    # 서비스 계정 활성화만 실행되고 deployment-manager 는 실행되지 않는다.
    assert len(fake_gcloud) == 1
    assert fake_gcloud[0][1:3] == ["auth", "activate-service-account"]
    assert (workdir / ".drone-gdm.yml").read_text() == "replicas: 3\nname: svc"
    assert not (workdir / "gcloud.json").exists()

    out = capsys.readouterr().out
    assert "+ gcloud --project token-project deployment-manager deployments update dep1" in out


def test_full_run_executes_deploy(workdir: Path, make_params: MakeParams, fake_gcloud: List[list[str]]) -> None:
    invocation = pipeline.execute(make_params(project="proj1", preview=True))

    assert invocation.executed
    assert fake_gcloud[-1] == [
        "gcloud",
        "--project",
        "proj1",
        "deployment-manager",
        "deployments",
        "update",
        "dep1",
        "--config",
        ".drone-gdm.yml",
        "--preview",
    ]
    assert not (workdir / "gcloud.json").exists()


def test_key_file_removed_after_deploy_failure(
    workdir: Path, make_params: MakeParams, monkeypatch: pytest.MonkeyPatch
) -> None:
    key_seen: List[bool] = []

    def activate_ok(cmd: list[str]) -> RunResult:
        key_seen.append(Path(cmd[-1]).exists())
        return RunResult(returncode=0)

    def deploy_fails(cmd: list[str]) -> RunResult:
        raise CommandError("exit=1", cmd=cmd, returncode=1)

    monkeypatch.setattr(gcp_auth, "run_command", activate_ok)
    monkeypatch.setattr(gcp_deployment_manager, "run_command", deploy_fails)

    with pytest.raises(DeploymentExecutionError):
        pipeline.execute(make_params())

    assert key_seen == [True]
    assert not (workdir / "gcloud.json").exists()


def test_activation_failure_stops_pipeline(
    workdir: Path, make_params: MakeParams, monkeypatch: pytest.MonkeyPatch
) -> None:
    def activate_fails(cmd: list[str]) -> RunResult:
        raise CommandError("exit=1", cmd=cmd, returncode=1)

    def deploy_never(cmd: list[str]) -> RunResult:
        pytest.fail("활성화 실패 후 배포가 실행되면 안 된다")

    monkeypatch.setattr(gcp_auth, "run_command", activate_fails)
    monkeypatch.setattr(gcp_deployment_manager, "run_command", deploy_never)

    with pytest.raises(CredentialActivationError):
        pipeline.execute(make_params())

    assert not (workdir / ".drone-gdm.yml").exists()
    assert not (workdir / "gcloud.json").exists()


def test_missing_variable_stops_before_deploy(
    workdir: Path, make_params: MakeParams, fake_gcloud: List[list[str]]
) -> None:
    with pytest.raises(TemplateRenderError):
        pipeline.execute(make_params(vars={"name": "svc"}))

    assert len(fake_gcloud) == 1
    assert not (workdir / ".drone-gdm.yml").exists()
    assert not (workdir / "gcloud.json").exists()


def test_resolution_failure_touches_nothing(
    workdir: Path, make_params: MakeParams, fake_gcloud: List[list[str]]
) -> None:
    with pytest.raises(MissingRequiredParameter):
        pipeline.execute(make_params(deployment=""))

    assert fake_gcloud == []
    assert not (workdir / "gcloud.json").exists()


def test_verbose_dumps_vars_and_config(
    make_params: MakeParams,
    fake_gcloud: List[list[str]],
    capsys: pytest.CaptureFixture[str],
) -> None:
    pipeline.execute(make_params(dry_run=True, verbose=True))

    out = capsys.readouterr().out
    assert "---START VARS---" in out
    assert "---START DEPLOYMENT CONFIGURATION---\nreplicas: 3\nname: svc\n" in out
