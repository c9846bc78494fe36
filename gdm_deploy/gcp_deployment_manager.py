from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from .config import ExecutionParameters
from .errors import CommandError, DeploymentExecutionError
from .logging_utils import get_logger
from .subprocess_utils import RunResult, run_command, trace


logger = get_logger(__name__)


@dataclass(frozen=True)
class CommandInvocation:
    args: List[str]
    result: Optional[RunResult] = None

    @property
    def executed(self) -> bool:
        return self.result is not None


def build_deploy_args(params: ExecutionParameters) -> List[str]:
    """
    gcloud 에 넘길 인자 목록 (실행 파일 제외).

    선택 플래그 순서는 preview, async, create-policy, delete-policy, description 으로 고정한다.
    description 만 `--description=<값>` 형태로 붙인다.
    """
    args = [
        "--project",
        params.project,
        "deployment-manager",
        "deployments",
        params.action,
        params.deployment,
        "--config",
        params.output_file,
    ]

    if params.preview:
        args.append("--preview")

    if params.async_:
        args.append("--async")

    if params.create_policy:
        args.extend(["--create-policy", params.create_policy])

    if params.delete_policy:
        args.extend(["--delete-policy", params.delete_policy])

    if params.description:
        args.append(f"--description={params.description}")

    return args


def deploy(params: ExecutionParameters) -> CommandInvocation:
    """
    deployment-manager 명령을 출력(trace)하고, dry_run 이 아니면 실행한다.
    """
    cmd = [params.gcloud_cmd, *build_deploy_args(params)]
    trace(cmd)

    if params.dry_run:
        logger.info("dry-run: deployment-manager 명령을 실행하지 않습니다.")
        return CommandInvocation(args=cmd)

    try:
        result = run_command(cmd)
    except CommandError as e:
        raise DeploymentExecutionError(f"배포를 업데이트할 수 없습니다: {e}") from e

    logger.info("배포 %s 완료: %s", params.action, params.deployment)
    return CommandInvocation(args=cmd, result=result)
