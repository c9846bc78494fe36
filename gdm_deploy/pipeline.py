"""
pipeline
--------

한 번의 플러그인 실행 흐름:

    Start → Resolved → CredentialActivated → TemplateRendered → {DryRunDone | Executed}

어느 단계에서든 예외가 나면 나머지 단계는 실행하지 않고 그대로 전파한다. 재시도는 없다.
"""

from __future__ import annotations

import enum

from .config import ExecutionParameters, resolve_params
from .gcp_auth import activate_service_account, credential_file
from .gcp_deployment_manager import CommandInvocation, deploy
from .logging_utils import get_logger
from .template import dump_data, dump_file, interpolate_template


logger = get_logger(__name__)


class Stage(enum.Enum):
    START = "start"
    RESOLVED = "resolved"
    CREDENTIAL_ACTIVATED = "credential_activated"
    TEMPLATE_RENDERED = "template_rendered"
    DRY_RUN_DONE = "dry_run_done"
    EXECUTED = "executed"


def _enter(stage: Stage) -> None:
    logger.debug("단계: %s", stage.value)


def execute(params: ExecutionParameters) -> CommandInvocation:
    _enter(Stage.START)
    if params.verbose:
        dump_data("VARS", params.vars)

    p = resolve_params(params)
    _enter(Stage.RESOLVED)
    logger.debug("파라미터: %r", p)

    with credential_file(p.token, p.key_file) as key_path:
        activate_service_account(p, key_path)
        _enter(Stage.CREDENTIAL_ACTIVATED)

        output = interpolate_template(p)
        _enter(Stage.TEMPLATE_RENDERED)

        if p.verbose:
            dump_file("DEPLOYMENT CONFIGURATION", output)

        invocation = deploy(p)

    _enter(Stage.EXECUTED if invocation.executed else Stage.DRY_RUN_DONE)
    return invocation
