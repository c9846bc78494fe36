import os
import sys

import click

from . import __version__
from .config import (
    DEFAULT_ACTION,
    DEFAULT_CONFIG_TEMPLATE,
    DEFAULT_KEY_FILE,
    DEFAULT_OUTPUT_FILE,
    load_env_file,
    params_from_mapping,
    parse_vars,
)
from .errors import GdmDeployError
from .logging_utils import get_logger, setup_logging
from .pipeline import execute


logger = get_logger(__name__)

REVISION = os.getenv("GDM_DEPLOY_REVISION", "[unknown]")


@click.command(name="gdm-deploy")
@click.version_option(f"{__version__}-{REVISION}", prog_name="gdm plugin")
@click.option("--action", envvar="PLUGIN_ACTION", default=DEFAULT_ACTION, show_default=True,
              help="gcloud pass-through (create/update/delete ...)")
@click.option("--async", "async_", envvar="PLUGIN_ASYNC", is_flag=True, help="gcloud pass-through")
@click.option("--config-template", envvar="PLUGIN_CONFIG_TEMPLATE", default=DEFAULT_CONFIG_TEMPLATE,
              show_default=True, help="배포 설정 템플릿 경로 (작업 디렉토리 기준)")
@click.option("--create-policy", envvar="PLUGIN_CREATE_POLICY", default="", help="gcloud pass-through")
@click.option("--delete-policy", envvar="PLUGIN_DELETE_POLICY", default="", help="gcloud pass-through")
@click.option("--deployment", envvar="PLUGIN_DEPLOYMENT", default="", help="gcloud pass-through")
@click.option("--description", envvar="PLUGIN_DESCRIPTION", default="", help="gcloud pass-through")
@click.option("--dry-run", "dry_run", envvar="PLUGIN_DRY_RUN", is_flag=True,
              help="마지막 gcloud deployment-manager 명령을 실행하지 않습니다.")
@click.option("--gcloud-cmd", envvar="PLUGIN_GCLOUD_CMD", default="",
              help="gcloud 실행 파일 경로 (로컬 테스트용)")
@click.option("--output-file", envvar="PLUGIN_OUTPUT_FILE", default=DEFAULT_OUTPUT_FILE, show_default=True,
              help="렌더링된 설정 파일 경로")
@click.option("--key-file", envvar="PLUGIN_KEY_FILE", default=DEFAULT_KEY_FILE, show_default=True,
              help="서비스 계정 키를 임시로 쓸 경로")
@click.option("--preview", envvar="PLUGIN_PREVIEW", is_flag=True, help="gcloud pass-through")
@click.option("--project", envvar="PLUGIN_PROJECT", default="", help="gcloud pass-through")
@click.option("--vars", "vars_json", envvar="PLUGIN_VARS", default="", help="템플릿 변수 (JSON 객체)")
@click.option("--verbose", envvar="PLUGIN_VERBOSE", is_flag=True,
              help="렌더링된 템플릿 등 자세한 출력")
@click.option("--token", envvar="TOKEN", default="", help="서비스 계정 JSON")
def run(vars_json: str, verbose: bool, **options: object) -> None:
    """GCP Deployment Manager 배포용 drone 플러그인"""
    setup_logging(verbose)

    try:
        variables = parse_vars(vars_json)
        params = params_from_mapping({**options, "vars": variables, "verbose": verbose})
        execute(params)
    except GdmDeployError as e:
        logger.debug("실행 실패", exc_info=True)
        click.echo(f"[ERROR] {e}", err=True)
        sys.exit(1)


def main() -> None:
    # 플래그 해석 전에 env 파일부터 로드해야 envvar 기본값에 반영된다.
    load_env_file(os.getenv("PLUGIN_ENV_FILE"))
    run()


if __name__ == "__main__":
    main()
