"""
gdm_deploy
----------

Drone 파이프라인 스텝용 GCP Deployment Manager 배포 패키지.
설정 템플릿을 변수로 렌더링한 뒤, 서비스 계정을 활성화하고
`gcloud deployment-manager deployments <action>` 을 한 번 실행한다.
"""

__version__ = "1.0.0"

__all__ = [
    "config",
    "pipeline",
]
