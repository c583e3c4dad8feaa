"""Per-tenant kustomize overlays for downstream services.

A service's overlay is its base manifests plus four tenant-specific
pieces: the published image, the ingress path, the ingress host and the
namespace service account. Patches are JSON 6902 operations against the
service's base Deployment and Ingress.
"""

import asyncio
import shutil
from pathlib import Path
from typing import Any

import structlog
import yaml

from provisioner.modules.catalog import ServiceDefinition
from provisioner.modules.identity import identity_name


logger = structlog.get_logger()

KUSTOMIZATION_FILE = "kustomization.yaml"
PATH_PATCH_FILE = "path-patch.yaml"
HOST_PATCH_FILE = "host-patch.yaml"
SERVICE_ACCOUNT_PATCH_FILE = "svc-acc-patch.yaml"


def split_image(image: str) -> tuple[str, str]:
    """Split ``registry/name:tag`` into name and tag (``latest`` if absent)."""
    name, sep, tag = image.rpartition(":")
    if not sep or "/" in tag:
        return image, "latest"
    return name, tag


def render_overlay(
    service: ServiceDefinition,
    tenant_id: str,
    api_host: str,
    base: str = "../base",
) -> dict[str, Any]:
    """Render a service's overlay for one tenant.

    Returns:
        Mapping of overlay file name to document
    """
    image_name, image_tag = split_image(service.image)
    return {
        KUSTOMIZATION_FILE: {
            "apiVersion": "kustomize.config.k8s.io/v1beta1",
            "kind": "Kustomization",
            "namespace": tenant_id,
            "resources": [base],
            "images": [
                {
                    "name": service.backend_service,
                    "newName": image_name,
                    "newTag": image_tag,
                }
            ],
            "patches": [
                {"path": PATH_PATCH_FILE, "target": {"kind": "Ingress"}},
                {"path": HOST_PATCH_FILE, "target": {"kind": "Ingress"}},
                {"path": SERVICE_ACCOUNT_PATCH_FILE, "target": {"kind": "Deployment"}},
            ],
        },
        PATH_PATCH_FILE: [
            {
                "op": "replace",
                "path": "/spec/rules/0/http/paths/0/path",
                "value": f"/{tenant_id}/{service.url_prefix}",
            }
        ],
        HOST_PATCH_FILE: [
            {"op": "replace", "path": "/spec/rules/0/host", "value": api_host}
        ],
        SERVICE_ACCOUNT_PATCH_FILE: [
            {
                "op": "replace",
                "path": "/spec/template/spec/serviceAccountName",
                "value": identity_name(tenant_id),
            }
        ],
    }


def write_overlay(directory: Path, files: dict[str, Any]) -> Path:
    """Write rendered overlay files into ``directory``, replacing old ones."""
    directory.mkdir(parents=True, exist_ok=True)
    for name, document in files.items():
        content = yaml.safe_dump(document, default_flow_style=False, sort_keys=False)
        (directory / name).write_text(content)
    return directory


def remove_overlay(directory: Path) -> bool:
    if not directory.exists():
        return False
    shutil.rmtree(directory)
    return True


class KubectlApplier:
    """Applies or deletes an overlay with ``kubectl -k``."""

    def __init__(self, kubectl: str = "kubectl") -> None:
        self.kubectl = kubectl

    async def apply(self, directory: Path, namespace: str) -> None:
        await self._run("apply", directory, namespace)

    async def delete(self, directory: Path, namespace: str) -> None:
        await self._run("delete", directory, namespace, "--ignore-not-found")

    async def _run(self, verb: str, directory: Path, namespace: str, *extra: str) -> None:
        proc = await asyncio.create_subprocess_exec(
            self.kubectl,
            verb,
            "-k",
            str(directory),
            "-n",
            namespace,
            *extra,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await proc.communicate()
        if proc.returncode != 0:
            raise RuntimeError(
                f"kubectl {verb} failed ({proc.returncode}): {stderr.decode().strip()}"
            )
        logger.debug("kubectl_output", verb=verb, output=stdout.decode().strip())
