import os
from typing import Optional

from docker_publish.config import (
    DEFAULT_CONTEXT,
    DEFAULT_DOCKERFILE,
    DEFAULT_REGISTRY,
    DEFAULT_TAG,
    EffectiveConfig,
    PluginParams,
)


def qualify_repository(repo: str, registry: str) -> str:
    """Prefix ``namespace/name`` style repositories with the registry host.

    Only repositories with exactly one '/' are rewritten. Anything else is
    returned untouched, so a self-hosted ``host/name`` reference is qualified a
    second time; callers pass fully-qualified names with two or more segments.
    """
    if repo.count("/") == 1:
        return f"{registry}/{repo}"
    return repo


def resolve_archive_path(path: str, workspace: str) -> Optional[str]:
    """Absolute archive path, or None when no archive was requested"""
    if not path:
        return None
    if os.path.isabs(path):
        return path
    return os.path.normpath(os.path.join(workspace, path))


def normalize(params: PluginParams, workspace: str, commit: str) -> EffectiveConfig:
    """Apply defaults and path resolution to the raw step parameters.

    Never fails: absent values are replaced by defaults and invalid ones are
    left for the docker commands to reject.
    """
    registry = params.registry or DEFAULT_REGISTRY
    tags = tuple(params.tags) if params.tags else (DEFAULT_TAG,)
    save = params.save

    return EffectiveConfig(
        registry=registry,
        repository=qualify_repository(params.repo, registry),
        auth_token=params.token.strip(),
        tags=tags,
        dockerfile_path=params.file or DEFAULT_DOCKERFILE,
        build_context=params.context or DEFAULT_CONTEXT,
        commit_ref=commit,
        workspace=workspace,
        load_archive_path=resolve_archive_path(params.load, workspace),
        save_archive_path=resolve_archive_path(save.destination, workspace),
        save_archive_tags=tuple(save.tags),
        storage_driver=params.storage_driver or None,
    )
