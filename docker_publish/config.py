from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


DEFAULT_REGISTRY = "gcr.io"
DEFAULT_DOCKERFILE = "Dockerfile"
DEFAULT_CONTEXT = "."
DEFAULT_TAG = "latest"

# Username for JSON-key service account logins
LOGIN_USERNAME = "_json_key"

DOCKER_BINARY = "/usr/bin/docker"
DOCKERD_BINARY = "/usr/bin/dockerd"

READY_ATTEMPTS = 3
READY_INTERVAL_SECONDS = 5.0


@dataclass
class SaveParams:
    """Post-push archive settings (the "save" block)"""
    destination: str = ""
    tags: List[str] = None

    def __post_init__(self):
        if self.tags is None:
            self.tags = []


@dataclass
class PluginParams:
    """Raw plugin parameters exactly as the pipeline supplied them"""
    registry: str = ""
    storage_driver: str = ""
    token: str = ""
    repo: str = ""
    tags: List[str] = None
    file: str = ""
    context: str = ""
    load: str = ""
    save: SaveParams = None

    def __post_init__(self):
        if self.tags is None:
            self.tags = []
        if self.save is None:
            self.save = SaveParams()


@dataclass
class RuntimeSettings:
    """Values provided by the invoking pipeline rather than by the step parameters"""
    workspace: str = ""
    commit: str = ""
    launch_debug: bool = False
    docker_binary: str = DOCKER_BINARY
    dockerd_binary: str = DOCKERD_BINARY
    ready_attempts: int = READY_ATTEMPTS
    ready_interval: float = READY_INTERVAL_SECONDS
    dry_run: bool = False


@dataclass(frozen=True)
class EffectiveConfig:
    """Normalized configuration; read-only for the rest of the run"""
    registry: str
    repository: str
    auth_token: str = field(repr=False)
    tags: Tuple[str, ...]
    dockerfile_path: str
    build_context: str
    commit_ref: str
    workspace: str
    load_archive_path: Optional[str] = None
    save_archive_path: Optional[str] = None
    save_archive_tags: Tuple[str, ...] = ()
    storage_driver: Optional[str] = None

    def tag_reference(self, tag: str) -> str:
        """Full reference for a tag; "latest" maps to the bare repository"""
        if tag == DEFAULT_TAG:
            return self.repository
        return f"{self.repository}:{tag}"

    def save_references(self) -> List[str]:
        """References written to the save archive"""
        if self.save_archive_tags:
            return [f"{self.repository}:{tag}" for tag in self.save_archive_tags]
        return [self.repository]

    def redacted(self) -> Dict[str, Any]:
        """Printable view with the credential masked"""
        return {
            "registry": self.registry,
            "repository": self.repository,
            "auth_token": "******" if self.auth_token else "",
            "tags": list(self.tags),
            "dockerfile_path": self.dockerfile_path,
            "build_context": self.build_context,
            "commit_ref": self.commit_ref,
            "workspace": self.workspace,
            "load_archive_path": self.load_archive_path,
            "save_archive_path": self.save_archive_path,
            "save_archive_tags": list(self.save_archive_tags),
            "storage_driver": self.storage_driver,
        }
