import json
import sys
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, TextIO

import yaml

from docker_publish.config import PluginParams, SaveParams


@dataclass
class PluginPayload:
    """Step parameters plus the pipeline values that came with them"""
    params: PluginParams
    workspace: Optional[str] = None
    commit: Optional[str] = None


def _str_list(value: Any, field_name: str) -> List[str]:
    """Accept either a single string or a list of strings"""
    if value is None or value == "":
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        if any(item is None or isinstance(item, (dict, list)) for item in value):
            raise ValueError(f"'{field_name}' entries must be strings")
        return [str(item) for item in value]
    raise ValueError(f"'{field_name}' must be a string or a list of strings")


def _str(value: Any, field_name: str) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        raise ValueError(f"'{field_name}' must be a string")
    return str(value)


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"'{name}' must be a mapping")
    return section


class ParamsParser:
    def parse_yaml(self, file_path: str) -> PluginPayload:
        """Parse a YAML parameters file"""
        with open(file_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
        return self._parse_dict(data)

    def parse_json(self, file_path: str) -> PluginPayload:
        """Parse a JSON parameters file"""
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return self._parse_dict(data)

    def parse_stream(self, stream: TextIO = None) -> PluginPayload:
        """Parse a payload piped on stdin (JSON is valid YAML)"""
        data = yaml.safe_load((stream or sys.stdin).read())
        return self._parse_dict(data)

    def parse_file(self, file_path: str) -> PluginPayload:
        if file_path == "-":
            return self.parse_stream()
        if file_path.lower().endswith((".yml", ".yaml")):
            return self.parse_yaml(file_path)
        return self.parse_json(file_path)

    def _parse_dict(self, data: Dict[str, Any]) -> PluginPayload:
        """Convert a payload mapping into PluginPayload.

        Two shapes are accepted: the pipeline payload with ``workspace``,
        ``build`` and ``vargs`` sections, or the bare ``vargs`` mapping.
        """
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError("parameters must be a mapping")

        workspace = None
        commit = None
        vargs = data
        if "vargs" in data:
            vargs = data.get("vargs") or {}
            workspace = _str(_section(data, "workspace").get("path"), "workspace.path") or None
            commit = _str(_section(data, "build").get("commit"), "build.commit") or None
        if not isinstance(vargs, dict):
            raise ValueError("'vargs' must be a mapping")

        save_data = vargs.get("save") or {}
        if not isinstance(save_data, dict):
            raise ValueError("'save' must be a mapping")
        save = SaveParams(
            destination=_str(save_data.get("destination"), "save.destination"),
            tags=_str_list(save_data.get("tag"), "save.tag"),
        )

        params = PluginParams(
            registry=_str(vargs.get("registry"), "registry"),
            storage_driver=_str(vargs.get("storage_driver"), "storage_driver"),
            token=_str(vargs.get("token"), "token"),
            repo=_str(vargs.get("repo"), "repo"),
            tags=_str_list(vargs.get("tag"), "tag"),
            file=_str(vargs.get("file"), "file"),
            context=_str(vargs.get("context"), "context"),
            load=_str(vargs.get("load"), "load"),
            save=save,
        )
        return PluginPayload(params=params, workspace=workspace, commit=commit)
