"""
YAML reading and writing for local state files.
"""

from pathlib import Path
from typing import Any, Optional

import yaml

from schemactl.errors import ConfigError


def read_yaml(path: Path) -> Any:
    """
    Load a YAML file.

    Raises:
        ConfigError: If the file is not valid YAML
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax in {path}: {e}") from e


def dump_yaml(data: Any, comment: Optional[str] = None, space_entries: bool = False) -> str:
    """
    Serialize data to YAML, preserving key order.

    Args:
        data: Mapping to serialize
        comment: Text emitted as a "# " comment block before the document
        space_entries: Put a blank line between consecutive entries of
            second-level mappings (schemas in the config, snapshots in
            the manifest)
    """
    text = yaml.safe_dump(data, sort_keys=False, indent=2, allow_unicode=True, default_flow_style=False)
    if space_entries:
        text = _space_second_level_entries(text)
    if comment:
        header = "\n".join(f"# {line}".rstrip() for line in comment.splitlines())
        text = f"{header}\n{text}"
    return text


def write_yaml(path: Path, data: Any, comment: Optional[str] = None, space_entries: bool = False) -> None:
    path.write_text(dump_yaml(data, comment=comment, space_entries=space_entries), encoding="utf-8")


def _space_second_level_entries(text: str) -> str:
    lines = text.splitlines()
    result: list[str] = []
    previous_indent = 0
    for line in lines:
        indent = len(line) - len(line.lstrip(" "))
        is_entry = indent == 2 and not line.lstrip().startswith("- ")
        if is_entry and previous_indent > 2:
            result.append("")
        result.append(line)
        previous_indent = indent
    return "\n".join(result) + "\n"
