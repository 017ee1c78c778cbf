"""Persistence utilities for networks.

Two on-disk formats:

- ``json``: the dict produced by ``Network.to_dict()``
- ``edges``: plain text, one link per line as ``source target [type]``;
  blank lines and lines starting with ``#`` are ignored

Security:
    Paths are resolved to absolute paths and rejected if they contain null
    bytes.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Literal

from .network import Network

FormatType = Literal["json", "edges"]

JSON_SUFFIXES = (".json",)


def _validate_path(path: str | Path) -> Path:
    """Validate and resolve a file path.

    Raises:
        ValueError: If the path contains null bytes
    """
    # Check for null bytes before any path operations (common attack vector)
    if "\x00" in str(path):
        raise ValueError(f"Invalid path (contains null bytes): {str(path)!r}")
    return Path(path).resolve()


def detect_format(path: str | Path) -> FormatType:
    """Guess the file format from the suffix."""
    return "json" if Path(path).suffix.lower() in JSON_SUFFIXES else "edges"


def save_network(
    network: Network,
    path: str | Path,
    format: FormatType | None = None,
) -> None:
    """Save a network to a file.

    Args:
        network: The network to save
        path: Output file path
        format: "json" or "edges"; detected from the suffix if omitted.
            The edge-list format drops node types, properties and isolated
            nodes.

    Raises:
        ValueError: If path is invalid or format is unknown
    """
    validated_path = _validate_path(path)
    format = format or detect_format(validated_path)

    # Ensure parent directory exists
    validated_path.parent.mkdir(parents=True, exist_ok=True)

    if format == "json":
        with open(validated_path, "w", encoding="utf-8") as f:
            json.dump(network.to_dict(), f, indent=2, ensure_ascii=False)
    elif format == "edges":
        with open(validated_path, "w", encoding="utf-8") as f:
            for link in network.links():
                f.write(f"{link.source}\t{link.target}\t{link.type}\n")
    else:
        raise ValueError(f"Unknown format: {format!r}")


def load_network(
    path: str | Path,
    format: FormatType | None = None,
    default_type: str | None = None,
) -> Network:
    """Load a network from a file.

    Args:
        path: Input file path
        format: "json" or "edges"; detected from the suffix if omitted
        default_type: Link type for edge-list lines with only two columns

    Returns:
        Loaded Network

    Raises:
        ValueError: If path is invalid, format is unknown or a line is malformed
        FileNotFoundError: If file does not exist
    """
    validated_path = _validate_path(path)
    format = format or detect_format(validated_path)

    if format == "json":
        with open(validated_path, encoding="utf-8") as f:
            data = json.load(f)
        return Network.from_dict(data)
    elif format == "edges":
        return load_edge_list(validated_path, default_type=default_type)
    else:
        raise ValueError(f"Unknown format: {format!r}")


def load_edge_list(
    path: str | Path,
    default_type: str | None = None,
    network: Network | None = None,
) -> Network:
    """Read ``source target [type]`` lines into a network.

    Args:
        path: Input file path
        default_type: Link type for lines with only two columns
        network: Existing network to extend (a new one by default)

    Raises:
        ValueError: On a line with the wrong number of columns, or a
            two-column line when no default_type is given
    """
    validated_path = _validate_path(path)
    network = network if network is not None else Network()
    with open(validated_path, encoding="utf-8") as f:
        with network.batch():
            for line_no, raw in enumerate(f, start=1):
                line = raw.strip()
                if not line or line.startswith("#"):
                    continue
                fields = line.split()
                if len(fields) == 3:
                    source, target, link_type = fields
                elif len(fields) == 2 and default_type is not None:
                    source, target = fields
                    link_type = default_type
                elif len(fields) == 2:
                    raise ValueError(
                        f"{validated_path.name}:{line_no}: missing link type "
                        "and no default type given"
                    )
                else:
                    raise ValueError(
                        f"{validated_path.name}:{line_no}: expected 'source target [type]', "
                        f"got {len(fields)} fields"
                    )
                try:
                    network.add_link(source, target, link_type)
                except ValueError as exc:
                    raise ValueError(f"{validated_path.name}:{line_no}: {exc}") from exc
    return network
