#!/usr/bin/env python3
"""Render the tinc configuration bundle of a node without starting containers."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[2]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from tinc_provider.config import DEFAULT_PORT, DEFAULT_SUBNET, MeshRole  # noqa: E402
from tinc_provider.mesh import MeshConfigGenerator, peer_list, resolve_identity  # noqa: E402
from tinc_provider.resolver import load_config_source, resolve  # noqa: E402


LOG = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--provider-config",
        type=Path,
        default=None,
        help="JSON/YAML file mapping node names to provider settings",
    )
    parser.add_argument(
        "--node-name",
        default="vk-tinc",
        help="Node whose settings are rendered",
    )
    parser.add_argument(
        "--role",
        choices=[role.value for role in MeshRole],
        default=MeshRole.MAIN.value,
        help="Mesh role to render the bundle for",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("deploy/tinc"),
        help="Directory under which the per-node bundle is written",
    )
    parser.add_argument("--subnet", default=DEFAULT_SUBNET)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    config = resolve(load_config_source(args.provider_config), args.node_name)
    identity = resolve_identity(config, MeshRole(args.role))

    generator = MeshConfigGenerator(
        subnet=args.subnet, port=args.port, artifact_root=args.output_dir
    )
    bundle = generator.generate(config, identity, peer_list(config, identity))
    bundle.write()

    for artifact in bundle.artifacts:
        LOG.info("%s -> %s", artifact.host_path, artifact.container_path)


if __name__ == "__main__":
    main()
