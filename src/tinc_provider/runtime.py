"""Idempotent container lifecycle over the docker CLI."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from .config import DEFAULT_DOCKER_BINARY, MeshIdentity
from .exceptions import RuntimeFailure

LOG = logging.getLogger(__name__)

NO_SUCH_CONTAINER = "No such container"


def container_name(identity: MeshIdentity) -> str:
    """Return the name of the container backing ``identity``."""

    return identity.name


class RuntimeDriver:
    """Drive the mesh container through the container runtime CLI.

    Every call blocks until the CLI returns.  ``timeout`` bounds the wait;
    on expiry the CLI process is killed and :class:`RuntimeFailure` is raised,
    but the runtime daemon may still carry the request out.
    """

    def __init__(
        self,
        binary: str = DEFAULT_DOCKER_BINARY,
        timeout: Optional[float] = None,
    ) -> None:
        self._binary = binary
        self._timeout = timeout

    def _run(
        self, args: List[str], timeout: Optional[float]
    ) -> Tuple[List[str], subprocess.CompletedProcess]:
        cmd = [self._binary, *args]
        LOG.debug("Executing: %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                check=False,
                text=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                timeout=timeout if timeout is not None else self._timeout,
            )
        except subprocess.TimeoutExpired as exc:
            output = exc.output or ""
            if isinstance(output, bytes):
                output = output.decode(errors="replace")
            raise RuntimeFailure(cmd, output=output, cause=exc) from exc
        except OSError as exc:
            raise RuntimeFailure(cmd, cause=exc) from exc
        return cmd, result

    def ensure_absent(self, name: str, *, timeout: Optional[float] = None) -> None:
        """Force-remove container ``name``; a missing container is success."""

        cmd, result = self._run(["rm", "--force", name], timeout)
        if result.returncode == 0:
            LOG.debug("container %s removed", name)
            return
        if NO_SUCH_CONTAINER in (result.stdout or ""):
            LOG.debug("container %s already absent", name)
            return
        LOG.error("Failed to remove container %s: %s", name, (result.stdout or "").strip())
        raise RuntimeFailure(cmd, output=result.stdout or "", returncode=result.returncode)

    def ensure_running(
        self,
        name: str,
        image: str,
        mounts: Iterable[Tuple[Path, Path]],
        *,
        privileged: bool = True,
        detached: bool = True,
        timeout: Optional[float] = None,
    ) -> None:
        """Start ``image`` as container ``name`` with the given bind mounts.

        Callers are expected to :meth:`ensure_absent` first; a name clash with
        an existing container makes the runtime refuse the start.
        """

        args = ["run"]
        if privileged:
            args.append("--privileged")
        args.append(f"--name={name}")
        if detached:
            args.append("--detach")
        args.append("--rm")
        args.extend(f"--volume={host}:{container}" for host, container in mounts)
        args.append(image)

        cmd, result = self._run(args, timeout)
        if result.returncode != 0:
            LOG.error("Failed to start container %s: %s", name, (result.stdout or "").strip())
            raise RuntimeFailure(cmd, output=result.stdout or "", returncode=result.returncode)
        LOG.info("container %s running (%s)", name, (result.stdout or "").strip()[:12])
