"""Run a unit of work inline or in a fully detached background process."""

from __future__ import annotations

import logging
import os
import sys
from typing import Callable, Optional, TypeVar

from .errors import SpawnFailureError
from .logging import get_logger

T = TypeVar("T")

logger = get_logger("supervisor")


class ProcessSupervisor:
    """Executes work synchronously, or detaches it with a double fork.

    A detached unit of work runs in a grandchild process that has its own
    session, no controlling terminal and standard streams bound to the null
    device. The caller gets control back as soon as the intermediate child
    has exited and never observes the outcome of the work.
    """

    def run(self, detached: bool, work: Callable[[], T]) -> Optional[T]:
        if not detached:
            return work()
        self.spawn(work)
        return None

    def spawn(self, work: Callable[[], object]) -> None:
        if not hasattr(os, "fork") or not hasattr(os, "setsid"):
            raise SpawnFailureError(
                f"Background capture is not supported on this platform ({sys.platform})"
            )

        sys.stdout.flush()
        sys.stderr.flush()

        try:
            pid = os.fork()
        except OSError as exc:
            raise SpawnFailureError(f"Unable to fork background capture: {exc}") from exc

        if pid > 0:
            _, status = os.waitpid(pid, 0)
            if os.WIFEXITED(status) and os.WEXITSTATUS(status) == 0:
                logger.debug("Detached background capture from pid %d", os.getpid())
                return
            raise SpawnFailureError("Unable to detach background capture process")

        # Intermediate child: new session, then fork again so the worker can
        # never reacquire a controlling terminal.
        try:
            os.setsid()
            pid = os.fork()
        except OSError:
            os._exit(1)
        if pid > 0:
            os._exit(0)

        status = 0
        try:
            _redirect_standard_streams()
            work()
        except BaseException:
            logger.exception("Background capture failed")
            status = 1
        finally:
            logging.shutdown()
            os._exit(status)


def _redirect_standard_streams() -> None:
    devnull = os.open(os.devnull, os.O_RDWR)
    for fd in (0, 1, 2):
        os.dup2(devnull, fd)
    if devnull > 2:
        os.close(devnull)


__all__ = ["ProcessSupervisor"]
