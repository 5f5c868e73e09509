"""Process runner for the external client.

Spawns one command with stdout and stderr merged, drains the merged
stream on a reader thread while the calling thread waits for the exit
code, and echoes the client's progress output.  The reader is started
before the wait and joined after it, so a chatty process can never block
on a full pipe and no trailing output is lost.
"""

from __future__ import annotations

import logging
import re
import subprocess
import sys
import threading
from typing import IO, Optional

from ..errors import Interrupted, SpawnFailed, StreamReadFailed
from .commands import Invocation

logger = logging.getLogger(__name__)

# s3cmd starts each transfer with a "download: ..." or "upload: ..." line;
# everything after it is an in-place progress update.
PROGRESS_START = re.compile(r'(download|upload).*')


class _OutputDrain(threading.Thread):
    """Read the merged output of a process until end of stream."""

    def __init__(self, pipe: IO[str], invocation: Invocation, stream: IO[str]) -> None:
        super().__init__(name='s3cmd-output', daemon=True)
        self._pipe = pipe
        self._invocation = invocation
        self._stream = stream
        self.error: Optional[BaseException] = None

    def _write(self, text: str) -> bool:
        try:
            self._stream.write(text)
            self._stream.flush()
        except (OSError, ValueError) as exc:
            logger.warning('Could not echo process output, echo disabled: %s', exc)
            return False
        return True

    def _echo(self, line: str) -> bool:
        if PROGRESS_START.match(line):
            return self._write(line + '\n')
        # in-place update of the progress line
        return self._write('\r' + line)

    def run(self) -> None:
        echo = self._invocation.echo
        try:
            for line in self._pipe:
                if echo:
                    echo = self._echo(line.rstrip('\r\n'))
            if echo and self._invocation.transfer:
                self._write('\n')
        except (OSError, ValueError) as exc:
            logger.error('Could not read output stream from process: %s', exc)
            self.error = exc
        finally:
            self._pipe.close()


def run(invocation: Invocation, stream: Optional[IO[str]] = None) -> int:
    """Execute ``invocation`` and return its raw exit code.

    Args:
        invocation: Command to run.
        stream: Where echoed output goes, ``sys.stdout`` by default.

    Raises:
        SpawnFailed: if the executable cannot be started.
        Interrupted: if the wait is interrupted; the child is killed.
        StreamReadFailed: if reading the output failed and the process
            did not succeed.  A read error after a successful exit is only
            logged.
    """
    logger.info('Executing command: %s', invocation)
    try:
        proc = subprocess.Popen(
            list(invocation.args),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors='replace',
            bufsize=1,
        )
    except OSError as exc:
        logger.error('Could not execute command: %s', invocation)
        raise SpawnFailed(invocation.args, exc) from exc

    drain = _OutputDrain(proc.stdout, invocation, stream if stream is not None else sys.stdout)
    drain.start()
    try:
        exit_code = proc.wait()
    except KeyboardInterrupt:
        logger.error('Process interrupted: %s', invocation)
        proc.kill()
        proc.wait()
        drain.join()
        raise Interrupted(invocation.args) from None
    drain.join()

    if drain.error is not None:
        if exit_code != 0:
            raise StreamReadFailed(invocation.args, exit_code, drain.error) from drain.error
        logger.warning('Output of %s was not fully read, but the process succeeded', invocation)
    logger.debug('Command exited with %d: %s', exit_code, invocation)
    return exit_code
