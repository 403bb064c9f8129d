"""Command specification handed to the timing harness."""

from __future__ import annotations

import contextlib
import shlex
import subprocess
from enum import Enum
from pathlib import Path
from typing import IO, Any, Dict, Iterator, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CommandOutputPolicy(str, Enum):
    """What the harness does with a piped stdout."""

    DISCARD = "discard"
    REPORT = "report"


class StreamTarget(str, Enum):
    """Where a standard stream of the child is connected."""

    NULL = "null"
    PIPE = "pipe"
    INHERIT = "inherit"
    FILE = "file"


class CommandSpec(BaseModel):
    """Fully formed description of one command to execute.

    The spec is built by the caller; the harness only translates it into
    ``subprocess.Popen`` arguments.
    """

    model_config = ConfigDict(frozen=True)

    argv: List[str] = Field(min_length=1, description="Program followed by its arguments")
    env: Optional[Dict[str, str]] = Field(default=None, description="Full environment; None inherits ours")
    cwd: Optional[Path] = Field(default=None, description="Working directory of the child")
    stdin: StreamTarget = Field(default=StreamTarget.NULL)
    stdout: StreamTarget = Field(default=StreamTarget.NULL)
    stderr: StreamTarget = Field(default=StreamTarget.NULL)
    stdout_path: Optional[Path] = Field(default=None, description="Target file when stdout is FILE")
    stderr_path: Optional[Path] = Field(default=None, description="Target file when stderr is FILE")

    @model_validator(mode="after")
    def _validate_targets(self) -> "CommandSpec":
        if self.stdin in (StreamTarget.PIPE, StreamTarget.FILE):
            raise ValueError("CommandSpec: stdin must be 'null' or 'inherit'")
        if self.stdout is StreamTarget.FILE and self.stdout_path is None:
            raise ValueError("CommandSpec: stdout_path is required when stdout is 'file'")
        if self.stderr is StreamTarget.FILE and self.stderr_path is None:
            raise ValueError("CommandSpec: stderr_path is required when stderr is 'file'")
        if self.stderr is StreamTarget.PIPE:
            raise ValueError("CommandSpec: stderr cannot be piped, nothing drains it")
        return self

    @classmethod
    def for_policy(
        cls,
        argv: List[str],
        policy: CommandOutputPolicy,
        **kwargs: Any,
    ) -> "CommandSpec":
        """Build a spec whose stdout matches the output policy.

        REPORT needs the child's stdout piped back to us; any stdout target
        passed in kwargs is overridden in that case.
        """
        if policy is CommandOutputPolicy.REPORT:
            kwargs["stdout"] = StreamTarget.PIPE
            kwargs.pop("stdout_path", None)
        return cls(argv=argv, **kwargs)

    def display_name(self) -> str:
        return shlex.join(self.argv)

    @property
    def pipes_stdout(self) -> bool:
        return self.stdout is StreamTarget.PIPE

    @contextlib.contextmanager
    def open_streams(self) -> Iterator[Dict[str, Any]]:
        """Yield ``Popen`` keyword arguments, closing any opened files afterwards."""
        with contextlib.ExitStack() as stack:
            kwargs: Dict[str, Any] = {
                "stdin": _stream_arg(self.stdin, None, stack),
                "stdout": _stream_arg(self.stdout, self.stdout_path, stack),
                "stderr": _stream_arg(self.stderr, self.stderr_path, stack),
                "env": self.env,
                "cwd": self.cwd,
            }
            yield kwargs


def _stream_arg(
    target: StreamTarget, path: Optional[Path], stack: contextlib.ExitStack
) -> int | IO[bytes] | None:
    if target is StreamTarget.NULL:
        return subprocess.DEVNULL
    if target is StreamTarget.PIPE:
        return subprocess.PIPE
    if target is StreamTarget.INHERIT:
        return None
    if path is None:
        raise ValueError(f"stream target '{target.value}' needs a path")
    return stack.enter_context(open(path, "wb"))
