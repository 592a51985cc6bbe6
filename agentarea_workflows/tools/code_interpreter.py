"""Sandboxed Python execution."""

import asyncio
import logging
import sys
import tempfile
from typing import Any, ClassVar

from ..domain.enums import ToolCapability
from ..domain.interfaces import ToolContext, ToolHandler
from ..domain.models import ToolResult
from .configs import CodeInterpreterConfig

logger = logging.getLogger(__name__)


class CodeInterpreterTool(ToolHandler):
    """Runs a Python snippet in an isolated interpreter subprocess.

    Each call starts exactly one process in a fresh temporary directory.
    A non-zero exit code is reported in the result, not raised; exceeding
    the configured timeout kills the process and fails the call.
    """

    capability: ClassVar[ToolCapability] = ToolCapability.CODE_INTERPRETER

    def __init__(self, python_executable: str | None = None):
        self.python_executable = python_executable or sys.executable

    def parameters(self, config: CodeInterpreterConfig) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "code": {
                    "type": "string",
                    "description": "Python source to run; print() whatever you need back",
                },
            },
            "required": ["code"],
        }

    async def execute(
        self, config: CodeInterpreterConfig, arguments: dict[str, Any], context: ToolContext
    ) -> ToolResult:
        code = arguments.get("code")
        if not isinstance(code, str) or not code.strip():
            raise ValueError("'code' must be a non-empty string")

        with tempfile.TemporaryDirectory(prefix="agentarea-code-") as workdir:
            process = await asyncio.create_subprocess_exec(
                self.python_executable,
                "-I",
                "-c",
                code,
                cwd=workdir,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            try:
                stdout, stderr = await asyncio.wait_for(
                    process.communicate(), timeout=config.timeout_seconds
                )
            except TimeoutError:
                process.kill()
                await process.wait()
                raise RuntimeError(
                    f"Code execution exceeded {config.timeout_seconds:g}s and was killed"
                ) from None

        out = self._truncate(stdout.decode(errors="replace"), config.max_output_chars)
        err = self._truncate(stderr.decode(errors="replace"), config.max_output_chars)
        logger.debug(f"Code interpreter exited with {process.returncode}")

        sections = [out] if out else []
        if err:
            sections.append(f"stderr:\n{err}")
        if process.returncode:
            sections.append(f"exit code: {process.returncode}")

        return ToolResult(
            content="\n".join(sections),
            data={"exit_code": process.returncode, "stdout": out, "stderr": err},
        )

    @staticmethod
    def _truncate(text: str, limit: int) -> str:
        return text if len(text) <= limit else text[:limit] + "\n... [truncated]"
