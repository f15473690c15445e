"""Classification engine backed by the Codex CLI."""

import asyncio
import json
import logging
import os
import tempfile
import time
from typing import Dict, List, Tuple

from intent.intent_engine import EngineOutput, EngineRequest, IntentEngine
from intent.intent_exceptions import EngineError, SchemaError


class CodexEngine(IntentEngine):
    """
    Runs "codex exec" in a scratch directory holding the input files and output schema.

    The process runs read-only in its sandbox and writes its structured answer to an
    output file, which is returned verbatim for the caller to decode.
    """

    SCHEMA_FILENAME = "schema.json"

    def __init__(self, command: str = "codex", timeout: float | None = None) -> None:
        """
        Initialize the engine.

        Args:
            command: Executable to run
            timeout: Optional limit in seconds; the process is killed when it is exceeded
        """
        self._command = command
        self._timeout = timeout
        self._logger = logging.getLogger("CodexEngine")

    @staticmethod
    def _environment() -> Dict[str, str]:
        """Get the process environment, with pagers and colour output disabled."""
        env = dict(os.environ)
        env.update({
            "GH_PAGER": "cat",
            "PAGER": "cat",
            "NO_COLOR": "1",
            "GH_FORCE_TTY": "0"
        })
        return env

    def build_args(
        self,
        work_dir: str,
        schema_path: str,
        output_path: str,
        model: str | None,
        prompt: str
    ) -> List[str]:
        """
        Build the command line arguments, excluding the executable.

        Args:
            work_dir: Directory the engine runs in
            schema_path: Path of the output schema file
            output_path: Path the engine writes its answer to
            model: Optional model name; blank means the engine's configured default
            prompt: Prompt text, always the last argument

        Returns:
            Argument list
        """
        args = [
            "exec",
            "-C", work_dir,
            "--skip-git-repo-check",
            "--full-auto",
            "--sandbox", "read-only",
            "--color", "never",
            "--output-schema", schema_path,
            "-o", output_path,
        ]

        if model is not None and model.strip():
            args.extend(["-m", model.strip()])

        args.append(prompt)
        return args

    async def run(self, request: EngineRequest) -> EngineOutput:
        """
        Run the engine for one request.

        Args:
            request: Prompt, inputs and output constraints

        Returns:
            Captured output, including the output file's contents if it was written

        Raises:
            EngineError: If the CLI is missing, fails, or exceeds the timeout
        """
        model_used = request.model.strip() if request.model and request.model.strip() else "(config default)"

        # The scratch directory is removed on every exit path
        with tempfile.TemporaryDirectory(prefix="prlens-") as work_dir:
            try:
                for filename, content in request.input_files.items():
                    with open(os.path.join(work_dir, filename), 'w', encoding='utf-8') as f:
                        f.write(content)

                schema_path = os.path.join(work_dir, self.SCHEMA_FILENAME)
                with open(schema_path, 'w', encoding='utf-8') as f:
                    json.dump(request.schema, f)

            except OSError as e:
                raise EngineError(f"Failed to prepare engine input: {str(e)}") from e

            output_path = os.path.join(work_dir, request.output_filename)
            args = self.build_args(work_dir, schema_path, output_path, request.model, request.prompt)

            self._logger.info("Running %s for %s (model=%s)", self._command, request.label, model_used)
            start = time.monotonic()
            stdout_bytes, stderr_bytes, returncode = await self._execute(args)
            elapsed = time.monotonic() - start

            stdout = stdout_bytes.decode('utf-8', errors='replace')
            stderr = stderr_bytes.decode('utf-8', errors='replace')

            if returncode != 0:
                self._logger.warning("%s exited with %d for %s", self._command, returncode, request.label)
                if "login" in stderr or "auth" in stderr or "API key" in stderr:
                    raise EngineError(
                        "Codex CLI is not authenticated. Please run: codex login",
                        error_details={"returncode": returncode, "stderr": stderr}
                    )

                raise EngineError(
                    f"Codex exec failed: {stderr}",
                    error_details={"returncode": returncode, "stderr": stderr}
                )

            output_text = None
            try:
                with open(output_path, 'r', encoding='utf-8') as f:
                    output_text = f.read()

            except FileNotFoundError:
                self._logger.warning("%s produced no %s", self._command, request.output_filename)

            except UnicodeDecodeError as e:
                self._logger.warning("%s wrote invalid UTF-8 to %s", self._command, request.output_filename)
                raise SchemaError(
                    f"The engine wrote invalid UTF-8 to {request.output_filename}: {str(e)}",
                    error_details={"stdout": stdout, "stderr": stderr}
                ) from e

            except OSError as e:
                raise EngineError(f"Failed to read {request.output_filename}: {str(e)}") from e

        self._logger.debug("%s finished %s in %.1fs", self._command, request.label, elapsed)
        return EngineOutput(
            stdout=stdout,
            stderr=stderr,
            elapsed_secs=elapsed,
            model_used=model_used,
            output_text=output_text
        )

    async def _execute(self, args: List[str]) -> Tuple[bytes, bytes, int]:
        """
        Start the process and wait for it to finish.

        Returns:
            Tuple of (stdout, stderr, return code)

        Raises:
            EngineError: If the executable cannot be started or times out
        """
        try:
            process = await asyncio.create_subprocess_exec(
                self._command,
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self._environment()
            )

        except FileNotFoundError as e:
            raise EngineError(
                "Codex CLI is not installed. Please install it: https://github.com/openai/codex"
            ) from e

        except OSError as e:
            raise EngineError(f"Failed to execute {self._command}: {str(e)}") from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self._timeout)

        except asyncio.TimeoutError as e:
            process.kill()
            await process.wait()
            raise EngineError(
                f"{self._command} did not finish within {self._timeout} seconds",
                error_details={"timeout": self._timeout}
            ) from e

        return stdout, stderr, process.returncode if process.returncode is not None else -1
