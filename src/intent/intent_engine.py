"""Base class for intent classification engines."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class EngineRequest:
    """Everything an engine needs for one invocation."""

    label: str  # Short name for logs, e.g. "analysis"
    prompt: str
    input_files: Dict[str, str]  # File name -> content, made available to the engine
    schema: Dict[str, Any]  # JSON schema the output must conform to
    output_filename: str
    model: str | None = None


@dataclass
class EngineOutput:
    """What an engine invocation produced."""

    stdout: str
    stderr: str
    elapsed_secs: float
    model_used: str
    output_text: str | None = None  # Contents of the output file, None if not written

    def format_log(self, label: str) -> str:
        """
        Build the raw engine transcript shown to the reviewer.

        Args:
            label: Operation label, e.g. "analysis"

        Returns:
            Log text: a summary line, then stderr, then stdout
        """
        log = f"[{label}] model={self.model_used} elapsed={self.elapsed_secs:.1f}s\n"
        if self.stderr:
            log += self.stderr + "\n"

        if self.stdout:
            log += self.stdout + "\n"

        return log


class IntentEngine(ABC):
    """
    Abstract base class for external classification engines.

    Engines are untrusted: only the output they produce is examined, and callers decode
    and validate it themselves.
    """

    @abstractmethod
    async def run(self, request: EngineRequest) -> EngineOutput:
        """
        Invoke the engine.

        Args:
            request: Prompt, inputs and output constraints

        Returns:
            Captured output

        Raises:
            EngineError: If the engine is unavailable, exits unsuccessfully or times out
        """
