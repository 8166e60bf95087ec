"""Runs the opencode execution agent in a worktree."""
from pathlib import Path
from typing import Union

from review_keeper.constants import AGENT_COMMAND, DEFAULT_AGENT_MODEL
from review_keeper.logging_config import get_logger
from review_keeper.utils.process import run_command

logger = get_logger(__name__)


class AgentRunner:
    """Thin wrapper around `opencode run`."""

    def __init__(self, command: str = AGENT_COMMAND, default_model: str = DEFAULT_AGENT_MODEL):
        self.command = command
        self.default_model = default_model

    def _model(self, model: str) -> str:
        return model or self.default_model

    def run_command(self, path: Union[str, Path], model: str, name: str, *args: str) -> str:
        """Run one of the agent's named commands (e.g. opsx-apply)."""
        model = self._model(model)
        logger.info(f"Running agent command {name} in {path} with {model}")
        return run_command(
            [self.command, "run", "-m", model, "--command", name, *args], cwd=path
        )

    def prompt(self, path: Union[str, Path], model: str, prompt: str) -> str:
        """Hand the agent a single free-text instruction."""
        model = self._model(model)
        logger.info(f"Prompting agent in {path} with {model}")
        return run_command([self.command, "run", "-m", model, prompt], cwd=path)
