from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from relflow.core.config import Config, load_config_or_default
from relflow.core.errors import ErrorCode
from relflow.core.result import Err
from relflow.output.console import ConsoleProtocol, RichConsole
from relflow.output.errors import print_config_error

CONFIG_ENV_VAR = "RELFLOW_CONFIG"


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: Config
    console: ConsoleProtocol
    repo_root: Path


def build_context() -> CLIContext:
    console = RichConsole()
    raw = os.environ.get(CONFIG_ENV_VAR)
    config_result = load_config_or_default(Path(raw) if raw else None)
    if isinstance(config_result, Err):
        print_config_error(config_result.error, console)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    return CLIContext(
        config=config_result.value,
        console=console,
        repo_root=Path.cwd(),
    )
