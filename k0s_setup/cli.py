# /*
# Copyright 2026 The setup-k0s Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""
cli.py - Provision a single-node k0s cluster on a CI runner.

Subcommands:
    run       Main phase, or cleanup when the main phase already ran (default)
    main      Install and start k0s, then export KUBECONFIG
    cleanup   Stop and reset k0s installed by the main phase
    diagnose  Dump k0s and cluster diagnostics

Action inputs are read from the runner's INPUT_* environment variables:
    - INPUT_VERSION (default: latest)
    - INPUT_WAIT-FOR-READY (default: false)
    - INPUT_TIMEOUT (default: 300)

Tool settings are read from K0S_SETUP_* environment variables (see
k0s_setup.config.K0sSettings).

Examples:
    # As the action's main and post step
    k0s-setup

    # Pin a version and wait for the cluster locally
    INPUT_VERSION=v1.30.0+k0s.0 INPUT_WAIT-FOR-READY=true k0s-setup main

    # Tear down regardless of the run marker
    k0s-setup cleanup --force
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

import typer

from k0s_setup import actions, logger
from k0s_setup.config import K0sSettings
from k0s_setup.diagnostics import show_diagnostics
from k0s_setup.orchestrator import run, run_cleanup, run_main

T = TypeVar("T")

app = typer.Typer(
    help="Provision a single-node k0s cluster on a CI runner.",
    pretty_exceptions_enable=False,
)


def _run_phase(fn: Callable[[], T]) -> T:
    """Run *fn*, turning any failure into one failure message and exit status 1."""
    try:
        return fn()
    except Exception as e:
        logger.debug("Phase failed", exc_info=True)
        actions.set_failed(str(e))
        raise typer.Exit(code=1) from e


@app.callback(invoke_without_command=True)
def _main_callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Initialize logging; without a subcommand, behave like ``run``."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )
    if ctx.invoked_subcommand is None:
        _run_phase(run)


@app.command("run")
def run_cmd() -> None:
    """Run the main phase, or the cleanup phase if the main phase already ran."""
    _run_phase(run)


@app.command("main")
def main_cmd() -> None:
    """Install and start k0s, then export KUBECONFIG."""
    _run_phase(run_main)


@app.command("cleanup")
def cleanup_cmd(
    force: bool = typer.Option(False, "--force", help="Tear down even if the main phase never ran"),
) -> None:
    """Stop and reset the k0s controller installed by the main phase."""
    _run_phase(lambda: run_cleanup(force=force))


@app.command("diagnose")
def diagnose_cmd() -> None:
    """Dump k0s service state and cluster status."""
    _run_phase(lambda: show_diagnostics(K0sSettings()))


if __name__ == "__main__":
    app()
