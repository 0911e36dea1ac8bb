#!/usr/bin/env python3
"""
jobs/run_scenario.py - Replay a YAML scenario against a fresh vault.

Usage:
    python -m jobs.run_scenario scenarios/governance_switch.yaml
    switchvault-scenario scenarios/yield_year.yaml --config config/vault.yaml

Scenario format:
    config:            # optional, same layout as config/vault.yaml
      ...
    steps:
      - action: fund
        account: alice
        amount: 10000
      - action: deposit
        account: alice
        amount: 10000
      - action: advance
        seconds: 31536000
      - action: withdraw
        account: alice
        all: true
        expect_error: VAULT_PAUSED   # optional: step must fail with this code

Proposal steps default to the most recently created proposal.
"""

import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import click
import yaml

from config.settings import Settings, load_settings, settings_from_dict
from core.constants import VoteSupport
from core.exceptions import VaultError
from core.logging import get_logger, set_global_context, setup_logging
from jobs.service import VaultService
from monitoring.vault_report import print_vault_report

logger = get_logger("switchvault.scenario")


class ScenarioError(Exception):
    """A scenario step did not behave as declared."""
    pass


class ScenarioRunner:
    """Executes scenario steps against a VaultService."""

    def __init__(self, service: VaultService):
        self.service = service
        self.last_proposal: Optional[int] = None
        self.results: List[Dict[str, Any]] = []
        self._actions: Dict[str, Callable[[Dict[str, Any]], Any]] = {
            "fund": self._fund,
            "deposit": self._deposit,
            "withdraw": self._withdraw,
            "transfer": self._transfer,
            "advance": self._advance,
            "mine": self._mine,
            "sync": self._sync,
            "set_rate": self._set_rate,
            "credit_yield": self._credit_yield,
            "lock_source": self._lock_source,
            "unlock_source": self._unlock_source,
            "upgrade": self._upgrade,
            "migrate_best": self._migrate_best,
            "schedule": self._schedule,
            "execute_upgrade": self._execute_upgrade,
            "cancel_upgrade": self._cancel_upgrade,
            "emergency_pause": self._emergency_pause,
            "emergency_resume": self._emergency_resume,
            "pause": self._pause,
            "unpause": self._unpause,
            "propose": self._propose,
            "vote": self._vote,
            "queue": self._queue,
            "execute": self._execute,
            "cancel": self._cancel,
        }

    @property
    def actions(self) -> List[str]:
        return sorted(self._actions)

    def run(self, steps: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        for number, step in enumerate(steps, 1):
            self.results.append(self.run_step(number, step))
        return self.results

    def run_step(self, number: int, step: Dict[str, Any]) -> Dict[str, Any]:
        """
        Run one step.

        Raises:
            ScenarioError: unknown action, unexpected failure, or an
                expected error that did not occur
        """
        action = step.get("action")
        handler = self._actions.get(action)
        if handler is None:
            raise ScenarioError(f"Step {number}: unknown action {action!r}")

        expected = step.get("expect_error")
        try:
            value = handler(step)
        except VaultError as e:
            if expected and e.code.value == expected:
                logger.info(
                    f"Step {number} {action} failed as expected",
                    extra={"context": {"code": e.code.value}},
                )
                return {"step": number, "action": action, "error": e.code.value}
            raise ScenarioError(f"Step {number} {action} failed: {e}") from e

        if expected:
            raise ScenarioError(f"Step {number} {action} succeeded, expected {expected}")
        return {"step": number, "action": action, "result": _plain(value)}

    # -------------------------------------------------------------------------
    # Accounts and time
    # -------------------------------------------------------------------------

    def _fund(self, step: Dict[str, Any]) -> None:
        self.service.fund(step["account"], int(step["amount"]))

    def _deposit(self, step: Dict[str, Any]) -> int:
        return self.service.engine.deposit(step["account"], int(step["amount"]))

    def _withdraw(self, step: Dict[str, Any]) -> int:
        engine = self.service.engine
        account = step["account"]
        shares = engine.share_balance_of(account) if step.get("all") else int(step["shares"])
        return engine.withdraw(account, shares)

    def _transfer(self, step: Dict[str, Any]) -> None:
        self.service.engine.transfer_shares(step["account"], step["to"], int(step["shares"]))

    def _advance(self, step: Dict[str, Any]) -> int:
        return self.service.clock.advance(int(step["seconds"])).timestamp

    def _mine(self, step: Dict[str, Any]) -> int:
        return self.service.clock.mine(int(step.get("blocks", 1))).block_number

    def _sync(self, step: Dict[str, Any]) -> int:
        return self.service.engine.sync_total_assets()

    # -------------------------------------------------------------------------
    # Instruments
    # -------------------------------------------------------------------------

    def _source(self, step: Dict[str, Any]):
        source_id = step["source"]
        if source_id not in self.service.sources:
            raise ScenarioError(f"Unknown source {source_id!r}")
        return self.service.sources[source_id]

    def _set_rate(self, step: Dict[str, Any]) -> None:
        self._source(step).set_rate(int(step["rate_bps"]))

    def _credit_yield(self, step: Dict[str, Any]) -> None:
        self._source(step).credit_yield(int(step["amount"]))

    def _lock_source(self, step: Dict[str, Any]) -> None:
        self._source(step).lock(self.service.engine.vault_id)

    def _unlock_source(self, step: Dict[str, Any]) -> None:
        self._source(step).unlock(self.service.engine.vault_id)

    # -------------------------------------------------------------------------
    # Migration (authority by default)
    # -------------------------------------------------------------------------

    def _caller(self, step: Dict[str, Any]) -> str:
        return step.get("caller", self.service.authority)

    def _upgrade(self, step: Dict[str, Any]) -> Dict[str, Any]:
        record = self.service.controller.upgrade_strategy(
            self._caller(step), step["target"], int(step.get("min_assets", 0))
        )
        return record.to_dict()

    def _migrate_best(self, step: Dict[str, Any]) -> Dict[str, Any]:
        record = self.service.controller.migrate_to_best_yield(
            self._caller(step), int(step.get("min_assets", 0))
        )
        return record.to_dict()

    def _schedule(self, step: Dict[str, Any]) -> Dict[str, Any]:
        return self.service.controller.schedule_upgrade(self._caller(step), step["target"]).to_dict()

    def _execute_upgrade(self, step: Dict[str, Any]) -> Dict[str, Any]:
        record = self.service.controller.execute_upgrade(
            self._caller(step), int(step.get("min_assets", 0))
        )
        return record.to_dict()

    def _cancel_upgrade(self, step: Dict[str, Any]) -> Dict[str, Any]:
        return self.service.controller.cancel_upgrade(self._caller(step)).to_dict()

    def _emergency_pause(self, step: Dict[str, Any]) -> None:
        self.service.controller.emergency_pause(self._caller(step), step.get("reason", ""))

    def _emergency_resume(self, step: Dict[str, Any]) -> None:
        self.service.controller.emergency_resume(self._caller(step))

    def _pause(self, step: Dict[str, Any]) -> None:
        self.service.engine.pause(self._caller(step))

    def _unpause(self, step: Dict[str, Any]) -> None:
        self.service.engine.unpause(self._caller(step))

    # -------------------------------------------------------------------------
    # Governance
    # -------------------------------------------------------------------------

    def _proposal(self, step: Dict[str, Any]) -> int:
        proposal_id = step.get("proposal", self.last_proposal)
        if proposal_id is None:
            raise ScenarioError("No proposal created yet")
        return int(proposal_id)

    def _propose(self, step: Dict[str, Any]) -> int:
        self.last_proposal = self.service.governor.propose(
            step["account"], step["target"], step.get("description", "")
        )
        return self.last_proposal

    def _vote(self, step: Dict[str, Any]) -> int:
        support = step.get("support", "FOR")
        if isinstance(support, str):
            support = VoteSupport[support.upper()]
        return self.service.governor.cast_vote(
            step["account"], self._proposal(step), support, step.get("reason", "")
        )

    def _queue(self, step: Dict[str, Any]) -> int:
        return self.service.governor.queue(self._proposal(step))

    def _execute(self, step: Dict[str, Any]) -> Dict[str, Any]:
        record = self.service.governor.execute(self._proposal(step), int(step.get("min_assets", 0)))
        return record.to_dict()

    def _cancel(self, step: Dict[str, Any]) -> None:
        self.service.governor.cancel(step["account"], self._proposal(step))


def _plain(value: Any) -> Any:
    if isinstance(value, (dict, list, str, int, float, bool)) or value is None:
        return value
    return str(value)


def load_scenario(path: Path, config_path: Optional[Path] = None) -> tuple[Settings, List[Dict[str, Any]]]:
    """Read a scenario file. Inline `config` wins over --config / defaults."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    steps = data.get("steps") or []
    if not isinstance(steps, list):
        raise ScenarioError(f"{path}: steps must be a list")
    if data.get("config"):
        settings = settings_from_dict(data["config"])
    else:
        settings = load_settings(config_path)
    return settings, steps


@click.command()
@click.argument("scenario", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--config",
    "-c",
    "config_path",
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Vault config (default: SWITCHVAULT_CONFIG or config/vault.yaml)",
)
@click.option(
    "--log-level",
    "-l",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Log level (default: from config)",
)
@click.option(
    "--json-logs/--no-json-logs",
    default=None,
    help="Use JSON log format",
)
@click.option(
    "--output",
    "-o",
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the final report as JSON",
)
def main(
    scenario: Path,
    config_path: Optional[Path],
    log_level: Optional[str],
    json_logs: Optional[bool],
    output: Optional[Path],
) -> None:
    """
    SWITCHVAULT scenario replay.

    Builds a fresh vault, runs each step and prints the final report.
    """
    try:
        settings, steps = load_scenario(scenario, config_path)
    except (ScenarioError, ValueError, yaml.YAMLError) as e:
        click.echo(f"Invalid scenario: {e}", err=True)
        sys.exit(2)

    setup_logging(
        level=log_level or settings.logging.level,
        json_output=settings.logging.json if json_logs is None else json_logs,
        log_file=settings.logging.log_file,
    )
    set_global_context(service="switchvault-scenario", version="0.1.0")

    logger.info(
        "Starting scenario",
        extra={"context": {"scenario": str(scenario), "steps": len(steps)}},
    )

    service = VaultService(settings)
    runner = ScenarioRunner(service)
    try:
        runner.run(steps)
    except ScenarioError as e:
        logger.error(f"Scenario failed: {e}", extra={"context": {"scenario": str(scenario)}})
        click.echo(f"Scenario failed: {e}", err=True)
        sys.exit(1)

    report = service.report()
    if output:
        report.save(output)

    print_vault_report(report)
    click.echo(f"Steps completed: {len(runner.results)}")


if __name__ == "__main__":
    main()
