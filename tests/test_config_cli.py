"""
Configuration and CLI Test Suite

Coverage:
  DAOConfig : TOML loading, defaults, env overrides, validation
  CLI       : show-config, simulate (text and JSON output)
"""

import json
import os
import sys
import textwrap

import pytest
from click.testing import CliRunner

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from treasury_dao.cli.governor import cli, deploy_from_config, run_step
from treasury_dao.config import DAOConfig, ScenarioStep, load_config
from treasury_dao.exceptions import ConfigurationError
from treasury_dao.governance import GovernorError


SCENARIO_TOML = textwrap.dedent("""
    [governor]
    quorum_percent = 50
    start_time = 1000

    [token]
    name = "Governance"
    symbol = "GOV"
    initial_supply = 1000
    allocations = { alice = 600, bob = 400 }

    [treasury]
    balance = 1000

    [logging]
    level = "WARNING"

    [[scenario]]
    action = "propose"
    caller = "alice"
    recipient = "carol"
    amount = 100
    duration_minutes = 1

    [[scenario]]
    action = "execute"
    caller = "bob"
    proposal_id = 0

    [[scenario]]
    action = "vote"
    caller = "alice"
    proposal_id = 0
    choice = "for"

    [[scenario]]
    action = "execute"
    caller = "bob"
    proposal_id = 0
""")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "TREASURY_DAO_CONFIG",
        "TREASURY_DAO_QUORUM_PERCENT",
        "TREASURY_DAO_TREASURY_BALANCE",
        "TREASURY_DAO_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def scenario_file(tmp_path):
    path = tmp_path / "dao.toml"
    path.write_text(SCENARIO_TOML)
    return path


# ══════════════════════════════════════════════════════════════════════
#  CONFIG
# ══════════════════════════════════════════════════════════════════════


class TestDAOConfig:
    """TOML loader."""

    def test_load_file(self, scenario_file):
        cfg = DAOConfig.from_file(str(scenario_file))
        assert cfg.validate()
        assert cfg.governor.quorum_percent == 50
        assert cfg.governor.start_time == 1000
        assert cfg.token.allocations == {"alice": 600, "bob": 400}
        assert cfg.treasury.balance == 1000
        assert cfg.logging.level == "WARNING"
        assert [step.action for step in cfg.scenario] == ["propose", "execute", "vote", "execute"]
        assert cfg.scenario[0].amount == 100

    def test_missing_file_uses_defaults(self, tmp_path):
        cfg = DAOConfig.from_file(str(tmp_path / "absent.toml"))
        assert cfg.treasury.balance == 0
        assert cfg.token.initial_supply == 0
        assert cfg.scenario == []

    def test_invalid_toml(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("[governor\nquorum_percent = ")
        with pytest.raises(ConfigurationError, match="Invalid TOML"):
            DAOConfig.from_file(str(path))

    def test_non_integer_value(self):
        with pytest.raises(ConfigurationError, match="quorum_percent"):
            DAOConfig.from_dict({"governor": {"quorum_percent": "half"}})

    def test_env_overrides(self, scenario_file, monkeypatch):
        monkeypatch.setenv("TREASURY_DAO_QUORUM_PERCENT", "75")
        monkeypatch.setenv("TREASURY_DAO_TREASURY_BALANCE", "5")
        monkeypatch.setenv("TREASURY_DAO_LOG_LEVEL", "debug")
        cfg = DAOConfig.from_file(str(scenario_file))
        assert cfg.governor.quorum_percent == 75
        assert cfg.treasury.balance == 5
        assert cfg.logging.level == "DEBUG"

    def test_load_config_env_path(self, scenario_file, monkeypatch):
        monkeypatch.setenv("TREASURY_DAO_CONFIG", str(scenario_file))
        assert load_config().treasury.balance == 1000

    def test_quorum_out_of_range(self):
        cfg = DAOConfig.from_dict({"governor": {"quorum_percent": 101}})
        with pytest.raises(ConfigurationError, match="quorum_percent"):
            cfg.validate()

    def test_allocations_must_match_supply(self):
        cfg = DAOConfig.from_dict({"token": {"initial_supply": 10, "allocations": {"a": 5}}})
        with pytest.raises(ConfigurationError, match="allocations"):
            cfg.validate()

    def test_deployer_required_without_allocations(self):
        cfg = DAOConfig.from_dict({"token": {"initial_supply": 10}})
        with pytest.raises(ConfigurationError, match="deployer"):
            cfg.validate()

    def test_invalid_log_level(self):
        cfg = DAOConfig.from_dict({"logging": {"level": "loud"}})
        with pytest.raises(ConfigurationError, match="logging.level"):
            cfg.validate()

    def test_scenario_validation(self):
        with pytest.raises(ConfigurationError, match="missing 'action'"):
            DAOConfig.from_dict({"scenario": [{"caller": "alice"}]})
        cfg = DAOConfig.from_dict({"scenario": [{"action": "delegate"}]})
        with pytest.raises(ConfigurationError, match="unknown action"):
            cfg.validate()
        cfg = DAOConfig.from_dict({"scenario": [{"action": "vote", "choice": "for"}]})
        with pytest.raises(ConfigurationError, match="requires a caller"):
            cfg.validate()
        cfg = DAOConfig.from_dict({"scenario": [{"action": "vote", "caller": "a", "choice": "abstain"}]})
        with pytest.raises(ConfigurationError, match="invalid choice"):
            cfg.validate()

    @pytest.mark.parametrize("step", [
        {"action": "propose", "caller": "a", "recipient": "b", "amount": -5, "duration_minutes": 1},
        {"action": "propose", "caller": "a", "recipient": "b", "amount": 5, "duration_minutes": -1},
        {"action": "execute", "caller": "a", "proposal_id": -1},
        {"action": "advance", "seconds": -5},
        {"action": "advance", "minutes": -1},
        {"action": "fund", "amount": -5},
    ])
    def test_scenario_negative_values(self, step):
        cfg = DAOConfig.from_dict({"scenario": [step]})
        with pytest.raises(ConfigurationError, match="cannot be negative"):
            cfg.validate()

    def test_to_dict(self, scenario_file):
        d = DAOConfig.from_file(str(scenario_file)).to_dict()
        assert d["governor"]["quorum_percent"] == 50
        assert d["scenario"][2] == {
            "action": "vote", "caller": "alice", "proposal_id": 0, "choice": "for",
        }


# ══════════════════════════════════════════════════════════════════════
#  SCENARIO REPLAY
# ══════════════════════════════════════════════════════════════════════


class TestScenarioReplay:
    def test_deploy_from_config(self, scenario_file):
        host = deploy_from_config(DAOConfig.from_file(str(scenario_file)))
        assert host.treasury_balance == 1000
        assert host.governor.now() == 1000
        assert host.governor.governance_token.balance_of("alice") == 600

    def test_run_steps(self, scenario_file):
        cfg = DAOConfig.from_file(str(scenario_file))
        host = deploy_from_config(cfg)
        results = [run_step(host, step)[1] for step in cfg.scenario]
        assert [bool(r) for r in results] == [True, False, True, True]
        assert results[1].error == GovernorError.QUORUM_NOT_REACHED
        assert host.treasury_balance == 900
        assert host.ledger.balance_of("carol") == 100

    def test_advance_and_fund_steps(self, scenario_file):
        host = deploy_from_config(DAOConfig.from_file(str(scenario_file)))
        desc, result = run_step(host, ScenarioStep(action="advance", minutes=2))
        assert result.value == 1120
        assert "1120" in desc
        _, result = run_step(host, ScenarioStep(action="fund", amount=50))
        assert result.value == 1050


# ══════════════════════════════════════════════════════════════════════
#  CLI
# ══════════════════════════════════════════════════════════════════════


class TestCLI:
    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "treasury-dao" in result.output

    def test_show_config(self, scenario_file):
        result = CliRunner().invoke(cli, ["show-config", str(scenario_file)])
        assert result.exit_code == 0
        assert '"quorum_percent": 50' in result.output

    def test_simulate(self, scenario_file):
        result = CliRunner().invoke(cli, ["simulate", str(scenario_file)])
        assert result.exit_code == 0, result.output
        assert "QUORUM_NOT_REACHED" in result.output
        assert "EXECUTED" in result.output
        assert "Treasury balance: 900" in result.output
        assert "Steps: 4 (1 rejected)" in result.output

    def test_simulate_json(self, scenario_file):
        result = CliRunner().invoke(
            cli, ["simulate", str(scenario_file), "--json", "--log-level", "CRITICAL"]
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["treasuryBalance"] == 900
        assert data["now"] == 1000
        assert [s["success"] for s in data["steps"]] == [True, False, True, True]
        assert data["steps"][1]["error"] == "QUORUM_NOT_REACHED"
        assert data["proposals"][0]["executed"] is True
        assert data["proposals"][0]["forWeight"] == 6_000_000

    def test_simulate_invalid_config(self, tmp_path):
        path = tmp_path / "dao.toml"
        path.write_text("[governor]\nquorum_percent = 150\n")
        result = CliRunner().invoke(cli, ["simulate", str(path)])
        assert result.exit_code != 0
        assert "Invalid configuration" in result.output

    @pytest.mark.parametrize("step", [
        'action = "propose"\ncaller = "alice"\nrecipient = "carol"\namount = -5\nduration_minutes = 1',
        'action = "advance"\nseconds = -5',
        'action = "fund"\namount = -5',
    ])
    def test_simulate_negative_step(self, tmp_path, step):
        path = tmp_path / "dao.toml"
        path.write_text(
            "[token]\ninitial_supply = 10\ndeployer = \"alice\"\n\n[[scenario]]\n" + step + "\n"
        )
        result = CliRunner().invoke(cli, ["simulate", str(path)])
        assert result.exit_code == 1
        assert not isinstance(result.exception, ValueError)
        assert "cannot be negative" in result.output

    def test_simulate_step_error_is_click_error(self, scenario_file, monkeypatch):
        def failing_step(host, step):
            raise ValueError("Clock cannot move backwards")

        monkeypatch.setattr("treasury_dao.cli.governor.run_step", failing_step)
        result = CliRunner().invoke(cli, ["simulate", str(scenario_file)])
        assert result.exit_code == 1
        assert "Scenario step 0 (propose) failed" in result.output
        assert "Clock cannot move backwards" in result.output

    def test_simulate_missing_file(self, tmp_path):
        result = CliRunner().invoke(cli, ["simulate", str(tmp_path / "none.toml")])
        assert result.exit_code == 2
