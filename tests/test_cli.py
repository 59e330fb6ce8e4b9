"""Unit tests for adminpanel.cli — command parsing and execution."""

from datetime import date, timedelta
from unittest.mock import MagicMock, patch

import pytest
import yaml
from sqlalchemy import func, select

import adminpanel.cli as cli_mod
from adminpanel.db.models import Permission, Product, Role, User
from adminpanel.db.session import close_all_sessions, init_db
from adminpanel.security.abilities import DEFAULT_ROLES, all_abilities
from adminpanel.security.auth import verify_password


@pytest.fixture
def config_file(tmp_path):
    """adminpanel.yaml pointing at a SQLite file under tmp_path."""
    path = tmp_path / "adminpanel.yaml"
    path.write_text(yaml.safe_dump({
        "panel": {"name": "Test Panel", "environment": "dev"},
        "database": {"url": f"sqlite:///{tmp_path / 'panel.db'}"},
        "logging": {"directory": str(tmp_path / "logs")},
        "exports": {"directory": str(tmp_path / "exports")},
        "celery": {"export_queue": "exports", "concurrency": 2},
    }), encoding="utf-8")
    yield path
    close_all_sessions()


def _reopen(config_file):
    return init_db(f"sqlite:///{config_file.parent / 'panel.db'}")()


class TestCLIParsing:

    def test_no_command_prints_help(self, capsys):
        assert cli_mod.main([]) == 0
        assert "usage: adminpanel" in capsys.readouterr().out

    def test_expected_commands(self):
        for name in ("cmd_init", "cmd_seed_products", "cmd_run", "cmd_worker", "cmd_logs_cleanup"):
            assert hasattr(cli_mod, name)


class TestCmdInit:

    def test_bootstraps_database(self, config_file, capsys):
        assert cli_mod.main(["init", "--config", str(config_file), "--admin-password", "adminpass1"]) == 0
        assert "[OK] Created admin user" in capsys.readouterr().out

        session = _reopen(config_file)
        try:
            names = set(session.execute(select(Permission.name)).scalars())
            assert names == set(all_abilities())
            roles = {r.name: r for r in session.execute(select(Role)).scalars()}
            assert set(roles) == set(DEFAULT_ROLES)
            assert sorted(p.name for p in roles["viewer"].permissions) == ["show-product", "view-product"]

            admin = session.execute(select(User).where(User.username == "admin")).scalar_one()
            assert admin.user_type == "system_admin"
            assert [r.name for r in admin.roles] == ["admin"]
            assert verify_password("adminpass1", admin.password_hash)
        finally:
            session.close()

    def test_rerun_updates_password(self, config_file, capsys):
        cli_mod.main(["init", "--config", str(config_file), "--admin-password", "adminpass1"])
        assert cli_mod.main(["init", "--config", str(config_file), "--admin-password", "adminpass2"]) == 0
        assert "password updated" in capsys.readouterr().out

        session = _reopen(config_file)
        try:
            assert session.execute(select(func.count(User.id))).scalar_one() == 1
            assert session.execute(select(func.count(Permission.id))).scalar_one() == len(all_abilities())
            admin = session.execute(select(User)).scalar_one()
            assert verify_password("adminpass2", admin.password_hash)
        finally:
            session.close()

    def test_short_password_rejected(self, config_file, capsys):
        assert cli_mod.main(["init", "--config", str(config_file), "--admin-password", "short"]) == 1
        assert "at least 8 characters" in capsys.readouterr().out

    def test_prompts_for_password(self, config_file):
        with patch("adminpanel.cli.getpass.getpass", side_effect=["first-try", "mismatch", "adminpass1", "adminpass1"]):
            assert cli_mod.main(["init", "--config", str(config_file)]) == 0

    def test_invalid_config(self, tmp_path, capsys):
        path = tmp_path / "adminpanel.yaml"
        path.write_text("panel:\n  environment: qa\n", encoding="utf-8")
        assert cli_mod.main(["init", "--config", str(path), "--admin-password", "adminpass1"]) == 1
        assert "[ERROR] Failed to load config" in capsys.readouterr().out


class TestCmdSeedProducts:

    def test_inserts_products(self, config_file):
        cli_mod.main(["init", "--config", str(config_file), "--admin-password", "adminpass1"])
        assert cli_mod.main(["seed-products", "12", "--config", str(config_file), "--seed", "3"]) == 0

        session = _reopen(config_file)
        try:
            rows = session.execute(select(Product)).scalars().all()
            assert len(rows) == 12
            assert {p.status for p in rows} <= {"Y", "N"}
        finally:
            session.close()

    def test_rejects_non_positive_count(self, config_file, capsys):
        assert cli_mod.main(["seed-products", "0", "--config", str(config_file)]) == 1
        assert "positive" in capsys.readouterr().out


class TestCmdLogsCleanup:

    def test_removes_expired_logs(self, config_file, capsys):
        directory = config_file.parent / "logs" / "tables" / "execution"
        directory.mkdir(parents=True)
        expired = directory / f"{(date.today() - timedelta(days=200)).isoformat()}.jsonl"
        expired.write_text("{}\n", encoding="utf-8")

        assert cli_mod.main(["logs-cleanup", "--config", str(config_file)]) == 0
        assert not expired.exists()
        assert "'deleted': 1" in capsys.readouterr().out


class TestSubprocessCommands:

    def test_worker_command_line(self, config_file):
        with patch("subprocess.run", return_value=MagicMock(returncode=0)) as run:
            assert cli_mod.main(["worker", "--config", str(config_file)]) == 0
        cmd = run.call_args.args[0]
        assert cmd[:3] == ["celery", "-A", "adminpanel.exports.jobs:celery_app"]
        assert cmd[cmd.index("-Q") + 1] == "exports"
        assert cmd[cmd.index("--concurrency") + 1] == "2"

    def test_run_without_reflex(self, capsys):
        with patch("subprocess.run", side_effect=FileNotFoundError):
            assert cli_mod.main(["run"]) == 1
        assert "'reflex' command not found" in capsys.readouterr().out

    def test_run_command_line(self):
        with patch("subprocess.run", return_value=MagicMock(returncode=0)) as run:
            assert cli_mod.main(["run", "--port", "3100"]) == 0
        cmd = run.call_args.args[0]
        assert cmd[:2] == ["reflex", "run"]
        assert cmd[cmd.index("--frontend-port") + 1] == "3100"
