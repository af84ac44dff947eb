"""
tests/test_cli.py
CLI commands against a tmp_path store. Chat input is scripted.
"""

import json

import pytest

from orion.cli import main


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path, monkeypatch):
    # load_config() reads orion_config.json from the working directory
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def store_file(tmp_path):
    return tmp_path / "reports.json"


def _stored(path):
    return json.loads(path.read_text(encoding="utf-8"))


class TestReportCommand:
    def test_submit(self, store_file, capsys):
        code = main(["--store", str(store_file), "report",
                     "-t", "securite", "-u", "urgent", "-d", "Colis abandonné",
                     "--photo", "/tmp/photos/colis.jpg"])
        assert code == 0
        [report] = _stored(store_file)
        assert report["type"] == "security"
        assert report["photo"] == "colis.jpg"
        assert "ORN-" in capsys.readouterr().out

    def test_blank_description_rejected(self, store_file, capsys):
        code = main(["--store", str(store_file), "report", "-t", "medical", "-d", "  "])
        assert code == 1
        assert not store_file.exists()
        assert "champs obligatoires" in capsys.readouterr().out


class TestHistoryCommand:
    def test_empty(self, store_file, capsys):
        assert main(["--store", str(store_file), "history"]) == 0
        assert "Aucun signalement" in capsys.readouterr().out

    def test_list_and_detail(self, store_file, capsys):
        main(["--store", str(store_file), "report", "-t", "medical", "-d", "Malaise"])
        report_id = _stored(store_file)[0]["id"]
        capsys.readouterr()

        assert main(["--store", str(store_file), "history"]) == 0
        assert report_id in capsys.readouterr().out

        assert main(["--store", str(store_file), "history", "--id", report_id]) == 0
        assert "Malaise" in capsys.readouterr().out

        assert main(["--store", str(store_file), "history", "--id", "nope"]) == 1

    def test_undecodable_store_reads_as_empty(self, store_file, capsys):
        store_file.write_bytes(b"\xff\xfe")
        assert main(["--store", str(store_file), "history"]) == 0
        assert "Aucun signalement" in capsys.readouterr().out

    def test_detail_shows_default_agent_once_handled(self, store_file, capsys):
        store_file.write_text(json.dumps([{
            "id": "k3j9x0a1b", "type": "medical", "urgency": "urgent",
            "location": "Dakar", "description": "Malaise",
            "timestamp": "2026-10-30T08:15:00", "status": "Résolu",
        }]), encoding="utf-8")
        assert main(["--store", str(store_file), "history", "--id", "k3j9x0a1b"]) == 0
        assert "Mamadou Ndiaye" in capsys.readouterr().out


class TestChatCommand:
    def _script(self, monkeypatch, lines):
        answers = iter(lines)
        monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))

    def test_confirmed_chat(self, store_file, monkeypatch, capsys):
        self._script(monkeypatch, [
            "médical", "", "un coureur s'est effondré",
            "Stade Léopold Sédar Senghor", "urgent", "oui",
        ])
        assert main(["--store", str(store_file), "chat", "--no-delay"]) == 0
        [report] = _stored(store_file)
        assert report["urgency"] == "urgent"
        out = capsys.readouterr().out
        assert "Signalement envoyé" in out

    def test_cancelled_chat(self, store_file, monkeypatch):
        self._script(monkeypatch, ["panne", "Écran noir", "Piscine", "non urgent", "annule"])
        assert main(["--store", str(store_file), "chat", "--no-delay"]) == 0
        assert not store_file.exists()

    def test_end_of_input(self, store_file, monkeypatch):
        def _eof(prompt=""):
            raise EOFError
        monkeypatch.setattr("builtins.input", _eof)
        assert main(["--store", str(store_file), "chat", "--no-delay"]) == 130
