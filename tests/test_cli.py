"""
Tests for the command-line script.

Run with: python -m pytest tests/test_cli.py -v
"""

import runpy
from pathlib import Path

from racebook.repository import RaceRepository
from racebook.storage import JsonFileStore
from factories import make_race

CLI = runpy.run_path(str(Path(__file__).parent.parent / "scripts" / "racebook_cli.py"))
main = CLI["main"]


def seed(data_dir, count=12):
    repo = RaceRepository(JsonFileStore(data_dir))
    for i in range(count):
        track = "Saratoga" if i % 2 == 0 else "Del Mar"
        repo.add_race(make_race(id=f"r{i}", name=f"Race {i}", track=track))


class TestRacesCommand:
    """Tests for the races subcommand."""

    def test_first_page(self, tmp_path, capsys):
        seed(tmp_path)
        assert main(["--data-dir", str(tmp_path), "races"]) == 0

        out = capsys.readouterr().out
        assert "r0  Oct 20, 2026  Saratoga - Race 0" in out
        assert "r10" not in out
        assert "Page 1 of 2 (12 races)" in out

    def test_second_page(self, tmp_path, capsys):
        seed(tmp_path)
        assert main(["--data-dir", str(tmp_path), "races", "--page", "2"]) == 0

        out = capsys.readouterr().out
        assert "r10" in out
        assert "r11" in out
        assert "r0 " not in out

    def test_search(self, tmp_path, capsys):
        seed(tmp_path)
        assert main(["--data-dir", str(tmp_path), "races", "--search", "del mar", "--per-page", "3"]) == 0

        out = capsys.readouterr().out
        assert "Saratoga" not in out
        assert out.count("Del Mar") == 3
        assert "Page 1 of 2 (6 races)" in out

    def test_no_matches(self, tmp_path, capsys):
        seed(tmp_path, count=2)
        assert main(["--data-dir", str(tmp_path), "races", "--search", "keeneland"]) == 0
        assert "No races found" in capsys.readouterr().out

    def test_bad_page(self, tmp_path, capsys):
        assert main(["--data-dir", str(tmp_path), "races", "--page", "0"]) == 2
        assert "Invalid page" in capsys.readouterr().out


class TestCheckCommand:
    """Tests for the check subcommand."""

    def test_repairs_unparseable_races(self, tmp_path, capsys):
        repo = RaceRepository(JsonFileStore(tmp_path))
        repo.add_horse({"name": "Star"})
        (tmp_path / "races.json").write_text("{not json", encoding="utf-8")

        assert main(["--data-dir", str(tmp_path), "check"]) == 0
        assert "Repaired: races" in capsys.readouterr().out
        assert [h["name"] for h in repo.get_horses()] == ["Star"]
