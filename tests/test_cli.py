"""Tests for the command-line entry point."""

import pytest

from main import build_parser, main


class TestParser:
    def test_command_is_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_quote_arguments(self):
        args = build_parser().parse_args(["quote", "personal-care", "meal-prep", "--asap"])
        assert args.task_ids == ["personal-care", "meal-prep"]
        assert args.asap


class TestCommands:
    def test_quote(self, capsys):
        assert main(["quote", "personal-care", "--asap"]) == 0
        assert "$43.75" in capsys.readouterr().out

    def test_radius_inside(self, capsys):
        assert main(["radius", "M5V 1J9"]) == 0
        assert "service area" in capsys.readouterr().out

    def test_radius_outside(self):
        assert main(["radius", "K1P 1J1"]) == 1

    def test_overtime(self, capsys):
        assert main(["overtime", "14:00", "14:20", "--rate", "35"]) == 0
        assert "$8.75" in capsys.readouterr().out

    def test_overtime_bad_time(self):
        assert main(["overtime", "2pm", "14:20"]) == 2

    def test_checkin(self, capsys):
        assert main(["checkin", "43.6426", "-79.3871", "43.6430", "-79.3871"]) == 0
        assert "Location verified" in capsys.readouterr().out
