import sys
import os

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from main import main, parse_args


EXAMPLE = '\n'.join([
    "type, client, tx, amount",
    "deposit, 2, 2, 3.0",
    "deposit, 1, 1, 5.0",
    "withdrawal, 1, 3, 1.5",
    "dispute, 1, 1,",
    "resolve, 1, 1,",
    "deposit, 3, 4, 10.0",
    "dispute, 3, 4,",
    "chargeback, 3, 4,",
    "deposit, 3, 5, 0.1234",
    "deposit, 4, 6, -1",
])

EXPECTED_OUTPUT = '\n'.join([
    "client,available,held,total,locked",
    "1,3.5,0,3.5,false",
    "2,3,0,3,false",
    "3,0.1234,0,0.1234,true",
    "",
])


class TestMain:
    @pytest.mark.parametrize("extra_args", [[], ["--serial"], ["--queue-size", "1"]])
    def test_prints_snapshot(self, tmp_path, capsys, extra_args):
        csv_file = tmp_path / "input.csv"
        csv_file.write_text(EXAMPLE)

        exit_code = main([str(csv_file), *extra_args])

        assert exit_code == 0
        assert capsys.readouterr().out == EXPECTED_OUTPUT

    def test_missing_file(self, tmp_path, capsys):
        exit_code = main([str(tmp_path / "nope.csv")])

        captured = capsys.readouterr()
        assert exit_code == 1
        assert captured.out == ""
        assert captured.err.startswith("error:")

    def test_invalid_utf8_input(self, tmp_path, capsys):
        csv_file = tmp_path / "input.csv"
        csv_file.write_bytes(b"type,client,tx,amount\ndeposit,1,1,\xff\xfe\n")

        exit_code = main([str(csv_file)])

        captured = capsys.readouterr()
        assert exit_code == 1
        assert captured.out == ""
        assert captured.err.startswith("error:")
        assert "not valid UTF-8" in captured.err

    def test_byte_order_mark_input(self, tmp_path, capsys):
        csv_file = tmp_path / "input.csv"
        csv_file.write_text(EXAMPLE, encoding="utf-8-sig")

        assert main([str(csv_file)]) == 0
        assert capsys.readouterr().out == EXPECTED_OUTPUT

    def test_help(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main(["--help"])
        assert excinfo.value.code == 0
        assert "TRANSACTIONS_FILE" in capsys.readouterr().out

    def test_requires_input_path(self):
        with pytest.raises(SystemExit) as excinfo:
            main([])
        assert excinfo.value.code != 0


class TestParseArgs:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("PAYMENTS_ENGINE_MODE", raising=False)
        monkeypatch.delenv("PAYMENTS_ENGINE_LOG_LEVEL", raising=False)

        args = parse_args(["input.csv"])

        assert args.transactions == "input.csv"
        assert args.serial is False
        assert args.queue_size == 0
        assert args.log_level == "WARNING"

    def test_environment_defaults(self, monkeypatch):
        monkeypatch.setenv("PAYMENTS_ENGINE_MODE", "serial")
        monkeypatch.setenv("PAYMENTS_ENGINE_LOG_LEVEL", "debug")

        args = parse_args(["input.csv"])

        assert args.serial is True
        assert args.log_level == "DEBUG"

    def test_log_level_flag(self):
        args = parse_args(["input.csv", "--log-level", "info"])
        assert args.log_level == "INFO"

    def test_negative_queue_size_rejected(self):
        with pytest.raises(SystemExit):
            parse_args(["input.csv", "--queue-size", "-1"])
