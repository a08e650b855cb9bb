"""Tests for the totp-core command line."""

from __future__ import annotations

import itertools

import pytest

from totp_core import otp_cli

RFC_HEX_SECRET = "3132333435363738393031323334353637383930"
RFC_BASE32_SECRET = "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"


@pytest.fixture(autouse=True)
def _no_env_secret(monkeypatch):
    monkeypatch.delenv(otp_cli.SECRET_ENV_VAR, raising=False)


def _fake_clock(monkeypatch, *values):
    """Patch time.time to return `values` in order, then keep returning the last one."""
    readings = itertools.chain(values, itertools.repeat(values[-1]))
    monkeypatch.setattr(otp_cli.time, "time", lambda: next(readings))
    monkeypatch.setattr(otp_cli.time, "sleep", lambda seconds: None)


def test_code_command(capsys):
    assert otp_cli.main(["code", "--secret", RFC_BASE32_SECRET, "--at", "59"]) == 0
    out = capsys.readouterr().out
    assert "TOTP: 287082" in out
    assert "valid ~ 1s" in out


def test_code_command_digits_and_period(capsys):
    assert otp_cli.main(["code", "--secret", RFC_BASE32_SECRET, "--at", "59", "--digits", "8"]) == 0
    assert "TOTP: 94287082" in capsys.readouterr().out

    assert otp_cli.main(["code", "--secret", RFC_HEX_SECRET, "--at", "59", "--period", "60"]) == 0
    assert "TOTP: 755224" in capsys.readouterr().out


def test_code_from_env(monkeypatch, capsys):
    monkeypatch.setenv(otp_cli.SECRET_ENV_VAR, RFC_HEX_SECRET)
    assert otp_cli.main(["code", "--at", "59"]) == 0
    assert "TOTP: 287082" in capsys.readouterr().out


def test_code_from_file(tmp_path, capsys):
    path = tmp_path / "secret.txt"
    path.write_text(RFC_BASE32_SECRET + "\nignored\n", encoding="utf-8")
    assert otp_cli.main(["code", "--secret-file", str(path), "--at", "59"]) == 0
    assert "TOTP: 287082" in capsys.readouterr().out


def test_secret_flag_beats_env(monkeypatch, capsys):
    monkeypatch.setenv(otp_cli.SECRET_ENV_VAR, "JBSWY3DPEHPK3PXP")
    assert otp_cli.main(["code", "--secret", RFC_HEX_SECRET, "--at", "59"]) == 0
    assert "TOTP: 287082" in capsys.readouterr().out


def test_code_from_otpauth_uri(capsys):
    uri = f"otpauth://totp/ACME:alice%40example.com?secret={RFC_BASE32_SECRET}&issuer=ACME"
    assert otp_cli.main(["code", "--secret", uri, "--at", "59"]) == 0
    assert "TOTP: 287082" in capsys.readouterr().out


def test_secret_from_uri_passthrough():
    assert otp_cli.secret_from_uri("JBSWY3DPEHPK3PXP") == "JBSWY3DPEHPK3PXP"
    assert otp_cli.secret_from_uri("otpauth://totp/x?issuer=ACME") == ""


def test_missing_secret(capsys):
    assert otp_cli.main(["code"]) == 1
    assert "No secret given" in capsys.readouterr().err


def test_missing_secret_file(tmp_path, capsys):
    assert otp_cli.main(["code", "--secret-file", str(tmp_path / "nope.txt")]) == 1
    assert capsys.readouterr().err.startswith("[!]")


def test_empty_secret(capsys):
    assert otp_cli.main(["code", "--secret", " - "]) == 1
    assert "[!] Secret key cannot be empty" in capsys.readouterr().err


def test_bad_period(capsys):
    assert otp_cli.main(["code", "--secret", RFC_HEX_SECRET, "--period", "0"]) == 1
    assert "time_step" in capsys.readouterr().err


@pytest.mark.parametrize("command", ["code", "hotp"])
@pytest.mark.parametrize("digits", ["0", "-2", "11"])
def test_bad_digits(command, digits, capsys):
    argv = [command, "--secret", RFC_HEX_SECRET, "--digits", digits]
    if command == "hotp":
        argv += ["--counter", "0"]
    assert otp_cli.main(argv) == 1
    captured = capsys.readouterr()
    assert captured.err.startswith("[!] digits must be")
    assert captured.out == ""


def test_hotp_command(capsys):
    assert otp_cli.main(["hotp", "--secret", RFC_HEX_SECRET, "--counter", "1"]) == 0
    assert "HOTP(counter=1): 287082" in capsys.readouterr().out


def test_hotp_requires_counter(capsys):
    with pytest.raises(SystemExit) as exc:
        otp_cli.main(["hotp", "--secret", RFC_HEX_SECRET])
    assert exc.value.code == 2


def test_remaining_command(capsys):
    assert otp_cli.main(["remaining", "--at", "60"]) == 0
    assert capsys.readouterr().out.strip() == "30"
    assert otp_cli.main(["remaining", "--at", "61", "--period", "60"]) == 0
    assert capsys.readouterr().out.strip() == "59"


def test_inspect_command(capsys):
    assert otp_cli.main(["inspect", "--secret", "JBSW Y3DP EE"]) == 0
    out = capsys.readouterr().out
    assert "encoding : base32" in out
    assert "key bytes: 6" in out
    assert "key (hex): 48656c6c6f21" in out


def test_inspect_hex_priority(capsys):
    assert otp_cli.main(["inspect", "--secret", "ABCDEF"]) == 0
    out = capsys.readouterr().out
    assert "encoding : hex" in out
    assert "key (hex): abcdef" in out


def test_init_command(capsys):
    assert otp_cli.main(["init"]) == 0
    secret = capsys.readouterr().out.strip()
    assert len(secret) == 32
    assert set(secret) <= set("ABCDEFGHIJKLMNOPQRSTUVWXYZ234567")


def test_no_command_prints_help(capsys):
    assert otp_cli.main([]) == 0
    assert "usage:" in capsys.readouterr().out


def test_watch_refreshes_on_new_window(monkeypatch, capsys):
    _fake_clock(monkeypatch, 58, 59, 60, 61)
    assert otp_cli.main(["watch", "--secret", RFC_HEX_SECRET, "--ticks", "4"]) == 0
    out = capsys.readouterr().out
    assert "TOTP: 287082  (valid ~ 2s)" in out
    assert "..  1s left" in out
    assert ".. 29s left" in out
    assert "TOTP: 359152  (valid ~30s)" in out
    assert out.count("TOTP: ") == 2


def test_watch_refreshes_after_missed_boundary(monkeypatch, capsys):
    # the tick at t=60 never happens; the code still rotates at t=61
    _fake_clock(monkeypatch, 59, 61)
    assert otp_cli.main(["watch", "--secret", RFC_HEX_SECRET, "--ticks", "2"]) == 0
    assert "TOTP: 359152  (valid ~29s)" in capsys.readouterr().out


def test_watch_shows_error_sentinel(monkeypatch, capsys):
    _fake_clock(monkeypatch, 100)
    assert otp_cli.main(["watch", "--secret", "", "--ticks", "1"]) == 0
    assert "TOTP: Error" in capsys.readouterr().out


def test_watch_ctrl_c(monkeypatch, capsys):
    monkeypatch.setattr(otp_cli.time, "time", lambda: 59)

    def interrupt(seconds):
        raise KeyboardInterrupt

    monkeypatch.setattr(otp_cli.time, "sleep", interrupt)
    assert otp_cli.main(["watch", "--secret", RFC_HEX_SECRET]) == 0
    assert "Bye." in capsys.readouterr().out
