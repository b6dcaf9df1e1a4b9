import logging
from pathlib import Path

import pytest

from gk_authenticator import cli
from gk_authenticator.store.account_store import AccountStore, StoreConfig

KEY = "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"


@pytest.fixture
def store_dir(tmp_path: Path, monkeypatch) -> Path:
    directory = tmp_path / "store"
    monkeypatch.setenv("GK_AUTHENTICATOR_DIR", str(directory))
    return directory


def _load(store_dir: Path) -> AccountStore:
    return AccountStore.load(StoreConfig(directory=store_dir))


def test_add_defaults_to_totp_sha1(store_dir: Path) -> None:
    assert cli.main(["add", "--account", "github", "--key", KEY.lower()]) == 0

    account = _load(store_dir).get("github")
    assert account.key == KEY
    assert account.totp is True
    assert account.algorithm.value == "sha1"


def test_add_hotp_with_algorithm(store_dir: Path) -> None:
    assert cli.main(["add", "--account", "bank", "-k", KEY, "--hotp", "-a", "sha512"]) == 0

    account = _load(store_dir).get("bank")
    assert account.totp is False
    assert account.counter == 0
    assert account.algorithm.value == "sha512"


def test_add_rejects_both_modes(store_dir: Path) -> None:
    with pytest.raises(SystemExit) as info:
        cli.main(["add", "--account", "x", "--key", KEY, "--totp", "--hotp"])
    assert info.value.code == 2


def test_add_rejects_invalid_key(store_dir: Path, capsys) -> None:
    with pytest.raises(SystemExit) as info:
        cli.main(["add", "--account", "x", "--key", "abc!"])
    assert info.value.code == 2
    assert "Base32 decode error" in capsys.readouterr().err


def test_add_rejects_empty_account_name(store_dir: Path, capsys) -> None:
    with pytest.raises(SystemExit) as info:
        cli.main(["add", "--account", "", "--key", KEY])
    assert info.value.code == 2
    assert "account name must not be empty" in capsys.readouterr().err

    assert cli.main(["list"]) == 0


def test_add_duplicate_fails(store_dir: Path, caplog) -> None:
    cli.main(["add", "--account", "github", "--key", KEY])

    with caplog.at_level(logging.ERROR, logger="gk_authenticator"):
        assert cli.main(["add", "--account", "github", "--key", KEY, "--hotp"]) == 1
    assert "already exists" in caplog.text
    assert _load(store_dir).get("github").totp is True


def test_view_hotp_prints_code_and_advances(store_dir: Path, capsys) -> None:
    cli.main(["add", "--account", "bank", "--key", KEY, "--hotp"])
    capsys.readouterr()

    assert cli.main(["view", "--account", "bank"]) == 0
    assert cli.main(["view", "--account", "bank", "--length", "8"]) == 0

    assert capsys.readouterr().out.splitlines() == ["755224", "94287082"]
    assert _load(store_dir).get("bank").counter == 2


def test_view_missing_account_exits_non_zero(store_dir: Path, caplog) -> None:
    with caplog.at_level(logging.ERROR, logger="gk_authenticator"):
        assert cli.main(["view", "--account", "nope"]) == 1
    assert "nope" in caplog.text


@pytest.mark.parametrize("length", ["0", "10", "six"])
def test_length_out_of_range(store_dir: Path, length: str) -> None:
    with pytest.raises(SystemExit) as info:
        cli.main(["list", "--length", length])
    assert info.value.code == 2


def test_list_prints_every_account(store_dir: Path, capsys) -> None:
    cli.main(["add", "--account", "bank", "--key", KEY, "--hotp"])
    cli.main(["add", "--account", "github", "--key", KEY])
    capsys.readouterr()

    assert cli.main(["list", "-l", "4"]) == 0

    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "bank: 5224"
    assert lines[1].startswith("github: ") and len(lines[1]) == len("github: ") + 4
    assert _load(store_dir).get("bank").counter == 1


def test_delete(store_dir: Path) -> None:
    cli.main(["add", "--account", "github", "--key", KEY])

    assert cli.main(["delete", "--account", "github"]) == 0
    assert cli.main(["delete", "--account", "github"]) == 1
    assert len(_load(store_dir)) == 0


def test_store_dir_flag_overrides_env(store_dir: Path, tmp_path: Path) -> None:
    other = tmp_path / "other"
    assert cli.main(["--store-dir", str(other), "add", "--account", "github", "--key", KEY]) == 0

    assert "github" in _load(other)
    assert "github" not in _load(store_dir)


def test_corrupt_store_exits_non_zero(store_dir: Path, caplog) -> None:
    store_dir.mkdir()
    (store_dir / "account.json").write_text("{bad json", encoding="utf-8")

    with caplog.at_level(logging.ERROR, logger="gk_authenticator"):
        assert cli.main(["list"]) == 1
    assert "Failed to decode account store" in caplog.text
    assert (store_dir / "account.json").read_text(encoding="utf-8") == "{bad json"
