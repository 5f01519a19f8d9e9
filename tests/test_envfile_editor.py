from __future__ import annotations

from pathlib import Path

import pytest

from src.bootstrap.errors import EnvFileMissing
from src.envfile.editor import EnvFile, apply_env_overrides, read_env_values

OVERRIDES = {
    "DB_CONNECTION": "mysql",
    "DB_HOST": "mysql",
    "DB_DATABASE": "laravel",
    "MAIL_HOST": "mailpit",
}


def test_active_lines_are_replaced_wholesale() -> None:
    env = EnvFile.parse("DB_CONNECTION=sqlite\nDB_HOST = 127.0.0.1 # local\n")
    changed = env.apply({"DB_CONNECTION": "mysql", "DB_HOST": "mysql"})
    assert changed == ["DB_CONNECTION", "DB_HOST"]
    assert env.render() == "DB_CONNECTION=mysql\nDB_HOST=mysql\n"


def test_commented_assignment_is_reactivated_in_place() -> None:
    env = EnvFile.parse("DB_CONNECTION=sqlite\n# DB_HOST=127.0.0.1\nAPP_DEBUG=true\n")
    env.apply({"DB_HOST": "mysql"})
    assert env.render() == "DB_CONNECTION=sqlite\nDB_HOST=mysql\nAPP_DEBUG=true\n"


def test_missing_key_is_appended() -> None:
    env = EnvFile.parse("APP_NAME=Laravel\n")
    env.apply({"MAIL_PORT": "1025"})
    assert env.render() == "APP_NAME=Laravel\nMAIL_PORT=1025\n"


def test_comments_and_blank_lines_survive() -> None:
    text = "# app\nAPP_NAME=Laravel\n\n# Mail settings below\nMAIL_HOST=127.0.0.1\n"
    env = EnvFile.parse(text)
    env.apply({"MAIL_HOST": "mailpit"})
    assert env.render() == text.replace("127.0.0.1", "mailpit")


def test_missing_trailing_newline_is_preserved() -> None:
    env = EnvFile.parse("A=1")
    env.apply({"A": "2"})
    assert env.render() == "A=2"


def test_values_ignore_commented_lines() -> None:
    env = EnvFile.parse('A=1\n# B=2\nexport C="three"\n')
    assert env.values() == {"A": "1", "C": "three"}


def test_values_follow_dotenv_rules() -> None:
    env = EnvFile.parse('APP_NAME=Laravel # app\nMAIL_FROM_NAME="${APP_NAME}"\nAPP_KEY=\n')
    assert env.values() == {
        "APP_NAME": "Laravel",
        "MAIL_FROM_NAME": "Laravel",
        "APP_KEY": "",
    }


@pytest.mark.parametrize("times", [1, 2, 5])
def test_rewrite_is_idempotent(tmp_path: Path, times: int) -> None:
    base = "DB_CONNECTION=sqlite\n# DB_HOST=127.0.0.1\n# DB_DATABASE=laravel\nMAIL_HOST=127.0.0.1\n"
    once = tmp_path / "once.env"
    many = tmp_path / "many.env"
    once.write_text(base, encoding="utf-8")
    many.write_text(base, encoding="utf-8")

    apply_env_overrides(once, OVERRIDES)
    for _ in range(times):
        apply_env_overrides(many, OVERRIDES)

    assert many.read_bytes() == once.read_bytes()


def test_second_application_reports_no_changes(tmp_path: Path) -> None:
    p = tmp_path / ".env"
    p.write_text("DB_CONNECTION=sqlite\n", encoding="utf-8")
    assert apply_env_overrides(p, OVERRIDES) == list(OVERRIDES)
    assert apply_env_overrides(p, OVERRIDES) == []
    assert read_env_values(p) == OVERRIDES


def test_missing_file_strict_raises(tmp_path: Path) -> None:
    with pytest.raises(EnvFileMissing):
        apply_env_overrides(tmp_path / ".env", OVERRIDES)


def test_missing_file_best_effort_is_silent(tmp_path: Path) -> None:
    assert apply_env_overrides(tmp_path / ".env", OVERRIDES, missing_ok=True) is None
    assert not (tmp_path / ".env").exists()


def test_read_env_values_of_absent_file(tmp_path: Path) -> None:
    assert read_env_values(tmp_path / "nope.env") == {}


def test_read_only_file_is_replaced_not_written_in_place(tmp_path: Path) -> None:
    p = tmp_path / ".env"
    p.write_text("DB_CONNECTION=sqlite\n", encoding="utf-8")
    p.chmod(0o444)
    before = p.stat().st_ino
    try:
        assert apply_env_overrides(p, {"DB_CONNECTION": "mysql"}) == ["DB_CONNECTION"]
        assert p.read_text(encoding="utf-8") == "DB_CONNECTION=mysql\n"
        assert p.stat().st_mode & 0o777 == 0o444
        assert p.stat().st_ino != before
    finally:
        p.chmod(0o644)
    assert sorted(c.name for c in tmp_path.iterdir()) == [".env"]


def test_unchanged_file_is_left_alone(tmp_path: Path) -> None:
    p = tmp_path / ".env"
    p.write_text("DB_CONNECTION=mysql\n", encoding="utf-8")
    before = p.stat().st_ino
    assert apply_env_overrides(p, {"DB_CONNECTION": "mysql"}) == []
    assert p.stat().st_ino == before


def test_read_env_values_expands_references(tmp_path: Path) -> None:
    p = tmp_path / ".env"
    p.write_text('APP_NAME=Laravel\nMAIL_FROM_NAME="${APP_NAME}"\n', encoding="utf-8")
    assert read_env_values(p)["MAIL_FROM_NAME"] == "Laravel"
