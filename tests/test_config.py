import logging

from malisp import config


def test_prelude_root_defaults_to_package_directory(monkeypatch):
    monkeypatch.delenv("MALISP_PRELUDE_PATH", raising=False)
    root = config.get_prelude_root()
    assert root.name == "prelude"
    assert (root / "system.lisp").is_file()


def test_prelude_root_from_file_path(monkeypatch, tmp_path):
    prelude = tmp_path / "system.lisp"
    prelude.write_text("", encoding="utf-8")
    monkeypatch.setenv("MALISP_PRELUDE_PATH", str(prelude))
    assert config.get_prelude_root() == tmp_path


def test_log_level(monkeypatch):
    monkeypatch.delenv("MALISP_LOG_LEVEL", raising=False)
    assert config.get_log_level() == logging.WARNING
    monkeypatch.setenv("MALISP_LOG_LEVEL", "debug")
    assert config.get_log_level() == logging.DEBUG
    monkeypatch.setenv("MALISP_LOG_LEVEL", "chatty")
    assert config.get_log_level() == logging.WARNING


def test_repl_address(monkeypatch):
    monkeypatch.delenv("MALISP_REPL_HOST", raising=False)
    monkeypatch.setenv("MALISP_REPL_PORT", "not-a-port")
    assert config.get_repl_address() == (config.DEFAULT_REPL_HOST, config.DEFAULT_REPL_PORT)
