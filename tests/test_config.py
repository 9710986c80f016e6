"""Tests for configuration loading."""

import json

from awaybot.config.loader import load_config, save_config
from awaybot.config.schema import Config


class TestConfig:

    def test_defaults(self):
        config = Config()
        assert config.provider.model == "groq/llama-3.3-70b-versatile"
        assert config.provider.temperature == 0.7
        assert config.provider.max_tokens == 500
        assert config.responder.rate_limit.max_messages == 10
        assert config.responder.history_limit == 20

    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_config(tmp_path / "missing.json")
        assert config.responder.bot_name == "Zero"

    def test_corrupt_file_gives_defaults(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{oops")
        assert load_config(path).responder.owner_name == "Sunny"

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "config.json"
        config = Config()
        config.responder.owner_name = "Asha"
        config.workspace = str(tmp_path / "data")
        save_config(config, path)

        loaded = load_config(path)
        assert loaded.responder.owner_name == "Asha"
        assert loaded.workspace_path == tmp_path / "data"
        assert json.loads(path.read_text())["responder"]["owner_name"] == "Asha"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("AWAYBOT_RESPONDER__BOT_NAME", "Nova")
        assert Config().responder.bot_name == "Nova"
