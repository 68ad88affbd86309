"""Tests for configuration loading."""

from todo_md.config import ConfigModel, load_config, save_config


class TestConfigModel:
    """Test the configuration model."""

    def test_defaults(self):
        config = ConfigModel()
        assert config.tab_size == 4
        assert config.done_symbol == "x "
        assert config.add_completion_date is False
        assert config.default_sort == "default"

    def test_yaml_round_trip(self):
        config = ConfigModel(tab_size=2, done_symbol="[x] ", add_completion_date=True)
        assert ConfigModel.from_yaml(config.to_yaml()) == config

    def test_unknown_keys_ignored(self):
        config = ConfigModel.from_yaml("tab_size: 8\ntheme: dark\n")
        assert config.tab_size == 8
        assert not hasattr(config, "theme")

    def test_invalid_values_fall_back(self):
        assert ConfigModel(tab_size=0).tab_size == 4
        assert ConfigModel(done_symbol="").done_symbol == "x "
        assert ConfigModel(done_symbol=5).done_symbol == "x "

    def test_empty_yaml(self):
        assert ConfigModel.from_yaml("") == ConfigModel()


class TestLoadConfig:
    """Test reading and writing configuration files."""

    def test_missing_file(self, tmp_path):
        assert load_config(tmp_path / "missing.yaml") == ConfigModel()

    def test_broken_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("tab_size: [\n")
        assert load_config(path) == ConfigModel()

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- one\n- two\n")
        assert load_config(path) == ConfigModel()

    def test_non_string_done_symbol(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("done_symbol: 5\n")
        assert load_config(path).done_symbol == "x "

    def test_save_then_load(self, tmp_path):
        path = tmp_path / "nested" / "config.yaml"
        config = ConfigModel(tab_size=2, show_completed=False)
        save_config(config, path)
        assert path.exists()
        assert load_config(path) == config
