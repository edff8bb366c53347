import json
import os

from bundle_size.config import (
    ConfigHelper,
    cast_env_value,
    get_config,
    merge,
    parse_env_var,
)


class TestConfig(object):
    def test_get_config_nothing_user_set(self, mocker):
        mocker.patch.dict(os.environ, {}, clear=True)
        mocker.patch.object(
            ConfigHelper, "load_yaml_file", side_effect=FileNotFoundError()
        )
        this_config = ConfigHelper()
        mocker.patch(
            "bundle_size.config._get_config_instance", return_value=this_config
        )
        assert get_config("bundle_size", "threshold") == 1024
        assert get_config("bundle_size", "comment_strategy") == "always"
        assert get_config("bundle_size", "base_branch") == "main"
        assert get_config("bundle_size", "build_directory") == ".next"
        assert get_config("bundle_size", "install_command") == "npm ci"
        assert get_config("bundle_size", "install_args") == "--legacy-peer-deps"
        assert get_config("bundle_size", "build_command") == "npm run build"
        assert get_config("bundle_size", "snapshot_store") == "rebuild"
        assert get_config("github", "api_url") == "https://api.github.com"
        assert get_config("github", "bot", "key") is None
        assert get_config("github", "bot", "key", default="fallback") == "fallback"

    def test_get_config_yaml_and_env(self, mocker):
        yaml_content = "\n".join(
            [
                "bundle_size:",
                "  threshold: 5kb",
                "  comment_strategy: skip-insignificant",
                "  base_branch: origin/develop",
                "  build_command:",
                "    - yarn",
                "    - build",
                "github:",
                "  bot:",
                "    key: yaml-token",
            ]
        )
        mocker.patch.dict(
            os.environ,
            {
                "BUNDLE_SIZE__INSTALL_ARGS": "--frozen-lockfile",
                "GITHUB__BOT__KEY": "env-token",
            },
            clear=True,
        )
        mocker.patch.object(ConfigHelper, "load_yaml_file", return_value=yaml_content)
        this_config = ConfigHelper()
        mocker.patch(
            "bundle_size.config._get_config_instance", return_value=this_config
        )
        assert get_config("bundle_size", "threshold") == 5120
        assert get_config("bundle_size", "comment_strategy") == "skip-insignificant"
        assert get_config("bundle_size", "base_branch") == "develop"
        assert get_config("bundle_size", "build_command") == "yarn build"
        assert get_config("bundle_size", "install_command") == "npm ci"
        assert get_config("bundle_size", "install_args") == "--frozen-lockfile"
        assert get_config("github", "bot", "key") == "env-token"

    def test_get_config_invalid_values_are_kept(self, mocker):
        mocker.patch.dict(os.environ, {"BUNDLE_SIZE__THRESHOLD": "-5"}, clear=True)
        mocker.patch.object(
            ConfigHelper, "load_yaml_file", side_effect=FileNotFoundError()
        )
        this_config = ConfigHelper()
        mocker.patch(
            "bundle_size.config._get_config_instance", return_value=this_config
        )
        assert get_config("bundle_size", "threshold") == -5

    def test_parse_env_var(self):
        assert parse_env_var("BUNDLE_SIZE__THRESHOLD", "2048") == (
            ["bundle_size", "threshold"],
            2048,
        )
        assert parse_env_var("BUNDLE_SIZE__VERBOSE", "true") == (
            ["bundle_size", "verbose"],
            True,
        )
        assert parse_env_var(
            "JSONCONFIG___BUNDLE_SIZE__BUILD_COMMAND", json.dumps(["pnpm", "build"])
        ) == (["bundle_size", "build_command"], ["pnpm", "build"])

    def test_cast_env_value(self):
        assert cast_env_value("off") is False
        assert cast_env_value("-3") == -3
        assert cast_env_value("1.5") == 1.5
        assert cast_env_value("2kb") == "2kb"

    def test_merge_keeps_base_untouched(self):
        base = {"bundle_size": {"threshold": 1024, "base_branch": "main"}}
        result = merge(base, {"bundle_size": {"base_branch": "trunk"}, "x": 1})
        assert result == {
            "bundle_size": {"threshold": 1024, "base_branch": "trunk"},
            "x": 1,
        }
        assert base["bundle_size"]["base_branch"] == "main"

    def test_load_env_var(self, mocker):
        mocker.patch.dict(
            os.environ,
            {
                "BUNDLE_SIZE__BASE_BRANCH": "trunk",
                "GITHUB__BOT__KEY": "abc",
                "__IGNORED__VAR": "1",
                "PATH": "/usr/bin",
            },
            clear=True,
        )
        assert ConfigHelper().load_env_var() == {
            "bundle_size": {"base_branch": "trunk"},
            "github": {"bot": {"key": "abc"}},
        }

    def test_yaml_content(self, mocker, tmp_path):
        yaml_path = tmp_path / "bundle-size.yml"
        yaml_path.write_text("bundle_size:\n  base_branch: trunk\n")
        mocker.patch.dict(os.environ, {"BUNDLE_SIZE_YML": str(yaml_path)})
        assert ConfigHelper().yaml_content() == {
            "bundle_size": {"base_branch": "trunk"}
        }

    def test_yaml_content_empty_file(self, mocker, tmp_path):
        yaml_path = tmp_path / "bundle-size.yml"
        yaml_path.write_text("")
        mocker.patch.dict(os.environ, {"BUNDLE_SIZE_YML": str(yaml_path)})
        assert ConfigHelper().yaml_content() == {}
