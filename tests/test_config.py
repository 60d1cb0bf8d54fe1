"""Tests for envstack.config.Policy"""

import os

import pytest

from envstack.config import DEFAULT_ENV_FILE, Policy
from envstack.exceptions import ConfigurationError


class TestPolicyDefaults:
    def test_defaults(self):
        policy = Policy()
        assert policy.files == []
        assert policy.paths == ["."]
        assert policy.lookup_git is False
        assert policy.lookup_module is False
        assert policy.disable_name_expansion is False
        assert policy.disable_path_expansion is False
        assert policy.debug is False

    def test_files_or_default_falls_back_to_dotenv(self):
        assert Policy().files_or_default() == [DEFAULT_ENV_FILE]
        assert DEFAULT_ENV_FILE == ".env"

    def test_files_or_default_keeps_order(self):
        policy = Policy(files=[".env", ".env.local"])
        assert policy.files_or_default() == [".env", ".env.local"]

    def test_files_or_default_returns_a_copy(self):
        policy = Policy(files=[".env"])
        policy.files_or_default().append("other")
        assert policy.files == [".env"]

    def test_instances_do_not_share_lists(self):
        a, b = Policy(), Policy()
        a.files.append(".env.a")
        a.paths.append("/etc")
        assert b.files == []
        assert b.paths == ["."]


class TestPolicyCopy:
    def test_copy_is_equal(self):
        policy = Policy(files=["a"], paths=["/x"], lookup_git=True, debug=True)
        assert policy.copy() == policy

    def test_copy_is_independent(self):
        policy = Policy(files=["a"], paths=["/x"])
        clone = policy.copy()
        clone.files.append("b")
        clone.paths.append("/y")
        clone.lookup_module = True

        assert policy.files == ["a"]
        assert policy.paths == ["/x"]
        assert policy.lookup_module is False


class TestPolicyFromEnv:
    def test_empty_environment_gives_defaults(self):
        assert Policy.from_env(env={}) == Policy()

    def test_reads_os_environ_by_default(self, monkeypatch):
        monkeypatch.setenv("ENVSTACK_FILES", ".env.test")
        monkeypatch.setenv("ENVSTACK_LOOKUP_GIT", "true")

        policy = Policy.from_env()
        assert policy.files == [".env.test"]
        assert policy.lookup_git is True

    def test_files_are_comma_separated(self):
        policy = Policy.from_env(env={"ENVSTACK_FILES": ".env, .env.local,,config/.env"})
        assert policy.files == [".env", ".env.local", "config/.env"]

    def test_paths_use_os_pathsep(self):
        value = os.pathsep.join(["/etc/app", "", "$HOME/app"])
        policy = Policy.from_env(env={"ENVSTACK_PATHS": value})
        assert policy.paths == ["/etc/app", "$HOME/app"]

    def test_empty_paths_fall_back_to_cwd(self):
        assert Policy.from_env(env={"ENVSTACK_PATHS": ""}).paths == ["."]

    @pytest.mark.parametrize(
        "variable,attribute",
        [
            ("ENVSTACK_LOOKUP_GIT", "lookup_git"),
            ("ENVSTACK_LOOKUP_MODULE", "lookup_module"),
            ("ENVSTACK_DISABLE_NAME_EXPANSION", "disable_name_expansion"),
            ("ENVSTACK_DISABLE_PATH_EXPANSION", "disable_path_expansion"),
            ("ENVSTACK_DEBUG", "debug"),
        ],
    )
    def test_boolean_flags(self, variable, attribute):
        assert getattr(Policy.from_env(env={variable: "1"}), attribute) is True
        assert getattr(Policy.from_env(env={variable: "0"}), attribute) is False

    @pytest.mark.parametrize("value", ["1", "true", "TRUE", "yes", "On", " true "])
    def test_true_values(self, value):
        assert Policy.from_env(env={"ENVSTACK_DEBUG": value}).debug is True

    @pytest.mark.parametrize("value", ["", "0", "false", "No", "off"])
    def test_false_values(self, value):
        assert Policy.from_env(env={"ENVSTACK_DEBUG": value}).debug is False

    def test_invalid_boolean_raises(self):
        with pytest.raises(ConfigurationError) as exc_info:
            Policy.from_env(env={"ENVSTACK_LOOKUP_GIT": "maybe"})

        err = exc_info.value
        assert err.code == "CONFIGURATION_ERROR"
        assert "ENVSTACK_LOOKUP_GIT" in err.message
        assert err.details == {"variable": "ENVSTACK_LOOKUP_GIT", "value": "maybe"}

    def test_custom_prefix(self):
        env = {"MYAPP_FILES": ".env.prod", "ENVSTACK_FILES": ".env.ignored"}
        assert Policy.from_env("MYAPP", env=env).files == [".env.prod"]
