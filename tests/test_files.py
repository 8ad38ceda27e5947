"""Tests for configuration file discovery and decoding."""

import os as _os
import pathlib as _pathlib

import pytest as _pytest

import confstack.errors as errors
import confstack.files as files

_is_root = hasattr(_os, "geteuid") and _os.geteuid() == 0


class TestCandidatePaths:
    """Search order for local and home files."""

    def test_local_order(self, tmp_path: _pathlib.Path) -> None:
        paths = files.candidate_paths("myapp", tmp_path)
        relative = [str(p.relative_to(tmp_path)) for p in paths]

        assert relative[:8] == [
            "myapp.json",
            "myapp.jsonc",
            "myapp.yaml",
            "myapp.yml",
            "myapp.config.json",
            "myapp.config.jsonc",
            "myapp.config.yaml",
            "myapp.config.yml",
        ]
        assert relative[8] == _os.path.join("config", "myapp.json")
        assert relative[16] == _os.path.join(".config", "myapp.json")
        assert len(relative) == 32
        assert relative[24:] == [
            "package.json",
            "package.jsonc",
            "package.yaml",
            "package.yml",
            "pantry.json",
            "pantry.jsonc",
            "pantry.yaml",
            "pantry.yml",
        ]

    def test_home_order(self, tmp_path: _pathlib.Path) -> None:
        paths = files.home_candidate_paths("myapp", tmp_path)
        assert paths[0] == tmp_path / "myapp.json"
        assert paths[-1] == tmp_path / "myapp.config.yml"
        assert len(paths) == 8


class TestFindConfigFile:
    """find_config_file() and find_home_config_file()."""

    def test_nothing_found(self, project_dir: _pathlib.Path) -> None:
        assert files.find_config_file("myapp", project_dir) is None

    def test_json_beats_yaml(self, project_dir: _pathlib.Path) -> None:
        (project_dir / "myapp.yaml").write_text("a: 1\n")
        (project_dir / "myapp.json").write_text("{}")
        assert files.find_config_file("myapp", project_dir) == project_dir / "myapp.json"

    def test_root_beats_subdirectories(self, project_dir: _pathlib.Path) -> None:
        (project_dir / "config").mkdir()
        (project_dir / "config" / "myapp.json").write_text("{}")
        (project_dir / "myapp.config.yml").write_text("a: 1\n")
        assert (
            files.find_config_file("myapp", project_dir)
            == project_dir / "myapp.config.yml"
        )

    def test_dot_config_subdirectory(self, project_dir: _pathlib.Path) -> None:
        (project_dir / ".config").mkdir()
        target = project_dir / ".config" / "myapp.yml"
        target.write_text("a: 1\n")
        assert files.find_config_file("myapp", project_dir) == target

    def test_directories_are_not_files(self, project_dir: _pathlib.Path) -> None:
        (project_dir / "myapp.json").mkdir()
        assert files.find_config_file("myapp", project_dir) is None

    def test_home_lookup(self, fake_home: _pathlib.Path) -> None:
        config_dir = fake_home / ".config"
        config_dir.mkdir()
        (config_dir / "myapp.config.json").write_text("{}")
        assert (
            files.find_home_config_file("myapp", config_dir)
            == config_dir / "myapp.config.json"
        )

    def test_home_does_not_search_subdirectories(self, fake_home: _pathlib.Path) -> None:
        config_dir = fake_home / ".config"
        (config_dir / "config").mkdir(parents=True)
        (config_dir / "config" / "myapp.json").write_text("{}")
        assert files.find_home_config_file("myapp", config_dir) is None

    def test_package_manifest_is_last_resort(self, project_dir: _pathlib.Path) -> None:
        (project_dir / "package.json").write_text("{}")
        assert files.find_config_file("myapp", project_dir) == project_dir / "package.json"

        (project_dir / ".config").mkdir()
        (project_dir / ".config" / "myapp.yml").write_text("a: 1\n")
        assert (
            files.find_config_file("myapp", project_dir)
            == project_dir / ".config" / "myapp.yml"
        )

    def test_package_manifest_not_searched_in_home(self, fake_home: _pathlib.Path) -> None:
        config_dir = fake_home / ".config"
        config_dir.mkdir()
        (config_dir / "package.json").write_text("{}")
        assert files.find_home_config_file("myapp", config_dir) is None


class TestStripJsonComments:
    """strip_json_comments() for .jsonc files."""

    def test_line_comment(self) -> None:
        text = '{"a": 1} // trailing\n'
        assert files.strip_json_comments(text) == '{"a": 1} \n'

    def test_block_comment(self) -> None:
        assert files.strip_json_comments('{/* c */"a": 1}') == '{"a": 1}'

    def test_block_comment_keeps_newlines(self) -> None:
        stripped = files.strip_json_comments("{\n/* one\ntwo\n*/\n}")
        assert stripped.count("\n") == 4

    def test_markers_inside_strings_are_kept(self) -> None:
        text = '{"url": "http://example.com/*path*/"}'
        assert files.strip_json_comments(text) == text

    def test_escaped_quote_in_string(self) -> None:
        text = '{"q": "say \\"hi\\" // not a comment"}'
        assert files.strip_json_comments(text) == text

    def test_unterminated_line_comment_at_eof(self) -> None:
        assert files.strip_json_comments('{"a": 1} // end') == '{"a": 1} '


class TestLoadConfigFile:
    """load_config_file() decoding and error mapping."""

    def test_json(self, tmp_path: _pathlib.Path) -> None:
        path = tmp_path / "app.json"
        path.write_text('{"server": {"port": 8080}, "tags": ["a"]}')
        assert files.load_config_file(path) == {"server": {"port": 8080}, "tags": ["a"]}

    def test_jsonc(self, tmp_path: _pathlib.Path) -> None:
        path = tmp_path / "app.jsonc"
        path.write_text('{\n  // port\n  "port": 1, /* inline */ "host": "h"\n}\n')
        assert files.load_config_file(path) == {"port": 1, "host": "h"}

    @_pytest.mark.parametrize("suffix", [".yaml", ".yml"])
    def test_yaml(self, tmp_path: _pathlib.Path, suffix: str) -> None:
        path = tmp_path / f"app{suffix}"
        path.write_text("server:\n  port: 8080\n  debug: true\nhosts:\n  - a\n  - b\n")
        assert files.load_config_file(path) == {
            "server": {"port": 8080, "debug": True},
            "hosts": ["a", "b"],
        }

    def test_empty_yaml_is_null(self, tmp_path: _pathlib.Path) -> None:
        path = tmp_path / "app.yaml"
        path.write_text("")
        assert files.load_config_file(path) is None

    def test_top_level_scalar(self, tmp_path: _pathlib.Path) -> None:
        path = tmp_path / "app.json"
        path.write_text("42")
        assert files.load_config_file(path) == 42

    def test_json_syntax_error_has_position(self, tmp_path: _pathlib.Path) -> None:
        path = tmp_path / "app.json"
        path.write_text('{\n  "a": 1,\n  "b": \n}')
        with _pytest.raises(errors.ConfigFileSyntaxError) as exc_info:
            files.load_config_file(path)

        error = exc_info.value
        assert error.path == path
        assert error.line == 4
        assert error.column is not None
        assert str(path) in str(error)
        assert "line 4" in str(error)

    def test_jsonc_error_line_matches_file(self, tmp_path: _pathlib.Path) -> None:
        path = tmp_path / "app.jsonc"
        path.write_text('{\n// comment\n/* block\n */\n  "a": ,\n}')
        with _pytest.raises(errors.ConfigFileSyntaxError) as exc_info:
            files.load_config_file(path)
        assert exc_info.value.line == 5

    def test_yaml_syntax_error_has_position(self, tmp_path: _pathlib.Path) -> None:
        path = tmp_path / "app.yaml"
        path.write_text("a: [1, 2\nb: 3\n")
        with _pytest.raises(errors.ConfigFileSyntaxError) as exc_info:
            files.load_config_file(path)
        assert exc_info.value.line is not None
        assert exc_info.value.line >= 1

    def test_yaml_values_outside_model_are_invalid(self, tmp_path: _pathlib.Path) -> None:
        path = tmp_path / "app.yaml"
        path.write_text("released: 2024-01-01\n")
        with _pytest.raises(errors.ConfigFileInvalid, match="released"):
            files.load_config_file(path)

    def test_yaml_non_string_keys_are_invalid(self, tmp_path: _pathlib.Path) -> None:
        path = tmp_path / "app.yaml"
        path.write_text("1: one\n")
        with _pytest.raises(errors.ConfigFileInvalid, match="keys must be strings"):
            files.load_config_file(path)

    def test_yaml_self_referencing_anchor_is_invalid(self, tmp_path: _pathlib.Path) -> None:
        """An alias inside its own anchor builds a cycle; it is rejected."""
        path = tmp_path / "app.yaml"
        path.write_text("a: &x\n  - *x\n")
        with _pytest.raises(errors.ConfigFileInvalid, match="circular reference"):
            files.load_config_file(path)

    def test_yaml_repeated_alias_is_accepted(self, tmp_path: _pathlib.Path) -> None:
        path = tmp_path / "app.yaml"
        path.write_text("base: &b\n  port: 1\nprod: *b\nstage: *b\n")
        assert files.load_config_file(path) == {
            "base": {"port": 1},
            "prod": {"port": 1},
            "stage": {"port": 1},
        }

    def test_unsupported_suffix(self, tmp_path: _pathlib.Path) -> None:
        path = tmp_path / "app.toml"
        path.write_text("a = 1\n")
        with _pytest.raises(errors.ConfigFileInvalid, match="unsupported"):
            files.load_config_file(path)

    def test_invalid_utf8(self, tmp_path: _pathlib.Path) -> None:
        path = tmp_path / "app.json"
        path.write_bytes(b'{"a": "\xff"}')
        with _pytest.raises(errors.ConfigFileInvalid, match="UTF-8"):
            files.load_config_file(path)

    def test_missing_file(self, tmp_path: _pathlib.Path) -> None:
        with _pytest.raises(errors.ConfigFileNotFound) as exc_info:
            files.load_config_file(tmp_path / "missing.json")
        assert exc_info.value.code == "ConfigFileNotFound"

    def test_directory_is_invalid(self, tmp_path: _pathlib.Path) -> None:
        path = tmp_path / "dir.json"
        path.mkdir()
        with _pytest.raises(errors.ConfigFileError):
            files.load_config_file(path)

    @_pytest.mark.skipif(_is_root, reason="root ignores file permissions")
    def test_permission_denied(self, tmp_path: _pathlib.Path) -> None:
        path = tmp_path / "app.json"
        path.write_text("{}")
        path.chmod(0)
        try:
            with _pytest.raises(errors.ConfigFilePermissionDenied) as exc_info:
                files.load_config_file(path)
        finally:
            path.chmod(0o644)
        assert exc_info.value.retryable is True

    def test_errors_chain_cause(self, tmp_path: _pathlib.Path) -> None:
        path = tmp_path / "app.json"
        path.write_text("{")
        with _pytest.raises(errors.ConfigFileSyntaxError) as exc_info:
            files.load_config_file(path)
        assert exc_info.value.__cause__ is not None
