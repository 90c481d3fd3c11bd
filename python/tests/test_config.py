"""
Tests for configuration resolution.
"""

import dataclasses

import pytest

from lesswatch.config import BuildConfig, CompilerOptions, normalize_extension


class TestNormalizeExtension:
    def test_adds_leading_dot(self):
        assert normalize_extension("css") == ".css"

    def test_keeps_dotted(self):
        assert normalize_extension(".less.css") == ".less.css"

    def test_rejects_empty(self):
        with pytest.raises(ValueError):
            normalize_extension("")


def test_defaults(project_root):
    config = BuildConfig.resolve(directory=project_root)

    assert config.root == project_root
    assert config.output == project_root
    assert config.extension == ".less.css"
    assert config.ignore == frozenset()
    assert config.files == frozenset()
    assert config.compiler == CompilerOptions(compress=False, optimization=0, source_map=False)
    assert config.source_extension == ".less"
    assert config.partial_prefix == "_"
    assert config.initial_build is True
    assert config.serialize_builds is False


def test_root_defaults_to_cwd(project_root):
    config = BuildConfig.resolve(cwd=project_root)
    assert config.root == project_root


def test_relative_directories_resolve_against_cwd(project_root):
    (project_root / "styles").mkdir()
    config = BuildConfig.resolve(directory="styles", output="build", cwd=project_root)

    assert config.root == project_root / "styles"
    assert config.output == project_root / "build"
    assert config.root.is_absolute()


def test_missing_root(tmp_path):
    with pytest.raises(FileNotFoundError):
        BuildConfig.resolve(directory=tmp_path / "missing")


def test_root_is_a_file(tmp_path):
    file_path = tmp_path / "not_a_dir.less"
    file_path.write_text("")
    with pytest.raises(ValueError, match="not a directory"):
        BuildConfig.resolve(directory=file_path)


@pytest.mark.parametrize("level", [-1, 3, 10])
def test_invalid_optimization(project_root, level):
    with pytest.raises(ValueError, match="optimization"):
        BuildConfig.resolve(directory=project_root, optimization=level)


def test_invalid_poll_interval(project_root):
    with pytest.raises(ValueError):
        BuildConfig.resolve(directory=project_root, use_polling=True, poll_interval=0)


def test_options_are_passed_through(project_root):
    config = BuildConfig.resolve(
        directory=project_root,
        extension="min.css",
        ignore=["node_modules", "vendor"],
        compress=True,
        optimization=2,
        source_map=True,
        lessc="/opt/less/bin/lessc",
    )

    assert config.extension == ".min.css"
    assert config.ignore == frozenset({"node_modules", "vendor"})
    assert config.compiler == CompilerOptions(compress=True, optimization=2, source_map=True)
    assert config.lessc == "/opt/less/bin/lessc"


def test_allow_list_normalization(project_root):
    config = BuildConfig.resolve(
        directory=project_root,
        files=["./main.less", "themes\\dark.less", "sub/c.less"],
    )
    assert config.files == frozenset({"main.less", "themes/dark.less", "sub/c.less"})


def test_config_is_immutable(project_root):
    config = BuildConfig.resolve(directory=project_root)
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.extension = ".css"  # type: ignore[misc]
