import json
from pathlib import Path

import pytest

from bundle_size.config import ConfigHelper


@pytest.fixture
def mock_configuration(mocker):
    m = mocker.patch("bundle_size.config._get_config_instance")
    mock_config = ConfigHelper()
    m.return_value = mock_config
    our_config = {
        "bundle_size": {
            "threshold": 1024,
            "comment_strategy": "always",
            "base_branch": "main",
            "working_directory": ".",
            "build_directory": ".next",
            "install_command": "npm ci",
            "install_args": "--legacy-peer-deps",
            "build_command": "npm run build",
            "snapshot_store": "storage",
            "bucket_name": "bundle-size-test",
        },
        "github": {
            "api_url": "https://api.github.com",
            "bot": {"key": "bot-token"},
        },
    }
    mock_config.set_params(our_config)
    return mock_config


@pytest.fixture
def make_build(tmp_path):
    """
    Writes a fake Next.js build output: a manifest plus asset files of the given sizes.

        build_dir = make_build({"/": ["static/a.js"]}, {"static/a.js": 1000})
    """

    def _make_build(
        routes,
        files,
        manifest_name="app-build-manifest.json",
        routes_key="pages",
        root=None,
    ) -> Path:
        build_dir = Path(root) if root is not None else tmp_path / ".next"
        build_dir.mkdir(parents=True, exist_ok=True)
        (build_dir / manifest_name).write_text(json.dumps({routes_key: routes}))
        for name, size in files.items():
            path = build_dir / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(b"x" * size)
        return build_dir

    return _make_build
