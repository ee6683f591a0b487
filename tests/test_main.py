"""Tests for the application entry point."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest


class TestMain:
    @patch("streamcircle.__main__.run_server")
    @patch("streamcircle.__main__.create_api")
    @patch("streamcircle.__main__.Config")
    @patch("sys.argv", ["streamcircle", "--port=5000", "--host=127.0.0.1"])
    def test_main_runs(self, mock_config_cls, mock_create_api, mock_run):
        from streamcircle.__main__ import main

        mock_config = MagicMock()
        mock_config.validate.return_value = []
        mock_config.host = "127.0.0.1"
        mock_config.port = 5000
        mock_config_cls.from_args.return_value = mock_config

        mock_app = MagicMock()
        mock_create_api.return_value = mock_app

        main()

        mock_config_cls.from_args.assert_called_once_with(
            host="127.0.0.1", port=5000, database_url=None
        )
        mock_create_api.assert_called_once_with(mock_config)
        mock_run.assert_called_once_with(mock_app, "127.0.0.1", 5000)

    @patch("streamcircle.__main__.run_server")
    @patch("streamcircle.__main__.create_api")
    @patch("streamcircle.__main__.Config")
    @patch("sys.argv", ["streamcircle"])
    def test_main_exits_on_invalid_config(self, mock_config_cls, mock_create_api, mock_run):
        from streamcircle.__main__ import main

        mock_config = MagicMock()
        mock_config.validate.return_value = ["SERVER_ADMIN_TOKEN is not set."]
        mock_config_cls.from_args.return_value = mock_config

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 1
        mock_create_api.assert_not_called()
        mock_run.assert_not_called()
