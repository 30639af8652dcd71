import logging
from pathlib import Path

import pytest

from tracker.config import CONFIG_ENV_VAR, AppSettings
from tracker.exceptions import ConfigError
from tracker.logger import LOGGER_NAME, UserContextFilter, get_logger

SHIPPED_CONFIG = Path(__file__).parent.parent / "config.yaml"


def test_load_shipped_config():
    settings = AppSettings.load(SHIPPED_CONFIG)

    assert settings.dashboard_limit == 100
    assert settings.recent_count == 5
    assert settings.uncategorized_label == "Uncategorized"
    assert settings.uncategorized_color == "#6b7280"
    assert "mobile_payment" in settings.payment_methods
    assert settings.validate() == (True, "")


def test_partial_config_keeps_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("logging:\n  level: debug\ndashboard:\n  limit: 25\n", encoding="utf-8")

    settings = AppSettings.load(path)

    assert settings.log_level == "DEBUG"
    assert settings.dashboard_limit == 25
    assert settings.default_currency == "USD"
    assert settings.currencies == ("USD", "EUR", "GBP", "JPY", "CAD", "AUD")


def test_config_path_from_environment(tmp_path, monkeypatch):
    path = tmp_path / "custom.yaml"
    path.write_text("app:\n  name: Budget Lens\n", encoding="utf-8")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

    assert AppSettings.load().app_name == "Budget Lens"


def test_missing_config_raises(tmp_path):
    with pytest.raises(ConfigError):
        AppSettings.load(tmp_path / "nope.yaml")


def test_invalid_config_raises(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("dashboard:\n  limit: lots\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        AppSettings.load(path)

    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        AppSettings.load(path)


def test_validate_catches_bad_values():
    assert AppSettings(dashboard_limit=0).validate()[0] is False
    assert AppSettings(default_currency="XYZ").validate()[0] is False


def test_user_context_filter():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
    context = UserContextFilter()

    assert context.filter(record)
    assert record.user_id == "anonymous"

    context.user_id = "u1"
    context.filter(record)
    assert record.user_id == "u1"


def test_child_loggers_share_package_name():
    assert get_logger().name == LOGGER_NAME
    assert get_logger("insights").name == f"{LOGGER_NAME}.insights"


def test_chart_template_is_used_for_dark_theme(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("dashboard:\n  chart_template: seaborn\n", encoding="utf-8")
    settings = AppSettings.load(path)

    assert settings.chart_template == "seaborn"
    assert settings.template_for("dark") == "seaborn"
    assert settings.template_for("light") == "plotly_white"
    assert AppSettings().template_for("dark") == "plotly_dark"
