"""Application settings loaded from config.yaml."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from tracker.exceptions import ConfigError

CONFIG_ENV_VAR = "EXPENSE_INSIGHTS_CONFIG"
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config.yaml"


@dataclass(frozen=True)
class AppSettings:
    app_name: str = "Expense Insights"
    log_level: str = "INFO"
    seed_path: str = "data/seed.json"
    dashboard_limit: int = 100
    recent_count: int = 5
    default_currency: str = "USD"
    currencies: tuple[str, ...] = ("USD", "EUR", "GBP", "JPY", "CAD", "AUD")
    payment_methods: tuple[str, ...] = ("card", "cash", "bank_transfer", "mobile_payment")
    uncategorized_label: str = "Uncategorized"
    uncategorized_color: str = "#6b7280"
    chart_template: str = "plotly_dark"
    extra: dict = field(default_factory=dict)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "AppSettings":
        """Load settings from YAML; unset keys keep their defaults."""
        if config_path is None:
            env_path = os.environ.get(CONFIG_ENV_VAR)
            config_path = Path(env_path) if env_path else DEFAULT_CONFIG_PATH
        config_path = Path(config_path)

        if not config_path.exists():
            raise ConfigError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid configuration file {config_path}: {e}") from e

        if not isinstance(config, dict):
            raise ConfigError(f"Configuration root must be a mapping: {config_path}")

        app = config.get("app", {})
        logging_cfg = config.get("logging", {})
        data = config.get("data", {})
        dashboard = config.get("dashboard", {})
        expenses = config.get("expenses", {})
        categories = config.get("categories", {})

        defaults = cls()
        try:
            return cls(
                app_name=app.get("name", defaults.app_name),
                log_level=str(logging_cfg.get("level", defaults.log_level)).upper(),
                seed_path=data.get("seed_path", defaults.seed_path),
                dashboard_limit=int(dashboard.get("limit", defaults.dashboard_limit)),
                recent_count=int(dashboard.get("recent_count", defaults.recent_count)),
                chart_template=dashboard.get("chart_template", defaults.chart_template),
                default_currency=expenses.get("default_currency", defaults.default_currency),
                currencies=tuple(expenses.get("currencies", defaults.currencies)),
                payment_methods=tuple(expenses.get("payment_methods", defaults.payment_methods)),
                uncategorized_label=categories.get("uncategorized_label", defaults.uncategorized_label),
                uncategorized_color=categories.get("uncategorized_color", defaults.uncategorized_color),
                extra={k: v for k, v in config.items()
                       if k not in ("app", "logging", "data", "dashboard", "expenses", "categories")},
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration value in {config_path}: {e}") from e

    def validate(self) -> tuple[bool, str]:
        """Validate setting values."""
        if self.dashboard_limit <= 0:
            return False, "dashboard.limit must be positive"
        if self.recent_count < 0:
            return False, "dashboard.recent_count must not be negative"
        if self.default_currency not in self.currencies:
            return False, f"default currency {self.default_currency} is not in currencies"
        return True, ""

    def template_for(self, theme: str) -> str:
        """Plotly template for the UI theme; the configured one is the dark theme."""
        return self.chart_template if theme == "dark" else "plotly_white"
