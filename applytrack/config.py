"""
Configuration management for ApplyTrack.

This module provides configuration management including:
- .env file support for environment variables
- Settings persistence and validation
- Default values and type checking
- CLI integration for config management
"""

import os
import json
from pathlib import Path
from typing import Dict, Any, Optional, List
from dotenv import load_dotenv, set_key, unset_key
from rich.console import Console
from rich.table import Table


class ConfigManager:
    """Manages ApplyTrack configuration settings and .env files."""

    DEFAULT_CONFIG = {
        "database": {
            "path": "data/applytrack.db"
        },

        # Google Sheets import settings
        "sheets": {
            "api_base_url": "https://sheets.googleapis.com/v4/spreadsheets",
            "timeout": 30,
            "max_rows": 1000,
            "last_column": "F",
            "preview_rows": 5
        },

        # Ollama settings (resume enhancement)
        "ollama": {
            "host": "localhost",
            "port": 11434,
            "model": "llama3.1",
            "timeout": 120
        },

        "cli": {
            "default_table_limit": 50,
            "max_errors_shown": 5,
            "color_output": True
        },

        "webapp": {
            "host": "127.0.0.1",
            "port": 5000
        }
    }

    ENV_MAPPINGS = {
        "APPLYTRACK_DB_PATH": ("database", "path"),

        "APPLYTRACK_SHEETS_API_URL": ("sheets", "api_base_url"),
        "APPLYTRACK_SHEETS_TIMEOUT": ("sheets", "timeout"),
        "APPLYTRACK_SHEETS_MAX_ROWS": ("sheets", "max_rows"),
        "APPLYTRACK_SHEETS_LAST_COLUMN": ("sheets", "last_column"),
        "APPLYTRACK_SHEETS_PREVIEW_ROWS": ("sheets", "preview_rows"),

        "APPLYTRACK_OLLAMA_HOST": ("ollama", "host"),
        "APPLYTRACK_OLLAMA_PORT": ("ollama", "port"),
        "APPLYTRACK_OLLAMA_MODEL": ("ollama", "model"),
        "APPLYTRACK_OLLAMA_TIMEOUT": ("ollama", "timeout"),

        "APPLYTRACK_TABLE_LIMIT": ("cli", "default_table_limit"),
        "APPLYTRACK_MAX_ERRORS_SHOWN": ("cli", "max_errors_shown"),
        "APPLYTRACK_COLOR_OUTPUT": ("cli", "color_output"),

        "APPLYTRACK_WEB_HOST": ("webapp", "host"),
        "APPLYTRACK_WEB_PORT": ("webapp", "port")
    }

    def __init__(self, config_dir: str = "."):
        self.config_dir = Path(config_dir)
        self.env_file = self.config_dir / ".env"
        self.config_file = self.config_dir / "applytrack.config.json"
        self.console = Console()

        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from .env and config files."""
        config = self._deep_copy_dict(self.DEFAULT_CONFIG)

        if self.env_file.exists():
            load_dotenv(str(self.env_file))

        if self.config_file.exists():
            try:
                with open(self.config_file, 'r') as f:
                    file_config = json.load(f)
                config = self._merge_configs(config, file_config)
            except (json.JSONDecodeError, FileNotFoundError) as e:
                self.console.print(f"[yellow]Warning: Could not load config file: {e}[/yellow]")

        # Environment variables win over the JSON file
        config = self._apply_env_overrides(config)

        return config

    def _deep_copy_dict(self, d: Dict[str, Any]) -> Dict[str, Any]:
        """Deep copy a dictionary."""
        result = {}
        for key, value in d.items():
            if isinstance(value, dict):
                result[key] = self._deep_copy_dict(value)
            elif isinstance(value, list):
                result[key] = value.copy()
            else:
                result[key] = value
        return result

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Merge two configuration dictionaries."""
        result = self._deep_copy_dict(base)

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides."""
        for env_var, (section, key) in self.ENV_MAPPINGS.items():
            value = os.getenv(env_var)
            if value is None:
                continue

            # Coerce to the type of the default value
            default_value = self.DEFAULT_CONFIG[section][key]
            try:
                if isinstance(default_value, bool):
                    config[section][key] = value.lower() in ('true', '1', 'yes', 'on')
                elif isinstance(default_value, int):
                    config[section][key] = int(value)
                elif isinstance(default_value, float):
                    config[section][key] = float(value)
                else:
                    config[section][key] = value
            except ValueError:
                self.console.print(f"[yellow]Warning: Invalid value for {env_var}: {value}[/yellow]")

        return config

    def get(self, section: str, key: Optional[str] = None) -> Any:
        """Get configuration value."""
        if key is None:
            return self.config.get(section, {})
        return self.config.get(section, {}).get(key)

    def set(self, section: str, key: str, value: Any) -> bool:
        """Set configuration value."""
        if section not in self.config:
            self.config[section] = {}

        if section in self.DEFAULT_CONFIG:
            if key not in self.DEFAULT_CONFIG[section]:
                self.console.print(f"[yellow]Warning: Unknown config key '{section}.{key}'[/yellow]")

        self.config[section][key] = value
        return self.save_config()

    def save_config(self) -> bool:
        """Save current configuration to JSON file."""
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, 'w') as f:
                json.dump(self.config, f, indent=2)
            return True
        except OSError as e:
            self.console.print(f"[red]Error saving config: {e}[/red]")
            return False

    def set_env_var(self, key: str, value: str) -> bool:
        """Set environment variable in .env file."""
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            set_key(str(self.env_file), key, value)
            os.environ[key] = value
            self.config = self._load_config()
            return True
        except OSError as e:
            self.console.print(f"[red]Error setting environment variable: {e}[/red]")
            return False

    def unset_env_var(self, key: str) -> bool:
        """Remove environment variable from .env file."""
        try:
            if self.env_file.exists():
                unset_key(str(self.env_file), key)
            os.environ.pop(key, None)
            self.config = self._load_config()
            return True
        except OSError as e:
            self.console.print(f"[red]Error removing environment variable: {e}[/red]")
            return False

    def reset_to_defaults(self) -> bool:
        """Reset configuration to default values."""
        self.config = self._deep_copy_dict(self.DEFAULT_CONFIG)
        return self.save_config()

    def validate_config(self) -> List[str]:
        """Validate current configuration and return list of issues."""
        issues = []

        db_path = self.get("database", "path")
        if not db_path:
            issues.append("Database path is not set")

        timeout = self.get("sheets", "timeout")
        if not isinstance(timeout, (int, float)) or timeout <= 0:
            issues.append(f"Invalid Sheets timeout: {timeout}")

        max_rows = self.get("sheets", "max_rows")
        if not isinstance(max_rows, int) or max_rows < 2:
            issues.append(f"Invalid Sheets max rows: {max_rows}")

        last_column = self.get("sheets", "last_column")
        if not isinstance(last_column, str) or not last_column.isalpha():
            issues.append(f"Invalid Sheets last column: {last_column}")

        for section in ("ollama", "webapp"):
            port = self.get(section, "port")
            if not isinstance(port, int) or port < 1 or port > 65535:
                issues.append(f"Invalid {section} port: {port}")

        return issues

    def display_config(self, section: Optional[str] = None) -> None:
        """Display current configuration in a formatted table."""
        self.console.print("[bold cyan]ApplyTrack Configuration[/bold cyan]")
        self.console.print()

        for section_name, section_data in self.config.items():
            if section and section_name != section:
                continue

            table = Table(title=f"{section_name.title()} Settings")
            table.add_column("Setting", style="cyan")
            table.add_column("Value", style="green")
            table.add_column("Type", style="dim")

            for key, value in section_data.items():
                value_str = str(value)
                if isinstance(value, bool):
                    value_str = "✓" if value else "✗"
                elif isinstance(value, str) and len(value) > 50:
                    value_str = value[:47] + "..."

                table.add_row(
                    key.replace("_", " ").title(),
                    value_str,
                    type(value).__name__
                )

            self.console.print(table)
            self.console.print()

    def get_env_template(self) -> str:
        """Generate a template .env file with all available settings."""
        template_lines = [
            "# ApplyTrack Configuration",
            "# Copy this file to .env and modify as needed",
            ""
        ]

        current_section = None
        for env_var, (section, key) in self.ENV_MAPPINGS.items():
            if section != current_section:
                if current_section is not None:
                    template_lines.append("")
                template_lines.append(f"# {section.title()} Settings")
                current_section = section

            default_value = self.DEFAULT_CONFIG[section][key]
            if isinstance(default_value, bool):
                default_value = str(default_value).lower()
            template_lines.append(f"# {env_var}={default_value}")

        template_lines.append("")
        return "\n".join(template_lines)

    def export_env_template(self, output_path: Optional[str] = None) -> bool:
        """Export .env template to file."""
        try:
            template_path = output_path or ".env.template"
            with open(template_path, 'w') as f:
                f.write(self.get_env_template())
            self.console.print(f"[green]✓ .env template exported to: {template_path}[/green]")
            return True
        except OSError as e:
            self.console.print(f"[red]Error exporting template: {e}[/red]")
            return False

    def get_connection_info(self) -> Dict[str, Any]:
        """Get connection information for services."""
        db_path = self.get("database", "path")
        return {
            "database": {
                "path": db_path,
                "exists": Path(db_path).exists() if db_path else False
            },
            "sheets": {
                "url": self.get("sheets", "api_base_url"),
                "range": f"A1:{self.get('sheets', 'last_column')}{self.get('sheets', 'max_rows')}"
            },
            "ollama": {
                "url": f"http://{self.get('ollama', 'host')}:{self.get('ollama', 'port')}",
                "model": self.get("ollama", "model")
            }
        }


def get_config_manager() -> ConfigManager:
    """Get global configuration manager instance."""
    if not hasattr(get_config_manager, '_instance'):
        get_config_manager._instance = ConfigManager()
    return get_config_manager._instance


def reload_config():
    """Reload configuration from files."""
    if hasattr(get_config_manager, '_instance'):
        get_config_manager._instance = ConfigManager()
    return get_config_manager()
