"""
Configuration management for heavychat.

Handles loading and managing configuration from YAML files and environment.
"""

import copy
import os
import yaml
import logging
from pathlib import Path
from typing import Optional, Dict, Any

from .llm_client import LLMConfig
from .workflow_types import Configuration

logger = logging.getLogger(__name__)


class ConfigurationManager:
    """Manages loading and accessing heavychat configuration."""

    DEFAULT_CONFIG = {
        "llm": {
            "backend": "gemini",
            "gemini_flash_model": "gemini-2.5-flash",
            "gemini_pro_model": "gemini-2.5-pro",
            "local_api_base": "http://localhost:8000/v1",
            "local_model": "local-model",
            "temperature": 0.7,
            "max_tokens": 4096,
            "top_p": 0.9,
            "timeout_seconds": 120.0
        },
        "heavy_mode": {
            "enabled": False,
            "max_concurrent_agents": 10,
            "preset_path": None
        },
        "light_mode": {
            "model": "pro",
            "system_instruction": Configuration.light_system_instruction
        },
        "logging": {
            "level": "INFO"
        }
    }

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to YAML configuration file (optional)
        """
        self.config_path = config_path
        self._config_dict: Dict[str, Any] = {}
        self._heavy_mode_config: Optional[Configuration] = None

        if config_path and Path(config_path).exists():
            self.load_from_file(Path(config_path))
        else:
            logger.info("No config file provided, using defaults")
            self._config_dict = copy.deepcopy(self.DEFAULT_CONFIG)

    def load_from_file(self, config_path: Path) -> None:
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to YAML configuration file
        """
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                loaded_config = yaml.safe_load(f)

            if isinstance(loaded_config, dict):
                self._config_dict = loaded_config
                logger.info(f"Loaded configuration from {config_path}")
            else:
                logger.warning(f"Empty config file, using defaults")
                self._config_dict = copy.deepcopy(self.DEFAULT_CONFIG)

        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Error loading config from {config_path}: {e}")
            logger.info("Using default configuration")
            self._config_dict = copy.deepcopy(self.DEFAULT_CONFIG)

        self._heavy_mode_config = None

    def _section(self, name: str) -> Dict[str, Any]:
        """A config section merged over its defaults."""
        merged = dict(self.DEFAULT_CONFIG[name])
        merged.update(self._config_dict.get(name) or {})
        return merged

    def get_heavy_mode_config(self) -> Configuration:
        """
        Get the heavy mode configuration object.

        Returns:
            Configuration combining the heavy_mode and light_mode sections
        """
        if self._heavy_mode_config is None:
            heavy = self._section("heavy_mode")
            light = self._section("light_mode")

            self._heavy_mode_config = Configuration.from_dict({
                **heavy,
                "light_model": light["model"],
                "light_system_instruction": light["system_instruction"],
            })

            logger.info(f"Heavy mode config: enabled={self._heavy_mode_config.enabled}, "
                        f"max_concurrent={self._heavy_mode_config.max_concurrent_agents}")

        return self._heavy_mode_config

    def get_llm_config(self) -> LLMConfig:
        """Get the LLM backend configuration, with API keys from the environment."""
        llm = self._section("llm")
        llm["gemini_api_key"] = llm.get("gemini_api_key") or os.getenv("GEMINI_API_KEY")
        llm["openai_api_key"] = llm.get("openai_api_key") or os.getenv("OPENAI_API_KEY")
        return LLMConfig.from_dict(llm)

    def get_log_level(self) -> str:
        return str(self._section("logging")["level"]).upper()

    def update_config(self, updates: Dict[str, Any]) -> None:
        """
        Update configuration with new values.

        Args:
            updates: Dictionary of section name -> setting updates
        """
        for section, values in updates.items():
            current = self._config_dict.get(section) or {}
            current.update(values)
            self._config_dict[section] = current
            logger.info(f"Updated {section} config: {values}")

        # Reset cached config to force reload
        self._heavy_mode_config = None

    def save_to_file(self, output_path: Path) -> None:
        """
        Save current configuration to YAML file.

        Args:
            output_path: Path where configuration should be saved
        """
        with open(output_path, 'w', encoding='utf-8') as f:
            yaml.dump(self._config_dict, f, default_flow_style=False, sort_keys=False)
        logger.info(f"Saved configuration to {output_path}")

    def get_full_config(self) -> Dict[str, Any]:
        """Get the complete configuration dictionary."""
        return copy.deepcopy(self._config_dict)

    @staticmethod
    def create_default_config_file(output_path: Path) -> None:
        """
        Create a default configuration file with documentation.

        Args:
            output_path: Path where default config should be created
        """
        config_content = """# heavychat configuration

llm:
  # Options: "gemini", "local", "openai"
  backend: "gemini"

  # Model used for each agent tier
  gemini_flash_model: "gemini-2.5-flash"
  gemini_pro_model: "gemini-2.5-pro"

  # OpenAI-compatible local server (vLLM, Ollama, llama.cpp)
  local_api_base: "http://localhost:8000/v1"
  local_model: "local-model"
  # local_pro_model: "bigger-local-model"

  temperature: 0.7
  max_tokens: 4096
  top_p: 0.9
  timeout_seconds: 120.0

heavy_mode:
  enabled: false                # Start new sessions in heavy mode
  max_concurrent_agents: 10     # Simultaneous generation calls within one rank
  preset_path: null             # Agent preset JSON loaded at startup

light_mode:
  model: "pro"
  system_instruction: "You are a helpful and friendly AI assistant. Provide clear, concise, and accurate responses to the user's query."

logging:
  level: "INFO"
"""
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(config_content)
        logger.info(f"Created default configuration file at {output_path}")


def load_configuration(config_path: Optional[Path] = None) -> Configuration:
    """
    Convenience function to load heavy mode configuration.

    Args:
        config_path: Optional path to configuration file

    Returns:
        Configuration object
    """
    manager = ConfigurationManager(config_path)
    return manager.get_heavy_mode_config()
