"""
Options configuration management.

Loads validation and correction options from YAML files, applies
environment overrides and provides a builder for programmatic use.
"""

import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import ValidationError as PydanticValidationError

from geofix.core.models import CorrectionOptions, ValidationOptions

ENV_PREFIX = "GEOFIX_"


class ConfigurationError(ValueError):
    """Raised when an options file cannot be read or holds invalid values."""


class OptionsLoader:
    """
    Loads run options from YAML configuration files.

    Expected YAML format:
    ```yaml
    validation:
      cumulative_tolerance: 2.0
      error_threshold: 3.0
      critical_threshold: 5.0
      batch_size: 50

    correction:
      random_seed: 42
      adjustment_range: 0.05
      minimum_adjustment: 0.001

    rules:
      - type: cumulative_invariant
      - type: absolute_limit
        params:
          max_current_period_value: 5.0
    ```

    Environment variables named GEOFIX_<KNOB> (e.g. GEOFIX_RANDOM_SEED)
    take precedence over the file.
    """

    def __init__(self, config_path: str | Path, environ: Mapping[str, str] | None = None):
        """
        Initialize the options loader.

        Args:
            config_path: Path to the YAML configuration file
            environ: Environment to read overrides from (defaults to os.environ)

        Raises:
            ConfigurationError: If the file does not exist
        """
        self.config_path = Path(config_path)
        self.environ = os.environ if environ is None else environ
        if not self.config_path.exists():
            raise ConfigurationError(f"Options file not found: {config_path}")
        self._config: dict[str, Any] | None = None

    def load_validation_options(self) -> ValidationOptions:
        """
        Build ValidationOptions from the 'validation' section.

        Raises:
            ConfigurationError: If the section holds unknown keys or invalid values
        """
        values = self._section("validation")
        return self._build(ValidationOptions, values)

    def load_correction_options(self) -> CorrectionOptions:
        """
        Build CorrectionOptions from the 'validation' and 'correction' sections.

        Correction values win over validation values of the same name.

        Raises:
            ConfigurationError: If a section holds unknown keys or invalid values
        """
        values = {**self._section("validation"), **self._section("correction")}
        return self._build(CorrectionOptions, values)

    def load_rules(self) -> list[dict[str, Any]] | None:
        """
        Parse the optional 'rules' section into rule dictionaries for ValidationEngine.

        Returns:
            Rule dictionaries, or None when the file has no 'rules' section
        """
        config = self._load()
        if "rules" not in config:
            return None
        if not isinstance(config["rules"], list):
            raise ConfigurationError("'rules' section must be a list")
        return [self._parse_rule(rule_def, idx) for idx, rule_def in enumerate(config["rules"])]

    def _load(self) -> dict[str, Any]:
        if self._config is None:
            try:
                with open(self.config_path) as f:
                    config = yaml.safe_load(f)
            except (OSError, yaml.YAMLError) as e:
                raise ConfigurationError(f"Cannot read options file {self.config_path}: {e}") from e

            if config is None:
                config = {}
            if not isinstance(config, dict):
                raise ConfigurationError("Options file must contain a mapping at the top level")
            self._config = config
        return self._config

    def _section(self, name: str) -> dict[str, Any]:
        section = self._load().get(name) or {}
        if not isinstance(section, dict):
            raise ConfigurationError(f"'{name}' section must be a mapping")
        return section

    def _build(self, model: type[ValidationOptions], values: dict[str, Any]) -> Any:
        unknown = sorted(set(values) - set(model.model_fields))
        if unknown:
            raise ConfigurationError(f"Unknown option(s): {', '.join(unknown)}")

        merged = {**values, **self._env_overrides(model)}
        try:
            return model(**merged)
        except PydanticValidationError as e:
            raise ConfigurationError(f"Invalid options in {self.config_path}: {e}") from e

    def _env_overrides(self, model: type[ValidationOptions]) -> dict[str, str]:
        overrides = {}
        for field_name in model.model_fields:
            env_value = self.environ.get(f"{ENV_PREFIX}{field_name.upper()}")
            if env_value is not None:
                overrides[field_name] = env_value
        return overrides

    def _parse_rule(self, rule_def: Any, idx: int) -> dict[str, Any]:
        """
        Parse a single rule definition.

        Raises:
            ConfigurationError: If rule definition is invalid
        """
        if not isinstance(rule_def, dict) or "type" not in rule_def:
            raise ConfigurationError(f"Rule #{idx} is missing 'type'")

        rule_type = rule_def["type"]
        return {
            "rule_name": rule_def.get("name", f"{rule_type}_{idx}"),
            "rule_type": rule_type,
            "parameters": rule_def.get("params", rule_def.get("parameters", {})),
            "enabled": rule_def.get("enabled", True),
        }


class OptionsBuilder:
    """
    Programmatically build options (for testing or embedding).

    Examples:
        >>> options = (OptionsBuilder()
        ...            .with_tolerance(0.1)
        ...            .with_seed(7)
        ...            .build_correction())
        >>> options.cumulative_tolerance
        0.1
    """

    def __init__(self):
        self.values: dict[str, Any] = {}

    def with_tolerance(self, cumulative_tolerance: float) -> "OptionsBuilder":
        self.values["cumulative_tolerance"] = cumulative_tolerance
        return self

    def with_thresholds(self, error_threshold: float, critical_threshold: float) -> "OptionsBuilder":
        self.values["error_threshold"] = error_threshold
        self.values["critical_threshold"] = critical_threshold
        return self

    def with_limits(
        self,
        max_current_period_value: float | None = None,
        max_cumulative_value: float | None = None,
    ) -> "OptionsBuilder":
        """Set absolute limits; None leaves the default."""
        if max_current_period_value is not None:
            self.values["max_current_period_value"] = max_current_period_value
        if max_cumulative_value is not None:
            self.values["max_cumulative_value"] = max_cumulative_value
        return self

    def with_batching(self, batch_size: int, max_degree_of_parallelism: int = 0) -> "OptionsBuilder":
        self.values["batch_size"] = batch_size
        self.values["max_degree_of_parallelism"] = max_degree_of_parallelism
        return self

    def with_time_budget(self, minutes: float) -> "OptionsBuilder":
        self.values["max_processing_time_minutes"] = minutes
        return self

    def with_memory_cleanup(self, enabled: bool = True, frequency: int = 200) -> "OptionsBuilder":
        self.values["enable_memory_cleanup"] = enabled
        self.values["memory_cleanup_frequency"] = frequency
        return self

    def with_seed(self, random_seed: int) -> "OptionsBuilder":
        self.values["random_seed"] = random_seed
        return self

    def with_adjustment_range(self, adjustment_range: float, minimum_adjustment: float = 0.001) -> "OptionsBuilder":
        self.values["adjustment_range"] = adjustment_range
        self.values["minimum_adjustment"] = minimum_adjustment
        return self

    def with_time_factor_weight(self, time_factor_weight: float) -> "OptionsBuilder":
        self.values["time_factor_weight"] = time_factor_weight
        return self

    def build_validation(self) -> ValidationOptions:
        """Build ValidationOptions, ignoring correction-only knobs."""
        fields = ValidationOptions.model_fields
        return ValidationOptions(**{k: v for k, v in self.values.items() if k in fields})

    def build_correction(self) -> CorrectionOptions:
        return CorrectionOptions(**self.values)
