"""Quality gates and project settings loaded from configuration.

PATTERN: Configuration management with YAML/JSON support
CRITICAL: Precedence: project > organization > default
GOTCHA: Invalid entries are logged and skipped, never half-loaded
"""

import json
import logging
import yaml
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..config.measure_config import MeasureConfig
from ..models.measure_models import (
    Branch,
    Component,
    ConditionOperator,
    GateCondition,
    Organization,
    ProjectConfiguration,
    QualityGate,
)
from . import core_metrics as cm
from .base import QualityGateSource
from .debt_rating_grid import DebtRatingGrid

logger = logging.getLogger(__name__)


class QualityGateRegistry(QualityGateSource):
    """
    Resolves the quality gate and settings of projects.

    PATTERN: Configuration loading with organization/project override support
    CRITICAL: Settings are validated when loaded, so a refresh never sees an
    invalid rating grid

    The configuration file holds a "default" section, optional
    "organizations" and "projects" sections keyed by organization and
    project key. Each section may define a "quality_gate" and "settings".
    """

    def __init__(
        self,
        config_path: Optional[Union[str, Path]] = None,
        config: Optional[MeasureConfig] = None,
    ):
        """
        Initialize registry.

        Args:
            config_path: Path to configuration file (YAML or JSON)
            config: Service configuration providing default settings
        """
        self.logger = logger
        self.config = config or MeasureConfig()
        path = config_path or self.config.gate_config_path
        self.config_path = Path(path) if path else None

        self.default_gate: QualityGate = self._builtin_gate()
        self.default_settings: ProjectConfiguration = self._builtin_settings()
        self.organization_gates: Dict[str, QualityGate] = {}
        self.project_gates: Dict[str, QualityGate] = {}
        self.project_settings: Dict[str, ProjectConfiguration] = {}

        if self.config_path and self.config_path.exists():
            self.load_configuration(self.config_path)

        self.logger.info("QualityGateRegistry initialized")

    @staticmethod
    def _builtin_gate() -> QualityGate:
        """Gate applied when nothing is configured."""
        return QualityGate(
            id="builtin",
            name="Built-in",
            conditions=[
                GateCondition(
                    metric_key=cm.NEW_RELIABILITY_RATING,
                    operator=ConditionOperator.GREATER_THAN,
                    error_threshold=1,
                    on_leak_period=True,
                ),
                GateCondition(
                    metric_key=cm.NEW_SECURITY_RATING,
                    operator=ConditionOperator.GREATER_THAN,
                    error_threshold=1,
                    on_leak_period=True,
                ),
                GateCondition(
                    metric_key=cm.SQALE_RATING,
                    operator=ConditionOperator.GREATER_THAN,
                    warning_threshold=1,
                    error_threshold=3,
                ),
            ],
        )

    def _builtin_settings(self) -> ProjectConfiguration:
        return ProjectConfiguration(
            rating_grid=DebtRatingGrid.parse(self.config.rating_grid),
            development_cost_per_line=self.config.development_cost_per_line,
        )

    def load_configuration(self, config_path: Union[str, Path]) -> None:
        """
        Load gates and settings from a configuration file.

        Args:
            config_path: Path to configuration file
        """
        config_path = Path(config_path)

        if not config_path.exists():
            self.logger.warning(f"Config file not found: {config_path}")
            return

        try:
            if config_path.suffix in [".yaml", ".yml"]:
                with open(config_path, "r") as f:
                    config = yaml.safe_load(f) or {}
            elif config_path.suffix == ".json":
                with open(config_path, "r") as f:
                    config = json.load(f)
            else:
                raise ValueError(f"Unsupported config format: {config_path.suffix}")
        except (OSError, ValueError, yaml.YAMLError) as e:
            self.logger.error(f"Failed to load configuration from {config_path}: {e}")
            return

        self._parse_configuration(config)
        self.logger.info(f"Loaded quality gates from {config_path}")

    def _parse_configuration(self, config: Dict[str, Any]) -> None:
        default = config.get("default") or {}
        gate = self._parse_gate("default", default.get("quality_gate"))
        if gate:
            self.default_gate = gate
        settings = self._parse_settings("default", default.get("settings"), self._builtin_settings())
        if settings:
            self.default_settings = settings

        for org_key, org_config in (config.get("organizations") or {}).items():
            gate = self._parse_gate(f"organization {org_key}", (org_config or {}).get("quality_gate"))
            if gate:
                self.organization_gates[org_key] = gate

        for project_key, project_config in (config.get("projects") or {}).items():
            project_config = project_config or {}
            gate = self._parse_gate(f"project {project_key}", project_config.get("quality_gate"))
            if gate:
                self.project_gates[project_key] = gate
            settings = self._parse_settings(
                f"project {project_key}", project_config.get("settings"), self.default_settings
            )
            if settings:
                self.project_settings[project_key] = settings

    def _parse_gate(self, scope: str, data: Optional[Dict[str, Any]]) -> Optional[QualityGate]:
        if not data:
            return None
        try:
            data = dict(data)
            data.setdefault("id", data.get("name", scope))
            data.setdefault("name", data["id"])
            return QualityGate(**data)
        except Exception as e:
            self.logger.error(f"Failed to load quality gate of {scope}: {e}")
            return None

    def _parse_settings(
        self,
        scope: str,
        data: Optional[Dict[str, Any]],
        base: ProjectConfiguration,
    ) -> Optional[ProjectConfiguration]:
        if not data:
            return None
        try:
            merged = base.model_dump()
            merged.update(data)
            if isinstance(merged.get("rating_grid"), str):
                merged["rating_grid"] = DebtRatingGrid.parse(merged["rating_grid"])
            settings = ProjectConfiguration(**merged)
            DebtRatingGrid(settings)
            return settings
        except Exception as e:
            self.logger.error(f"Failed to load settings of {scope}: {e}")
            return None

    def load_quality_gate(
        self,
        organization: Optional[Organization],
        project: Component,
        branch: Branch,
    ) -> QualityGate:
        """
        Get the quality gate of a project with override precedence.

        Args:
            organization: Organization of the project, if any
            project: Root component of the project
            branch: Branch being refreshed

        Returns:
            Effective quality gate
        """
        if project.key in self.project_gates:
            return self.project_gates[project.key]
        if organization and organization.key in self.organization_gates:
            return self.organization_gates[organization.key]
        return self.default_gate

    def load_project_configuration(self, project: Component) -> ProjectConfiguration:
        return self.project_settings.get(project.key, self.default_settings)

    def set_project_gate(self, project_key: str, gate: QualityGate) -> None:
        """
        Associate a gate with a project at runtime.

        GOTCHA: Runtime changes are not persisted to config
        """
        self.project_gates[project_key] = gate
        self.logger.info(f"Set quality gate '{gate.name}' on project {project_key}")

    def remove_project_gate(self, project_key: str) -> bool:
        if self.project_gates.pop(project_key, None) is None:
            return False
        self.logger.info(f"Removed quality gate of project {project_key}")
        return True

    def export_configuration(self, format: str = "yaml") -> str:
        """
        Export current gates and settings.

        Args:
            format: Output format ('yaml' or 'json')

        Returns:
            Serialized configuration string
        """
        config: Dict[str, Any] = {
            "default": {
                "quality_gate": self._serialize_gate(self.default_gate),
                "settings": self.default_settings.model_dump(),
            },
        }

        if self.organization_gates:
            config["organizations"] = {
                key: {"quality_gate": self._serialize_gate(gate)}
                for key, gate in self.organization_gates.items()
            }

        project_keys = sorted(set(self.project_gates) | set(self.project_settings))
        if project_keys:
            config["projects"] = {}
            for key in project_keys:
                section: Dict[str, Any] = {}
                if key in self.project_gates:
                    section["quality_gate"] = self._serialize_gate(self.project_gates[key])
                if key in self.project_settings:
                    section["settings"] = self.project_settings[key].model_dump()
                config["projects"][key] = section

        if format == "json":
            return json.dumps(config, indent=2)
        else:
            return yaml.dump(config, default_flow_style=False, sort_keys=False)

    @staticmethod
    def _serialize_gate(gate: QualityGate) -> Dict[str, Any]:
        data = gate.model_dump(mode="json")
        # Remove None values
        data["conditions"] = [
            {k: v for k, v in condition.items() if v is not None}
            for condition in data["conditions"]
        ]
        return data
