"""Live measure configuration with environment variable loading."""

import os
from typing import Optional
from pydantic import BaseModel, Field
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class MeasureConfig(BaseModel):
    """Configuration for the live measure refresh."""

    # Concurrency
    max_parallelism: int = Field(
        default_factory=lambda: int(os.getenv("LIVE_MEASURE_MAX_PARALLELISM", "4")),
        ge=1,
        description="Maximum projects refreshed at the same time",
    )

    # Quality gates
    gate_config_path: Optional[str] = Field(
        default_factory=lambda: os.getenv("LIVE_MEASURE_GATE_CONFIG"),
        description="YAML or JSON file defining quality gates and project settings",
    )

    # Default project settings
    rating_grid: str = Field(
        default_factory=lambda: os.getenv("LIVE_MEASURE_RATING_GRID", "0.05,0.1,0.2,0.5"),
        description="Debt ratio thresholds of maintainability ratings A to D",
    )
    development_cost_per_line: float = Field(
        default_factory=lambda: float(os.getenv("LIVE_MEASURE_DEV_COST_PER_LINE", "30")),
        gt=0,
        description="Minutes needed to develop one line of code",
    )
