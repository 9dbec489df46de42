# Copyright 2026 Pramod Kumar Voola
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

# -----------------------------------------------------------------------------
# CONFIGURATION
# -----------------------------------------------------------------------------
# Responsibility: Load pipeline settings from parcel.yaml, then apply
# environment overrides (optionally from a .env file at the project root).
#
# Missing file -> defaults. Invalid values -> pydantic ValidationError at load
# time, before any order is touched.
# -----------------------------------------------------------------------------

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field
from rich.console import Console

console = Console()

PROJECT_ROOT = Path(__file__).parent.parent.parent
CONFIG_PATH = PROJECT_ROOT / "parcel.yaml"

MB = 1024 * 1024

# Environment variable -> config field
ENV_OVERRIDES = {
    "PARCEL_MEMORY_THRESHOLD": "memory_threshold_bytes",
    "PARCEL_TEMP_DIR": "temp_dir",
    "PARCEL_REQUEST_TIMEOUT": "request_timeout_seconds",
    "PARCEL_CHECK_RESPONSE_STATUS": "check_response_status",
}


class ParcelConfig(BaseModel):
    """
    Settings for packaging and delivery.

    memory_threshold_bytes bounds the memory held by each in-flight
    SpillBuffer; anything above it goes to a temporary file in temp_dir.
    """

    memory_threshold_bytes: int = Field(default=100 * MB, ge=0)
    chunk_size: int = Field(default=64 * 1024, gt=0)
    tar_permissions: int = Field(default=0o660, ge=0, le=0o7777)
    ordinal_total_offset: int = Field(default=1, ge=0)
    temp_dir: str | None = None
    request_timeout_seconds: float | None = Field(default=300.0, gt=0)
    verify_tls: bool = True
    check_response_status: bool = False


def _read_yaml(path: Path) -> dict:
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping, got {type(data).__name__}")
    return data


def _env_overrides() -> dict:
    overrides = {}
    for env_name, field_name in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value is None or value == "":
            continue
        overrides[field_name] = value
    return overrides


def load_config(path: Path | str | None = None, env_file: Path | None = None) -> ParcelConfig:
    """
    Load the pipeline configuration.

    Resolution order (later wins): built-in defaults, the YAML file
    (path argument, else PARCEL_CONFIG, else parcel.yaml at the project
    root), then PARCEL_* environment variables.

    Args:
        path: Optional explicit config file.
        env_file: Optional .env file loaded before reading the environment.

    Returns:
        Validated ParcelConfig.
    """
    load_dotenv(env_file or PROJECT_ROOT / ".env")

    config_path = Path(path or os.getenv("PARCEL_CONFIG") or CONFIG_PATH)

    data: dict = {}
    if config_path.exists():
        data = _read_yaml(config_path)
        console.print(f"[green][CONFIG] Loaded {config_path}[/green]")
    else:
        console.print(f"[yellow][CONFIG] {config_path} not found, using defaults[/yellow]")

    data.update(_env_overrides())
    return ParcelConfig(**data)
