"""
Configuration for the PharmaGuard service.
Centralizes confidence constants, LLM access and result storage settings.
"""

import json
import os
from typing import Tuple

from dotenv import load_dotenv, find_dotenv
from pydantic import BaseModel, Field

# Load .env file (walks up directories to find it)
load_dotenv(find_dotenv())


class ConfidenceLevels(BaseModel):
    """Fixed confidence values attached to profiles and risk assessments."""

    observed_diplotype: float = Field(
        default=0.9,
        ge=0.0,
        le=1.0,
        description="Two star alleles observed for the gene"
    )

    single_allele_call: float = Field(
        default=0.7,
        ge=0.0,
        le=1.0,
        description="One star allele observed; second slot padded with the reference allele"
    )

    no_genotype_data: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="No star allele observed for the gene"
    )

    unknown_activity: float = Field(
        default=0.25,
        ge=0.0,
        le=1.0,
        description="Risk could not be classified because the activity score is unknown"
    )

    unsupported_drug: float = Field(
        default=0.2,
        ge=0.0,
        le=1.0,
        description="Drug has no catalog entry or no recognised mechanism type"
    )


class LLMSettings(BaseModel):
    """Settings for the explanation generator."""

    api_key: str = Field(
        default_factory=lambda: os.environ.get("GROQ_API_KEY", ""),
        description="API key; empty disables LLM calls and uses templated explanations"
    )

    api_url: str = Field(
        default="https://api.groq.com/openai/v1/chat/completions",
        description="OpenAI-compatible chat completions endpoint"
    )

    model: str = Field(
        default_factory=lambda: os.environ.get("GROQ_MODEL", "llama-3.1-8b-instant"),
        description="Model name"
    )

    timeout_seconds: float = Field(
        default=8.0,
        gt=0.0,
        description="Per-drug explanation timeout"
    )

    max_tokens: int = Field(default=700, gt=0)

    temperature: float = Field(default=0.2, ge=0.0, le=2.0)


class StorageSettings(BaseModel):
    """Settings for persisting analysis results."""

    enabled: bool = Field(default=True, description="Persist each result after it is returned")

    results_path: str = Field(
        default_factory=lambda: os.environ.get("PHARMAGUARD_RESULTS_PATH", "data/analyses.jsonl"),
        description="JSON-lines file receiving one document per analysis"
    )


class PharmaGuardConfig(BaseModel):
    """Main configuration for the PharmaGuard service."""

    confidence: ConfidenceLevels = Field(default_factory=ConfidenceLevels)

    llm: LLMSettings = Field(default_factory=LLMSettings)

    storage: StorageSettings = Field(default_factory=StorageSettings)

    max_upload_bytes: int = Field(
        default=5 * 1024 * 1024,
        gt=0,
        description="Maximum accepted VCF upload size"
    )

    allowed_extensions: Tuple[str, ...] = Field(
        default=(".vcf",),
        description="Accepted upload file extensions"
    )

    log_level: str = Field(
        default_factory=lambda: os.environ.get("PHARMAGUARD_LOG_LEVEL", "INFO"),
        description="Root log level"
    )


# Global configuration instance
_config: PharmaGuardConfig = PharmaGuardConfig()


def get_config() -> PharmaGuardConfig:
    """Get the global configuration instance."""
    return _config


def update_config(**kwargs) -> PharmaGuardConfig:
    """Update configuration parameters."""
    global _config
    current_dict = _config.model_dump()

    for key, value in kwargs.items():
        if '.' in key:
            # Handle nested keys like 'confidence.observed_diplotype'
            parts = key.split('.')
            current = current_dict
            for part in parts[:-1]:
                current = current[part]
            current[parts[-1]] = value
        else:
            current_dict[key] = value

    _config = PharmaGuardConfig(**current_dict)
    return _config


def load_config_from_file(filepath: str) -> PharmaGuardConfig:
    """Load configuration from a JSON file."""
    global _config

    with open(filepath, 'r') as f:
        config_dict = json.load(f)

    _config = PharmaGuardConfig(**config_dict)
    return _config


def save_config_to_file(filepath: str):
    """Save current configuration to a JSON file. The API key is never written."""
    data = _config.model_dump()
    data["llm"]["api_key"] = ""

    with open(filepath, 'w') as f:
        json.dump(data, f, indent=2)


def get_confidence_levels() -> ConfidenceLevels:
    """Get confidence constants."""
    return _config.confidence
