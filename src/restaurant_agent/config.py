"""Configuration models for the restaurant query agent."""

from __future__ import annotations

from pydantic import BaseModel, Field


class RateLimitConfig(BaseModel):
    """Configures the sliding-window gate in front of upstream LLM calls."""

    max_requests: int = Field(default=10, ge=1)
    window_seconds: float = Field(default=60.0, gt=0.0)


class LLMConfig(BaseModel):
    """Model names and sampling settings for the two LLM stages."""

    classifier_model: str = "gpt-3.5-turbo"
    generator_model: str = "gpt-4"
    classifier_temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    generator_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    classifier_max_tokens: int = Field(default=50, ge=1)
    generator_max_tokens: int = Field(default=150, ge=1)


class AgentConfig(BaseModel):
    """Configures pipeline deadlines and the per-agent rate window."""

    llm_timeout_seconds: float = Field(default=8.0, gt=0.0)
    request_timeout_seconds: float = Field(default=15.0, gt=0.0)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
