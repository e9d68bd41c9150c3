# Copyright (C) 2025 Ivan Bondarenko
#
# This file is part of CheckX Engine.
#
# CheckX Engine is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

from checkx_core.config import CheckXConfig
from checkx_core.runtime_config import EngineRuntimeConfig


def test_defaults(monkeypatch):
    for name in (
        "CHECKX_LLM_TEMPERATURE",
        "CHECKX_LLM_TOP_K",
        "CHECKX_LLM_PROMPT_RETRIES",
        "CHECKX_NEWS_MAX_RESULTS",
        "CHECKX_EVIDENCE_ENABLED",
        "CHECKX_SERIALIZE_PROMPTS",
    ):
        monkeypatch.delenv(name, raising=False)
    cfg = EngineRuntimeConfig.load_from_env()
    assert cfg.llm.temperature == 0.3
    assert cfg.llm.top_k == 10
    assert cfg.llm.prompt_retries == 1
    assert cfg.search.news_max_results == 5
    assert cfg.features.evidence_enabled is True
    assert cfg.features.serialize_prompts is False


def test_prompt_retries_are_clamped(monkeypatch):
    monkeypatch.setenv("CHECKX_LLM_PROMPT_RETRIES", "99")
    assert EngineRuntimeConfig.load_from_env().llm.prompt_retries == 5

    monkeypatch.setenv("CHECKX_LLM_PROMPT_RETRIES", "-2")
    assert EngineRuntimeConfig.load_from_env().llm.prompt_retries == 0


def test_invalid_numbers_fall_back_to_default(monkeypatch):
    monkeypatch.setenv("CHECKX_NEWS_MAX_RESULTS", "lots")
    monkeypatch.setenv("CHECKX_LLM_TEMPERATURE", "warm")
    cfg = EngineRuntimeConfig.load_from_env()
    assert cfg.search.news_max_results == 5
    assert cfg.llm.temperature == 0.3


def test_feature_flags_from_env(monkeypatch):
    monkeypatch.setenv("CHECKX_EVIDENCE_ENABLED", "off")
    monkeypatch.setenv("CHECKX_SERIALIZE_PROMPTS", "yes")
    monkeypatch.setenv("CHECKX_TRACE_DISABLE", "1")
    cfg = EngineRuntimeConfig.load_from_env()
    assert cfg.features.evidence_enabled is False
    assert cfg.features.serialize_prompts is True
    assert cfg.features.trace_enabled is False


def test_bad_language_falls_back(monkeypatch):
    monkeypatch.setenv("CHECKX_NEWS_LANGUAGE", "english please")
    assert EngineRuntimeConfig.load_from_env().search.news_language == "en"

    monkeypatch.setenv("CHECKX_NEWS_LANGUAGE", "DE")
    assert EngineRuntimeConfig.load_from_env().search.news_language == "de"


def test_safe_log_dict_has_no_secrets():
    d = EngineRuntimeConfig.default().to_safe_log_dict()
    assert set(d) == {"features", "llm", "search", "batch"}
    assert "api_key" not in str(d)


def test_config_uses_explicit_runtime():
    runtime = EngineRuntimeConfig.default()
    cfg = CheckXConfig(openai_api_key="sk-test", runtime=runtime)
    assert cfg.openai_model == "gpt-4o-mini"
    assert cfg.resolved_runtime().llm.top_k == 10
