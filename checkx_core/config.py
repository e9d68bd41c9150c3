from typing import Optional

from pydantic import BaseModel, Field

from checkx_core.runtime_config import EngineRuntimeConfig


class CheckXConfig(BaseModel):
    """
    Configuration for the CheckX Core Engine.
    Decouples the engine from environment variables.
    """

    model_config = {"arbitrary_types_allowed": True}

    # LLM Configuration
    openai_api_key: Optional[str] = Field(None, description="API key for the OpenAI-compatible model endpoint")
    openai_model: str = Field("gpt-4o-mini", description="Model used for post analysis and keyword extraction")

    # Local LLM (Optional)
    local_llm_url: Optional[str] = Field(
        None, description="Base URL of an OpenAI-compatible local server (llama.cpp, vLLM, Ollama)"
    )

    # Evidence Configuration
    newsdata_api_key: Optional[str] = Field(None, description="NewsData.io API key for evidence retrieval")

    # Runtime knobs; loaded from env when not supplied
    runtime: Optional[EngineRuntimeConfig] = Field(None, description="Runtime tunables (see runtime_config)")

    def resolved_runtime(self) -> EngineRuntimeConfig:
        return self.runtime or EngineRuntimeConfig.load_from_env()
