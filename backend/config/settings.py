from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import AliasChoices, BaseModel, Field
import yaml
import os

from core.errors import ConfigurationError

class BackendConfig(BaseModel):
    mode: str = "simulated"                 # "simulated" | "remote"
    request_timeout: float = 30.0

class StoreConfig(BaseModel):
    path: str = "./data/records"
    files_key: str = "files"
    sites_key: str = "sites"

class SimulationConfig(BaseModel):
    latency_min_ms: int = 600
    latency_max_ms: int = 1400
    result_min: int = 5
    result_max: int = 25

class PollingConfig(BaseModel):
    interval_seconds: float = 5.0

class LLMConfig(BaseModel):
    base_url: str = "https://api.openai.com/v1"
    chat_model: str = "gpt-4.1-mini"
    embedding_model: str = "text-embedding-3-small"
    temperature: float = 0.2
    answer_language: str = "Japanese"

class RetrievalConfig(BaseModel):
    default_top_k: int = 8
    max_top_k: int = 20
    chunk_table: str = "rag_chunks"
    chunk_list_limit: int = 50

# Environment variable names reported by require()
ENV_NAMES = {
    "api_base": "RAG_API_BASE",
    "openai_api_key": "OPENAI_API_KEY",
    "supabase_url": "SUPABASE_URL",
    "supabase_key": "SUPABASE_SERVICE_ROLE_KEY (or SUPABASE_ANON_KEY)",
}

class AppSettings(BaseSettings):
    backend: BackendConfig = BackendConfig()
    store: StoreConfig = StoreConfig()
    simulation: SimulationConfig = SimulationConfig()
    polling: PollingConfig = PollingConfig()
    llm: LLMConfig = LLMConfig()
    retrieval: RetrievalConfig = RetrievalConfig()

    api_base: str = Field(default="", validation_alias=AliasChoices("RAG_API_BASE", "api_base"))
    openai_api_key: str = ""
    openai_chat_model: str = ""
    supabase_url: str = ""
    supabase_key: str = Field(
        default="",
        validation_alias=AliasChoices("SUPABASE_SERVICE_ROLE_KEY", "SUPABASE_ANON_KEY", "supabase_key")
    )
    supabase_match_rpc: str = "match_documents"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    def require(self, name: str) -> str:
        """Returns a non-blank setting or raises ConfigurationError naming the variable."""
        value = str(getattr(self, name, "") or "").strip()
        if not value:
            raise ConfigurationError(f"{ENV_NAMES.get(name, name.upper())} is missing")
        return value

    @property
    def chat_model(self) -> str:
        return self.openai_chat_model.strip() or self.llm.chat_model

# YAML section name -> settings field / model
SECTIONS = {
    "backend": BackendConfig,
    "store": StoreConfig,
    "simulation": SimulationConfig,
    "polling": PollingConfig,
    "llm": LLMConfig,
    "retrieval": RetrievalConfig,
}

def _find_config(config_path: str) -> str | None:
    candidates = [config_path, "config/config.yaml", os.path.join(os.path.dirname(__file__), "config.yaml")]
    return next((p for p in candidates if os.path.exists(p)), None)

def load_settings(config_path: str = "backend/config/config.yaml") -> AppSettings:
    """YAML sections first, then environment variables for the top-level keys."""
    path = _find_config(config_path)
    yaml_data = {}
    if path is not None:
        with open(path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f) or {}

    sections = {name: model(**(yaml_data.get(name) or {})) for name, model in SECTIONS.items()}
    return AppSettings(**sections)

settings = load_settings()
