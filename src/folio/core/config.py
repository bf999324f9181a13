from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, Dict, Any
from pathlib import Path


class Settings(BaseSettings):
    # Workspace paths
    FOLIO_DATA_DIR: str = "data"  # Human-managed inputs (raw text, TOC files)
    FOLIO_WORKDIR: str = "var"  # Tool-managed artifacts

    # Segmentation
    RUNNING_HEADER: str = "Mandate for Leadership: The Conservative Promise"
    PAGE_OVERRIDES: Dict[str, str] = {}  # page label -> forced subsection
    TOC_FILE: Optional[str] = None  # YAML/JSON section reference list

    # Chunking
    TOKEN_MODEL: str = "gpt-4o"
    CHUNK_MAX_TOKENS: int = 4000
    OPEN_ENDED_LAST_SECTION: bool = True  # last TOC entry runs to the last page

    # Completion processing
    PAGE_START: int = 0  # skip sections starting before this page
    MAX_CHUNKS: Optional[int] = None  # Limit for dry-runs
    COMPLETION_PROVIDER: str = "dummy"  # dummy|openai
    COMPLETION_MODEL: str = "gpt-4o-mini"
    COMPLETION_TEMPERATURE: float = 1.0
    COMPLETION_MAX_OUTPUT_TOKENS: int = 8192
    COMPLETION_MAX_RETRIES: int = 2  # total attempts per chunk
    COMPLETION_RETRY_DELAY: float = 2.0  # seconds between attempts
    COMPLETION_FAIL_FAST: bool = False
    OPENAI_API_KEY: Optional[str] = None

    # Observability
    LOG_FORMAT: str = "auto"  # json|plain|auto

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @classmethod
    def load_config(cls, config_file: Optional[str] = None) -> "Settings":
        """Load settings with config file -> env -> CLI precedence."""
        config_data: Dict[str, Any] = {}

        # Find config file
        if config_file:
            config_path = Path(config_file)
            if not config_path.exists():
                raise FileNotFoundError(f"Config file not found: {config_file}")
        else:
            # Auto-discover .folio.{yaml,yml,toml}
            for ext in ["yaml", "yml", "toml"]:
                config_path = Path(f".folio.{ext}")
                if config_path.exists():
                    break
            else:
                config_path = None

        # Load config file if found
        if config_path and config_path.exists():
            if config_path.suffix in [".yaml", ".yml"]:
                import yaml  # type: ignore[import-untyped]

                with open(config_path) as f:
                    config_data = yaml.safe_load(f) or {}
            elif config_path.suffix == ".toml":
                import tomllib

                with open(config_path, "rb") as f:
                    config_data = tomllib.load(f)

        # Config file values are defaults; environment variables win
        from_env = cls()
        data = {k: v for k, v in config_data.items() if k in cls.model_fields}
        data.update({k: getattr(from_env, k) for k in from_env.model_fields_set})
        return cls(**data)


# Default settings - will be replaced by load_config() during CLI startup
SETTINGS = Settings()
