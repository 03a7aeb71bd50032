import os
from typing import List, Optional
from dotenv import load_dotenv
from pydantic_settings import BaseSettings

load_dotenv()  # load .env

class _Settings(BaseSettings):
    # OpenAI
    openai_api_key: str = os.getenv("OPENAI_API_KEY", "")
    openai_base_url: Optional[str] = None
    model: str = "gpt-4.1-mini"
    max_output_tokens: int = 4000
    temperature: float = 0.0

    # Provider retries (overload / rate limit only)
    provider_max_attempts: int = 4        # attempts per logical call
    provider_initial_delay: float = 1.0   # seconds, doubled on each retry
    provider_max_delay: float = 30.0
    provider_retry_budget: int = 8        # retries per pipeline invocation
    overload_status_codes: List[int] = [429, 503, 529]

    # Self-correction
    correction_budget: int = 1            # corrective requests per invocation
    correction_rounds: int = 1
    correction_score_ceiling: int = 100   # only correct reports scoring at or below this
    improvement_margin: int = 0

    default_target_language: str = "en"

    # Telemetry
    usage_log_path: Optional[str] = None  # JSONL file, unset = log only

    # CSV defaults
    # Default column names, can be overridden at runtime
    default_text_col: str   = "text"
    default_source_col: str = "source_language"

    # Runtime
    batch_size: int = 10          # rows per save
    max_concurrency: int = 5      # parallel tasks

    class Config:
        env_file = ".env"
        case_sensitive = False

settings = _Settings()           # singleton
