import logging
import sys
from typing import Literal, Optional

from pydantic_settings import BaseSettings


def setup_logging():
    """Configure application logging."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    # Set third-party loggers to WARNING to reduce noise
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


# Initialize logging on import
setup_logging()

logger = logging.getLogger(__name__)


WireFraming = Literal["ndjson", "concat"]


class Settings(BaseSettings):
    # OpenAI (server-side only)
    openai_api_key: Optional[str] = None
    openai_organization: Optional[str] = None
    openai_base_url: str = "https://api.openai.com/v1"

    # Model configuration
    completion_model: str = "text-davinci-003"
    embedding_model: str = "text-embedding-ada-002"
    completion_max_tokens: int = 2500
    completion_temperature: float = 0.7
    completion_frequency_penalty: float = 0
    completion_presence_penalty: float = 0

    # Supabase (hosted Postgres exposed through PostgREST)
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None

    # Similarity search
    similarity_threshold: float = 0.75
    match_count: int = 5

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    # Timeout settings (seconds)
    provider_timeout: int = 60
    stream_read_timeout: int = 30

    # Framing of the recommendations stream ("concat" is the legacy format)
    wire_framing: WireFraming = "ndjson"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


def warn_missing_credentials():
    """Log which provider credentials are absent. The app still starts."""
    if not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY is not set; embeddings and completions will fail")
    if not settings.supabase_url or not settings.supabase_key:
        logger.warning("SUPABASE_URL / SUPABASE_KEY are not set; hotel lookups will return nothing")


settings = Settings()
