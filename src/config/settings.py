from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import Optional


class Settings(BaseSettings):
    # Retell
    retell_api_key: Optional[str] = None
    retell_base_url: str = "https://api.retellai.com"
    retell_agent_id: Optional[str] = None  # Demo agent for web calls
    retell_from_number: Optional[str] = None  # Caller ID for outbound calls when no number was bought
    retell_llm_model: str = "gpt-4o-mini"

    # Agent defaults
    default_voice_id: str = "11labs-Adrian"
    default_agent_name: str = "Allie"
    default_area_code: str = "508"

    # Webhooks
    retell_webhook_secret: Optional[str] = None
    webhook_secret_header: str = "X-Webhook-Secret"
    dedup_window_seconds: int = 600
    min_call_duration_ms: int = 20000
    min_lead_summary_length: int = 65

    # Twilio (supports both twilio_sid and twilio_account_sid)
    twilio_account_sid: Optional[str] = None
    twilio_sid: Optional[str] = None  # Alternative name
    twilio_auth_token: Optional[str] = None
    twilio_phone_number: Optional[str] = None

    def get_twilio_account_sid(self) -> Optional[str]:
        """Get Twilio account SID from either twilio_account_sid or twilio_sid"""
        return self.twilio_account_sid or self.twilio_sid

    # Transactional email
    email_api_key: Optional[str] = None
    email_api_base_url: str = "https://api.resend.com"
    email_from: Optional[str] = None

    # Structured call log (automation webhook that stores one record per call)
    call_log_webhook_url: Optional[str] = None

    # Website context
    website_fetch_timeout: float = 8.0
    reader_proxy_base_url: str = "https://r.jina.ai/"
    reader_proxy_timeout: float = 9.0

    # Server
    port: int = 8000
    host: str = "0.0.0.0"
    environment: str = "development"
    log_level: str = "INFO"

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Override port from environment if PORT is set (serverless / Fly.io)
        import os
        if os.getenv("PORT"):
            self.port = int(os.getenv("PORT"))

    model_config = ConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"  # Ignore extra environment variables
    )


settings = Settings()
