"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "threat-lens"
    debug: bool = False
    log_level: str = "INFO"

    # Input caps
    max_input_chars: int = 50_000
    stored_target_max_chars: int = 2_000
    stored_payload_max_chars: int = 5_000
    attack_retention_days: int = 30

    # Anomaly scoring weights
    anomaly_signature_weight: float = 0.2
    anomaly_special_char_weight: float = 0.05
    anomaly_special_char_cap: float = 0.3
    anomaly_long_input_chars: int = 500
    anomaly_very_long_input_chars: int = 1_000
    anomaly_length_bonus: float = 0.1
    anomaly_encoding_bonus: float = 0.1

    # Verdict combination
    malicious_anomaly_threshold: float = 0.5

    # External classifier (Gemini)
    gemini_model: str = "gemini-2.5-flash"
    gemini_temperature: float = 0.1
    gemini_max_output_tokens: int = 2048
    classifier_timeout_seconds: float = 30.0
    classifier_response_parser: str = "first_json_block"

    # Reports
    report_top_iocs: int = 20

    model_config = {"env_prefix": "THREAT_LENS_"}


settings = Settings()
