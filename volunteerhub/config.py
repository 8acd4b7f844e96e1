# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# SPDX-License-Identifier: MIT
#

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str
    secret_key: str
    refresh_secret_key: str
    app_env: str = "development"
    log_level: str = "INFO"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 15
    refresh_token_expire_days: int = 7
    bcrypt_rounds: int = 12
    allowed_origins: str = "http://localhost:3000"

    vapid_public_key: str = ""
    vapid_private_key: str = ""
    vapid_subject: str = "mailto:admin@volunteerhub.com"
    push_ttl_seconds: int = 86400
    notification_max_attempts: int = 5
    dispatch_on_startup: bool = True

    sendgrid_api_key: str = ""
    mail_sender_email: str = "no-reply@example.com"
    mail_sender_name: str = "VolunteerHub Team"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


# Create an instance of Settings to be imported across the application
settings = Settings()
