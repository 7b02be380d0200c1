from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    database_url: str = "sqlite:///./clinic_lab_reports.db"
    app_env: str = "dev"
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    log_level: str = "INFO"

    api_base_url: str = "http://localhost:8000"
    allowed_origins: str = "http://localhost:8501"

    session_ttl_hours: int = 24
    admin_username: str = "admin"
    admin_password: str | None = None

    org_slug: str = "sugar_diagnostic"
    lab_name: str = "Sugar Diagnostic Lab"
    lab_address: str = ""
    work_timings: str = "Work timings: Monday to Sunday, 8 am to 8 pm"
    strict_test_types: bool = False


settings = Settings()
