from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # GitHub Gist API
    github_token: str = ""
    github_api_url: str = "https://api.github.com"
    user_agent: str = "md2slides"
    http_timeout_seconds: float = 10.0

    # Ownership cookie
    cookie_name: str = "owned_docs"
    cookie_max_age: int = 31536000  # one year

    # Documents
    default_title: str = "Untitled Presentation"
    default_description: str = "md2slides presentation"

    # Editor
    autosave_delay_seconds: float = 2.0
    highlight_style: str = "github-dark"

    # Storage
    db_path: str = "md2slides.db"

    # Server
    public_url: str = "http://127.0.0.1:8000"
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
