from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field, validator
from dotenv import load_dotenv

load_dotenv("src/web_tester/.env")

class Settings(BaseSettings):
    # Service Configuration
    APP_PORT: int = Field(default=5001, description="Port for the FastAPI service")

    # Browser Session Configuration
    HEADLESS: bool = Field(default=True, description="Launch Chromium without a visible window")
    VIEWPORT_WIDTH: int = Field(default=1920, description="Viewport width of the test page")
    VIEWPORT_HEIGHT: int = Field(default=1080, description="Viewport height of the test page")
    NAVIGATION_TIMEOUT_MS: int = Field(default=60000, description="Bound for the initial DOM-ready navigation")
    SETTLE_DELAY_MS: int = Field(default=2000, description="Fixed delay after navigation for client-side rendering")
    LOGIN_NAVIGATION_TIMEOUT_MS: int = Field(default=10000, description="How long to wait for navigation after submitting a login form")

    # Step Execution Configuration
    SELECTOR_TIMEOUT_MS: int = Field(default=5000, description="Default selector wait for click and input steps")
    STEP_NAVIGATION_TIMEOUT_MS: int = Field(default=30000, description="Default network-idle bound for navigation steps")
    DEFAULT_WAIT_MS: int = Field(default=1000, description="Default sleep for wait steps")

    # API Test Configuration
    API_TIMEOUT_MS: int = Field(default=30000, description="Default per-request timeout for API tests")
    API_BASE_URL: Optional[str] = Field(default=None, description="Base URL that relative API test URLs are joined onto")

    # Run Behaviour
    SELF_HEALING_ENABLED: bool = Field(default=True, description="Enable/disable the one-shot self-healing retry")
    CLOSE_SESSION_ON_ERROR: bool = Field(default=True, description="Close the browser session when a run fails before completing")

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Root log level")
    LOG_DIR: str = Field(default="logs", description="Directory for rotating log files")

    @validator('VIEWPORT_WIDTH', 'VIEWPORT_HEIGHT')
    def validate_viewport(cls, v):
        """Validate that viewport dimensions are positive."""
        if v <= 0:
            raise ValueError(f"Viewport dimensions must be positive, got {v}")
        return v

    @validator('NAVIGATION_TIMEOUT_MS', 'LOGIN_NAVIGATION_TIMEOUT_MS', 'SELECTOR_TIMEOUT_MS',
               'STEP_NAVIGATION_TIMEOUT_MS', 'API_TIMEOUT_MS')
    def validate_timeouts(cls, v):
        """Validate that timeouts are positive."""
        if v <= 0:
            raise ValueError(f"Timeouts must be positive, got {v}")
        return v

    @validator('SETTLE_DELAY_MS', 'DEFAULT_WAIT_MS')
    def validate_delays(cls, v):
        """Validate that delays are not negative."""
        if v < 0:
            raise ValueError(f"Delays cannot be negative, got {v}")
        return v

    @validator('LOG_LEVEL')
    def validate_log_level(cls, v):
        """Validate that LOG_LEVEL is a standard logging level."""
        if v.upper() not in ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']:
            raise ValueError(f"LOG_LEVEL must be a standard logging level, got '{v}'")
        return v.upper()

    class Config:
        env_file = ".env"
        env_file_encoding = 'utf-8'
        extra = 'ignore'

settings = Settings()
