'''
Holds all the configurations
'''
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """
    Manages application configuration using environment variables.
    """
    # Application Metadata
    APP_NAME: str = "Peer Connect Backend"
    APP_VERSION: str = "1.0.0"
    APP_DESCRIPTION: str = "The backend API for the Peer Connect tutoring marketplace."
    TEST_MODE: bool = False

    # Database URL
    DATABASE_URL_PROD: str = "postgresql+asyncpg://localhost:5432/peer_connect"
    DATABASE_URL_TEST: str = "sqlite+aiosqlite:///./peer_connect_test.db"
    @property
    def database_url(self) -> str:
        """
        Dynamically returns the correct database URL based on the test_mode flag.
        """
        if self.TEST_MODE:
            return self.DATABASE_URL_TEST
        return self.DATABASE_URL_PROD

    # JWT Settings
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    BACKEND_CORS_ORIGINS: list[str] = []

    # Calendar dates ("today") are resolved in this timezone
    TIMEZONE: str = "Asia/Manila"

    # Booking rules
    MIN_SESSION_MINUTES: int = 60
    MAX_HOURLY_RATE: float = 150.0

    # Matching weights, should add up to 100
    MATCH_WEIGHT_SUBJECTS: float = 40.0
    MATCH_WEIGHT_LOCATION: float = 20.0
    MATCH_WEIGHT_LEVEL_STYLE: float = 20.0
    MATCH_WEIGHT_AVAILABILITY: float = 10.0
    MATCH_WEIGHT_REPUTATION: float = 10.0

    model_config = SettingsConfigDict(env_file=".env", extra="ignore") # automatically loads the .env

# Create a single, importable instance of the settings
settings = Settings()
