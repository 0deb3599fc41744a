from pathlib import Path
from typing import List, Literal
import os

from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL

# Load .env file if it exists, for local development
# In production, environment variables should be set directly.
if os.path.exists(".env"):
    from dotenv import load_dotenv
    load_dotenv()

PROJECT_ROOT = Path(__file__).resolve().parent.parent
ASSETS_DIR = PROJECT_ROOT / "assets"


class StoreSettings(BaseSettings):
    mode: Literal["offline", "online"] = "offline"
    sqlite_path: str = "./soil_connectivity.sqlite"  # Embedded store used in offline mode
    host: str = "localhost"
    port: int = 3306
    user: str = "evaltool"
    password: str = "password"
    dbname: str = "soil_connectivity"
    echo: bool = False
    retry_attempts: int = 3

    model_config = SettingsConfigDict(env_prefix='STORE_')

    def database_url(self) -> URL:
        """Builds the SQLAlchemy URL for the configured mode."""
        if self.mode == "online":
            return URL.create(
                "mysql+pymysql",
                username=self.user,
                password=self.password,
                host=self.host,
                port=self.port,
                database=self.dbname,
            )
        return URL.create("sqlite", database=self.sqlite_path)


class SurveySettings(BaseSettings):
    report_config_path: str = str(ASSETS_DIR / "report_bands.yml")
    reference_path: str = str(ASSETS_DIR / "postcode_reference.csv")
    decline_redirect_url: str = "https://www.farminstitute.org.au/research/major-projects/soil-connectivity-resources/"
    more_info_url: str = "https://www.farminstitute.org.au/research/major-projects/soil-connectivity-resources/"
    session_timeout_seconds: int = 3600
    keepalive_interval_seconds: int = 60
    reconnect_max_attempts: int = 8
    reconnect_max_delay_seconds: float = 32.0
    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]

    model_config = SettingsConfigDict(env_prefix='SURVEY_')


# Instantiate settings
store_settings = StoreSettings()
survey_settings = SurveySettings()
