from typing import Literal, Optional
from pydantic import BaseModel, Field, SecretStr, ConfigDict


class DownloadSettings(BaseModel):
    """Settings for the batch download run"""

    outdir: str = Field("./downloads", min_length=1, description="Output root")
    retry: int = Field(2, ge=0, le=100, description="Retries per article")
    retry_interval: float = Field(
        10.0, ge=0.0, description="Seconds between retries (0 = immediately)"
    )
    sleep: float = Field(
        5.0, ge=0.0, description="Throttle delay after each saved article"
    )
    timeout: float = Field(60.0, gt=0.0, description="Artifact fetch timeout")

    @property
    def max_trials(self) -> int:
        return 1 + self.retry


class BrowserSettings(BaseModel):
    """Headless browser launch options"""

    headless: bool = True
    sandbox: bool = True


class Credentials(BaseModel):
    """Login credentials for the remote site"""

    model_config = ConfigDict(hide_input_in_errors=True)

    username: Optional[str] = None
    password: Optional[SecretStr] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.username) and self.password is not None


class LoggingSettings(BaseModel):
    """Structured logging options"""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    json_output: bool = False


class AppConfig(BaseModel):
    """Root configuration"""

    download: DownloadSettings = Field(default_factory=DownloadSettings)
    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    credentials: Credentials = Field(default_factory=Credentials)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
