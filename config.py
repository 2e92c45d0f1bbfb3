from pydantic import Field
from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    # Rule thresholds
    MIN_KILL_COUNT: int = 3000
    # Digit runs shorter than this are treated as UI noise
    MIN_DIGIT_RUN: int = Field(3, ge=1)

    # OCR Configuration
    OCR_ENGINE: str = "tesseract"  # "tesseract" | "openai"
    OCR_LANGUAGE: str = "eng"
    OCR_TIMEOUT_S: float = 30.0
    TESSERACT_CONFIG: str = "--psm 6"
    OCR_PREPROCESS: bool = True

    # OpenAI Configuration (only needed when OCR_ENGINE=openai)
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4.1-mini"

    # Image quality diagnostics, logged when OCR comes back empty
    MIN_IMAGE_WIDTH: int = 400
    MIN_IMAGE_HEIGHT: int = 300
    BLUR_THRESHOLD: float = 100
    MIN_BRIGHTNESS: int = 40
    MAX_BRIGHTNESS: int = 220
    MIN_CONTRAST: int = 25

    # Result export
    EXPORT_SCALE: int = 2
    EXPORT_BACKGROUND: str = "#ffffff"
    EXPORT_FILE_PREFIX: str = "verification_result"
    EXPORT_DIR: str = "exports"

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"

settings = Settings()

# Evidence stage configurations
STAGE_CONFIGS = {
    "identity": {
        "label": "Player name",
        "derived_facts": [],
    },
    "kill_count": {
        "label": "Kill-count screenshot",
        "derived_facts": ["kill_count", "name_found"],
    },
    "profile": {
        "label": "Profile screenshot",
        "derived_facts": ["name_match"],
    },
}

# Any whitespace run, including OCR line breaks
WHITESPACE_REGEX = r"\s+"

IMAGE_MIME_PREFIX = "image/"
