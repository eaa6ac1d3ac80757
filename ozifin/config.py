from pydantic_settings import BaseSettings
from dotenv import load_dotenv
from typing import List, Optional

# Export .env to os.environ as well; values already set in the environment win
load_dotenv()


class Settings(BaseSettings):
    # Database
    DATABASE_URL: Optional[str] = None

    # JWT Authentication
    SECRET_KEY: str = "change-this-in-production-secret-key-12345"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 12

    # Application
    APP_NAME: str = "OZIFIN Ledger"
    APP_VERSION: str = "1.0.0"

    # CORS
    ALLOWED_ORIGINS: List[str] = ["*"]  # Restrict in production

    # Password security
    BCRYPT_ROUNDS: int = 12

    # Image hosting (ImgBB)
    IMGBB_API_KEY: Optional[str] = None
    IMGBB_UPLOAD_URL: str = "https://api.imgbb.com/1/upload"
    IMGBB_TIMEOUT: int = 30

    # PDF reports (Unicode TTF faces; Vietnamese needs glyphs the built-in fonts lack)
    PDF_FONT_PATH: str = "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"
    PDF_FONT_BOLD_PATH: str = "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"

    # Ledger
    TRANSACTION_ID_RETRIES: int = 3
    MAX_OWNER_EDITS: int = 2

    # Audit
    AUDIT_LOG_ALL: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
