import os
from typing import List
from dotenv import load_dotenv
from pydantic import BaseModel

# Load environment variables
load_dotenv()


class Settings(BaseModel):
    """Application settings read from the environment"""
    app_name: str = os.getenv("APP_NAME", "SkillSpire")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "True").lower() == "true"
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # MongoDB
    mongodb_url: str = os.getenv("MONGODB_URL", "mongodb://localhost:27017")
    database_name: str = os.getenv("DATABASE_NAME", "skillspireDB")

    # JWT cookie
    access_token_secret: str = os.getenv("ACCESS_TOKEN_SECRET", "dev-secret-change-me")
    algorithm: str = os.getenv("ALGORITHM", "HS256")
    access_token_expire_days: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_DAYS", "7"))
    cookie_name: str = "token"
    cookie_secure: bool = os.getenv("COOKIE_SECURE", "False").lower() == "true"
    cookie_samesite: str = os.getenv("COOKIE_SAMESITE", "lax")

    # CORS
    frontend_url: str = os.getenv("FRONTEND_URL", "http://localhost:5173")
    cors_origins: List[str] = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")
        if origin.strip()
    ]


settings = Settings()
