import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()

@dataclass
class Settings:
    # API settings
    api_host: str = os.getenv("API_HOST", "127.0.0.1")
    api_port: int = int(os.getenv("API_PORT", "8080"))

    # Storage files
    books_file: str = os.getenv("LIBRARY_BOOKS_FILE", "books.txt")
    users_file: str = os.getenv("LIBRARY_USERS_FILE", "users.txt")

    # Lending rules
    borrow_limit: int = int(os.getenv("BORROW_LIMIT", "3"))
    loan_days: int = int(os.getenv("LOAN_DAYS", "14"))

    # Application settings
    app_name: str = os.getenv("APP_NAME", "Lending Library")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()
