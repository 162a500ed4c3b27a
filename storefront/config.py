# storefront/config.py
import os
import logging
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Base directory of the project
BASE_DIR = Path(__file__).resolve().parent.parent

class Config:
    """Configuration settings for the storefront order engine"""

    # Database settings
    DATABASE_URL: str = os.getenv("DATABASE_URL", "")
    DB_POOL_MIN_SIZE: int = int(os.getenv("DB_POOL_MIN_SIZE", "2"))
    DB_POOL_MAX_SIZE: int = int(os.getenv("DB_POOL_MAX_SIZE", "10"))

    # PayMongo (GCash) settings
    PAYMONGO_SECRET_KEY: str = os.getenv("PAYMONGO_SECRET_KEY", "")
    PAYMONGO_API_URL: str = os.getenv("PAYMONGO_API_URL", "https://api.paymongo.com/v1")

    # PayPal settings
    PAYPAL_CLIENT_ID: str = os.getenv("PAYPAL_CLIENT_ID", "")
    PAYPAL_SECRET: str = os.getenv("PAYPAL_SECRET", "")
    PAYPAL_MODE: str = os.getenv("PAYPAL_MODE", "sandbox")
    PAYPAL_API_URL: str = (
        "https://api-m.paypal.com" if PAYPAL_MODE == "live"
        else "https://api-m.sandbox.paypal.com"
    )

    # Storefront settings
    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:5173")
    CURRENCY: str = os.getenv("CURRENCY", "PHP")
    STORE_NAME: str = os.getenv("STORE_NAME", "Storefront")
    LOCAL_HUB_CITY: str = os.getenv("LOCAL_HUB_CITY", "Manila")
    HTTP_TIMEOUT: int = int(os.getenv("HTTP_TIMEOUT", "30"))

    # Other settings
    TIMEZONE: str = os.getenv("TZ", "Asia/Manila")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Paths
    LOG_DIR = BASE_DIR / "logs"

def setup_logging():
    """Configure logging settings"""
    log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    Config.LOG_DIR.mkdir(exist_ok=True)
    log_file = Config.LOG_DIR / "storefront.log"

    logging.basicConfig(
        level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
        format=log_format,
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )
