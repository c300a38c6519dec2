import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Application configuration"""

    # Database
    DATABASE_URL = os.getenv('OVERALL_DATABASE_URL', 'sqlite:///overall.db')

    # Owners and repository limit to sync
    SETTINGS_FILE = os.getenv('OVERALL_SETTINGS_FILE', 'overall.yml')

    # Directory served to the dashboard; repos.json is written here
    STATIC_DIR = os.getenv('OVERALL_STATIC_DIR', 'static')

    # Server
    PORT = int(os.getenv('OVERALL_PORT', '8080'))

    # Flask
    SECRET_KEY = os.getenv('FLASK_SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = os.getenv('FLASK_ENV') == 'development'
