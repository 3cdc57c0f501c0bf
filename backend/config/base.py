"""Settings shared by every environment."""
import os
from datetime import timedelta

class BaseConfig:
    """Base configuration."""
    
    SECRET_KEY = os.getenv('SECRET_KEY') or 'dev-secret-key-change-in-production'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False
    
    # JWT Configuration (bearer tokens minted by the identity provider)
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY') or 'jwt-secret-key-change-in-production'
    JWT_ALGORITHM = 'HS256'
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=1)
    
    # CORS
    CORS_ORIGINS = [
        "http://localhost:8080",
        "http://localhost:5173",
        "http://localhost:3000",
    ]
    
    # Rate Limiting
    RATELIMIT_STORAGE_URI = os.getenv('REDIS_URL') or 'memory://'
    RATELIMIT_ENABLED = True
    RATELIMIT_DEFAULT = "2000 per hour"
    
    # QR tokens
    QR_SECRET = os.getenv('QR_SECRET') or 'dev-qr-secret-change-in-production'
    QR_DEFAULT_VALIDITY_SECONDS = 300
    QR_MIN_VALIDITY_SECONDS = 10
    QR_MAX_VALIDITY_SECONDS = 3600
    
    # Geofence
    DEFAULT_GEOFENCE_RADIUS = 50  # meters
    MAX_GEOFENCE_RADIUS = 5000
    
    # Join codes (no 0/O/1/I)
    JOIN_CODE_LENGTH = 6
    JOIN_CODE_ALPHABET = 'ABCDEFGHJKLMNPQRSTUVWXYZ23456789'
    JOIN_CODE_MAX_ATTEMPTS = 20
    
    # Roster upload
    MAX_CONTENT_LENGTH = 4 * 1024 * 1024
    ALLOWED_EXTENSIONS = {'csv', 'xlsx'}
    
    # Logging
    LOG_LEVEL = 'INFO'
    LOG_FILE = 'logs/app.log'
