"""
Blixora Labs API Configuration
Database, auth and server settings
"""

import os

# MongoDB
MONGO_URL = os.getenv("MONGO_URL", "mongodb://localhost:27017")
MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "blixora_db")

# JWT (shared secret with the auth service)
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", "10080"))

# Server
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:8080")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
VERSION = os.getenv("VERSION", "1.0.0")

# Pagination
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
