"""
Storefront configuration, read once from the environment.
"""

import os

from dotenv import load_dotenv

load_dotenv()

STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "memory")  # memory | mongo
DATABASE_URL = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "storefront")
STORE_COLLECTION = os.getenv("STORE_COLLECTION", "kv")
STORE_QUOTA = int(os.getenv("STORE_QUOTA", "0"))  # characters, 0 = unlimited

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
PORT = int(os.getenv("PORT", 8000))

PLACEHOLDER_IMAGE = os.getenv("PLACEHOLDER_IMAGE", "https://via.placeholder.com/200?text=No+Image")
CURRENCY = os.getenv("CURRENCY", "AED")
