# backend/shoppos/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored next to the instance by default
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///shoppos.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Receipt / label text
    SHOP_NAME = os.environ.get("SHOP_NAME", "فيونكه - Fyooonka")
    SHOP_TAGLINE = os.environ.get("SHOP_TAGLINE", "Premium Jewelry Boutique")
    SHOP_PHONE = os.environ.get("SHOP_PHONE", "01276939225")
    CURRENCY_LABEL = os.environ.get("CURRENCY_LABEL", "ج.م")

    # Hardware scanners type faster than this; slower gaps reset the buffer
    SCAN_KEY_GAP_MS = int(os.environ.get("SCAN_KEY_GAP_MS", "100"))

    # IANA zone for report day windows and printed times (stored times are UTC)
    SHOP_TIMEZONE = os.environ.get("SHOP_TIMEZONE", "UTC")

    LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", "5"))
    TOP_SELLERS_LIMIT = int(os.environ.get("TOP_SELLERS_LIMIT", "5"))

    # Tesseract language packs used for bulk import
    OCR_LANGUAGES = os.environ.get("OCR_LANGUAGES", "ara+eng")
