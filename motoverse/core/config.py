import os
from dotenv import load_dotenv

load_dotenv()

SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY")
APP_NAME = os.getenv("APP_NAME", "MotoVerse Storefront")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# local key-value slot standing in for browser storage
CART_STORAGE_PATH = os.getenv("CART_STORAGE_PATH", ".motoverse/storage.json")
CART_STORAGE_KEY = "motoverse_cart"
CART_COOKIE = os.getenv("CART_COOKIE", "motoverse_cart_id")
SESSION_STORAGE_KEY = "motoverse_session"

# checkout handoff
WHATSAPP_NUMBER = os.getenv("WHATSAPP_NUMBER", "1234567890")
CURRENCY = os.getenv("CURRENCY", "MAD")

# admin dashboard
LOW_STOCK_THRESHOLD = int(os.getenv("LOW_STOCK_THRESHOLD", "5"))
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_MB", "5")) * 1024 * 1024
IMAGE_BUCKET = os.getenv("IMAGE_BUCKET", "images")
TREND_WINDOWS = (7, 30, 90)
