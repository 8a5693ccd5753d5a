import os

from dotenv import load_dotenv

from google_sso import CacheConfig, GoogleSsoConfig, GoogleSsoExtension, InMemoryCache

load_dotenv()
GLOBAL_CONFIG = {
    "GOOGLE_CLIENT_ID": os.environ.get("GOOGLE_CLIENT_ID"),
    "GOOGLE_CLIENT_SECRET": os.environ.get("GOOGLE_CLIENT_SECRET"),
    "GOOGLE_CALLBACK_URL": os.environ.get("GOOGLE_CALLBACK_URL", "https://localhost:5000/sso/callback"),
    "FLASK_SECRET_KEY": os.environ.get("FLASK_SECRET_KEY"),
}

if not all(GLOBAL_CONFIG.values()):
    raise ValueError("Missing required environment variables for Google sign-in")

FLASK_SECRET_KEY = GLOBAL_CONFIG["FLASK_SECRET_KEY"]

config = GoogleSsoConfig(
    client_id=GLOBAL_CONFIG["GOOGLE_CLIENT_ID"],
    client_secret=GLOBAL_CONFIG["GOOGLE_CLIENT_SECRET"],
    callback_url=GLOBAL_CONFIG["GOOGLE_CALLBACK_URL"],
)

# sso will be the ext imported in the Flask app.
# Swap InMemoryCache for RedisCache when running more than one worker.
sso = GoogleSsoExtension(config, cache_config=CacheConfig(cache=InMemoryCache()))
