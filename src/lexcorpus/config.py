import os
from dotenv import load_dotenv

load_dotenv()

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
SRC_DIR = os.path.join(PROJECT_ROOT, "src")

# Data layout
DATA_DIR = os.getenv("LEXCORPUS_DATA_DIR", os.path.join(PROJECT_ROOT, "data"))
SOURCE_DIR = os.getenv("LEXCORPUS_SOURCE_DIR", os.path.join(DATA_DIR, "source"))
SEED_DIR = os.getenv("LEXCORPUS_SEED_DIR", os.path.join(DATA_DIR, "seed"))
CENSUS_PATH = os.getenv("LEXCORPUS_CENSUS_PATH", os.path.join(DATA_DIR, "census.json"))
CORPUS_DB_PATH = os.getenv("LEXCORPUS_DB_PATH", os.path.join(DATA_DIR, "database.db"))
INGEST_REPORT_PATH = os.getenv("LEXCORPUS_INGEST_REPORT", os.path.join(DATA_DIR, "ingest_report.csv"))
LOG_DIR = os.getenv("LEXCORPUS_LOG_DIR", os.path.join(PROJECT_ROOT, "logs"))

# Fetching (be polite to government servers)
FETCH_MIN_DELAY_MS = int(os.getenv("FETCH_MIN_DELAY_MS", "500"))
FETCH_MAX_RETRIES = int(os.getenv("FETCH_MAX_RETRIES", "3"))
FETCH_BACKOFF_BASE = float(os.getenv("FETCH_BACKOFF_BASE", "2.0"))
FETCH_TIMEOUT = float(os.getenv("FETCH_TIMEOUT", "45"))
USER_AGENT = os.getenv(
    "LEXCORPUS_USER_AGENT",
    "lexcorpus/0.1 (statute corpus builder; +https://thuvienphapluat.vn usage: research)",
)
SOURCE_PORTAL_URL = os.getenv("SOURCE_PORTAL_URL", "https://thuvienphapluat.vn")

# Provenance attached to every tool response
JURISDICTION = os.getenv("LEXCORPUS_JURISDICTION", "VN")
DATA_SOURCE = os.getenv(
    "LEXCORPUS_DATA_SOURCE",
    "Thu Vien Phap Luat (thuvienphapluat.vn) and Van Ban Chinh Phu (vanban.chinhphu.vn)",
)
DISCLAIMER = os.getenv(
    "LEXCORPUS_DISCLAIMER",
    "Legislation text is collected from public sources and may be incomplete or out of date. "
    "The authoritative versions are published in the Official Gazette. "
    "Always verify against the official source before relying on a provision.",
)
CORPUS_TIER = os.getenv("LEXCORPUS_TIER", "free")
MAX_DB_AGE_DAYS = int(os.getenv("MAX_DB_AGE_DAYS", "90"))

# HTTP server
APP_ENV = os.getenv("APP_ENV", "production")
APP_VERSION = os.getenv("APP_VERSION", "0.1.0")
MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", "262144"))  # 256 KB default
API_KEY = os.getenv("API_KEY", "")
RATE_LIMIT_STORAGE_URI = os.getenv("RATE_LIMIT_STORAGE_URI", "memory://")
SENTRY_DSN = os.getenv("SENTRY_DSN", "")
SENTRY_TRACES_SAMPLE_RATE = float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.0"))
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "1") == "1"
