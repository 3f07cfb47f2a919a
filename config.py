"""
Configuration file for the AI Video Generator.
Contains all global constants, read from the environment (or a .env file).
"""

import os

from dotenv import load_dotenv

load_dotenv()

# --- Server ---
SERVER_HOST = os.getenv("SERVER_HOST", "127.0.0.1")
SERVER_PORT = int(os.getenv("SERVER_PORT", "8000"))
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if origin.strip()
]

# --- Placeholder media ---
MEDIA_BASE_URL = os.getenv("MEDIA_BASE_URL", "https://media.example.com").rstrip("/")

# --- Worker ---
STAGE_DELAY_SECONDS = float(os.getenv("STAGE_DELAY_SECONDS", "1.5"))
MAX_CONCURRENT_JOBS = int(os.getenv("MAX_CONCURRENT_JOBS", "4"))
JOB_TIMEOUT_SECONDS = float(os.getenv("JOB_TIMEOUT_SECONDS", "300"))
JOB_TTL_SECONDS = float(os.getenv("JOB_TTL_SECONDS", "3600"))
SWEEP_INTERVAL_SECONDS = float(os.getenv("SWEEP_INTERVAL_SECONDS", "60"))

# --- Request validation ---
MIN_DURATION = 1
MAX_DURATION = 600
MAX_TOPIC_LENGTH = int(os.getenv("MAX_TOPIC_LENGTH", "200"))
ASPECT_RATIOS = ("16:9", "9:16", "1:1")
PLATFORMS = ("youtube", "tiktok", "instagram", "x")

# --- Moderation ---
BLOCKED_TERMS = [
    term.strip().lower()
    for term in os.getenv("BLOCKED_TERMS", "gore,violence,nsfw").split(",")
    if term.strip()
]

# --- Client ---
API_BASE_URL = os.getenv("API_BASE_URL", f"http://{SERVER_HOST}:{SERVER_PORT}").rstrip("/")
POLL_INTERVAL_SECONDS = float(os.getenv("POLL_INTERVAL_SECONDS", "2.0"))
MAX_POLL_ATTEMPTS = int(os.getenv("MAX_POLL_ATTEMPTS", "240"))
REQUEST_TIMEOUT_SECONDS = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "30"))
