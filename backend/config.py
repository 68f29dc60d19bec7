"""Configuration management for the Devatra companion backend."""
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# API Keys (the Gemini key itself is read per request, see services/credentials.py)
GEMINI_API_KEY_ENV = os.getenv("GEMINI_API_KEY_ENV", "GEMINI_API_KEY")
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")

# Server Configuration
PORT = int(os.getenv("PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# CORS Configuration
CORS_ORIGINS = os.getenv(
    "CORS_ORIGINS",
    "http://localhost:3000,http://localhost:5173"
).split(",")

# Model Configuration
CHAT_MODEL = "gemini-3-flash-preview"
THINKING_MODEL = "gemini-3-pro-preview"
IMAGE_MODEL = "gemini-3-pro-image-preview"
PRACTICE_MODEL = "gemini-3-flash-preview"
THINKING_BUDGET = 32768

# Cosmic reading image output
READING_ASPECT_RATIO = "1:1"
READING_IMAGE_SIZE = "1K"

# Practice session shape
MIN_PRACTICE_STEPS = 3
MAX_PRACTICE_STEPS = 5

# Interaction analytics
INTERACTION_LOG_PATH = os.getenv("INTERACTION_LOG_PATH", "logs/interactions.jsonl")
