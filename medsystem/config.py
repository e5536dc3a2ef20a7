import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./medsystem.db")

# Firebase Configuration
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")
# Service account JSON; Application Default Credentials are used when unset
FIREBASE_CREDENTIALS_PATH = os.getenv("FIREBASE_CREDENTIALS_PATH")

# Cloudflare R2 Configuration
R2_ACCOUNT_ID = os.getenv("R2_ACCOUNT_ID")
R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID")
R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY")
R2_BUCKET_NAME = os.getenv("R2_BUCKET_NAME", "medsystem")

# AI gateway (OpenAI-compatible chat completions) for traffic report extraction
AI_GATEWAY_URL = os.getenv("AI_GATEWAY_URL", "https://ai.gateway.lovable.dev/v1/chat/completions")
AI_GATEWAY_API_KEY = os.getenv("AI_GATEWAY_API_KEY")
AI_PRIMARY_MODEL = os.getenv("AI_PRIMARY_MODEL", "google/gemini-2.5-flash")
AI_FALLBACK_MODEL = os.getenv("AI_FALLBACK_MODEL", "google/gemini-2.5-pro")
AI_REQUEST_TIMEOUT = float(os.getenv("AI_REQUEST_TIMEOUT", "120"))

# Unmasks patient names in the public notification summary
NOTIFICATION_TOKEN = os.getenv("NOTIFICATION_TOKEN")

# Shared secret for scheduler-invoked functions (daily tasks, surgery status)
FUNCTIONS_SECRET = os.getenv("FUNCTIONS_SECRET")
if not FUNCTIONS_SECRET:
    import warnings

    warnings.warn(
        "FUNCTIONS_SECRET not set! Cron functions only accept admin tokens",
        RuntimeWarning,
        stacklevel=2,
    )

# Day boundaries for tasks, surgeries and summaries
CLINIC_TIMEZONE = os.getenv("CLINIC_TIMEZONE", "America/Sao_Paulo")

# Frontend base URL for deep links
FRONTEND_URL = os.getenv("FRONTEND_URL", "https://medsystem.lovable.app")

# Accounts created by username get a synthetic e-mail on this domain
USERNAME_EMAIL_DOMAIN = os.getenv("USERNAME_EMAIL_DOMAIN", "medsystem.local")

# Exams every surgical patient must bring before scheduling
REQUIRED_EXAMS = [
    exam.strip()
    for exam in os.getenv(
        "REQUIRED_EXAMS",
        "Hemograma,Coagulograma,Glicemia,Eletrocardiograma,Risco Cirúrgico",
    ).split(",")
    if exam.strip()
]

# WhatsApp template defaults
DEFAULT_HOSPITAL = os.getenv("DEFAULT_HOSPITAL", "Hospital Brasília")
DEFAULT_SURGEON_NAME = os.getenv("DEFAULT_SURGEON_NAME", "Dr. André Alves")
