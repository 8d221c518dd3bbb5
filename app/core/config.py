import os

# ✅ Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./selectif.db")
RUN_MIGRATIONS = os.getenv("RUN_MIGRATIONS", "0") == "1"

# ✅ Security
SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-production")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7)))

# ✅ LLM (any OpenAI-compatible endpoint, Groq by default)
LLM_API_KEY = os.getenv("LLM_API_KEY") or os.getenv("GROQ_API_KEY")
LLM_BASE_URL = os.getenv("LLM_BASE_URL", "https://api.groq.com/openai/v1")
LLM_MODEL = os.getenv("LLM_MODEL", "llama-3.1-8b-instant")

# ✅ Email (Resend)
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM = os.getenv("EMAIL_FROM", "Selectif <onboarding@resend.dev>")
EMAIL_CAMPAIGN_DELAY_SECONDS = float(os.getenv("EMAIL_CAMPAIGN_DELAY_SECONDS", "0.6"))

# ✅ Stripe
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
BILLING_CURRENCY = os.getenv("BILLING_CURRENCY", "eur")

# ✅ App
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if origin.strip()
]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_DIR = os.getenv("LOG_DIR")

# ✅ Applications
MAX_CV_SIZE_BYTES = int(os.getenv("MAX_CV_SIZE_BYTES", str(5 * 1024 * 1024)))
DATA_RETENTION_MONTHS = int(os.getenv("DATA_RETENTION_MONTHS", "6"))
