"""
AI Content Configuration and Constants

Content types, system instructions, token heuristics and pagination
defaults are defined here. Deployment values come from the environment.
"""

import os

# ==================== CONTENT TYPES ====================
# One fixed system instruction per content type
SYSTEM_PROMPTS = {
    "blog-post": (
        "You are an expert blog writer. Create engaging, SEO-optimized blog content "
        "that is informative and well-structured."
    ),
    "product-description": (
        "You are an expert e-commerce copywriter. Create compelling product descriptions "
        "that highlight benefits and drive conversions."
    ),
    "ad-copy": (
        "You are an expert advertising copywriter. Create persuasive, attention-grabbing "
        "ad copy that drives action."
    ),
    "social-media": (
        "You are a social media expert. Create engaging, viral-worthy social media posts "
        "that encourage interaction."
    ),
}

# Used when a content type has no entry above
DEFAULT_SYSTEM_PROMPT = "You are a helpful AI assistant."

# ==================== MODEL ====================
DEFAULT_MODEL = os.environ.get("GEMINI_MODEL", "gemini-2.5-flash")
GENERATION_TIMEOUT_SECONDS = float(os.environ.get("GENERATION_TIMEOUT_SECONDS", "60"))

# ==================== TOKEN METERING ====================
# The backend does not report usage, so cost is estimated: 1 token ~ 4 characters
CHARS_PER_TOKEN = 4

# Pre-flight floor checked before the backend is called
MIN_TOKENS_TO_GENERATE = int(os.environ.get("MIN_TOKENS_TO_GENERATE", "1"))

# ==================== PAGINATION ====================
DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

# ==================== SUBSCRIPTION ====================
DEFAULT_SUBSCRIPTION_TIER = "free"

# ==================== ERROR MESSAGES ====================
ERROR_MESSAGES = {
    "VALIDATION_ERROR": "Invalid request",
    "MISSING_PROMPT": "Please provide a prompt",
    "INVALID_CONTENT_TYPE": "Unsupported content type",
    "INSUFFICIENT_TOKENS": "Insufficient tokens. Please upgrade your plan.",
    "BALANCE_BELOW_MINIMUM": "Token balance too low to start a generation. Please upgrade your plan.",
    "GENERATION_FAILED": "Content generation failed",
    "RATE_LIMITED": "Rate limit exceeded. Please try again in a moment.",
    "NOT_FOUND": "Generation not found",
    "FORBIDDEN": "Not authorized to access this generation",
    "FORBIDDEN_DELETE": "Not authorized to delete this generation",
    "UNAUTHORIZED": "Authentication required",
    "BALANCE_NOT_FOUND": "Token balance not found for user",
    "INTERNAL_ERROR": "An unexpected error occurred",
}
