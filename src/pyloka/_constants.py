"""Internal constants shared across the library."""

BASE_URL = "http://localhost:4000/api"
USER_AGENT = "pyloka/0 (+aiohttp)"

# ------------------------------------------------------------------
# REST endpoints
# ------------------------------------------------------------------

PENDING_ORDERS_ENDPOINT = "/admin/orders/pending-count"
PUSH_PUBLIC_KEY_ENDPOINT = "/push/public-key"
PUSH_SUBSCRIBE_ENDPOINT = "/push/subscribe"
PUSH_UNSUBSCRIBE_ENDPOINT = "/push/unsubscribe"

# ------------------------------------------------------------------
# Fixed timings (milliseconds)
# ------------------------------------------------------------------

POLL_INTERVAL_MS = 5000
PRE_SPEECH_DELAY_MS = 600
SPEECH_RETRY_DELAY_MS = 500
SPEECH_MAX_ATTEMPTS = 2
AUTO_DISMISS_MS = 2500
PUSH_PROMPT_DELAY_MS = 2200

MAX_VISIBLE_NOTIFICATIONS = 2

# ------------------------------------------------------------------
# Durable storage keys (one per onboarding machine)
# ------------------------------------------------------------------

PUSH_ONBOARDING_STATE_KEY = "lokaclean_push_onboarding_state"
INSTALL_STATE_KEY = "lokaclean_pwa_installed"

# ------------------------------------------------------------------
# Alert copy
# ------------------------------------------------------------------

DEFAULT_SPEECH_LOCALE = "id-ID"
NEW_ORDER_TITLE = "Pesanan Baru Masuk!"
NEW_ORDER_BODY = "{customer} telah membuat pesanan baru: {package}"
NEW_ORDER_SPEECH = "Pesanan baru dari {customer} untuk paket {package}"

_SPEECH_LOCALES: dict[str, str] = {"id": "id-ID", "en": "en-US"}


def speech_locale(lang: str) -> str:
    """Map a short language code (``"id"``, ``"en"``) to a speech locale.

    Full locale tags (``"en-GB"``) are passed through unchanged; unknown
    short codes fall back to :data:`DEFAULT_SPEECH_LOCALE`.
    """
    value = lang.strip()
    if "-" in value:
        return value
    return _SPEECH_LOCALES.get(value.lower(), DEFAULT_SPEECH_LOCALE)
