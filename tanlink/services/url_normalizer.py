"""Platform-specific URL normalization for links."""

import re

from tanlink.core.config import get_settings
from tanlink.core.errors import ValidationError
from tanlink.schemas.link import Platform

# Shown when a link has no title of its own
PLATFORM_PLACEHOLDERS: dict[Platform, str] = {
    Platform.INSTAGRAM: "instagram.com/username",
    Platform.GITHUB: "github.com/username",
    Platform.YOUTUBE: "youtube.com/@channel",
    Platform.WHATSAPP: "wa.me/number",
    Platform.TWITTER: "twitter.com/username",
    Platform.FACEBOOK: "facebook.com/username",
    Platform.LINKEDIN: "linkedin.com/in/username",
    Platform.TELEGRAM: "t.me/username",
    Platform.EMAIL: "email@example.com",
    Platform.WEBSITE: "https://your-website.com",
}

# Platforms whose bare input is a username on a single domain
_HANDLE_DOMAINS: dict[Platform, str] = {
    Platform.INSTAGRAM: "instagram.com",
    Platform.TWITTER: "twitter.com",
    Platform.GITHUB: "github.com",
}

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")
_PHONE_NOISE_RE = re.compile(r"[\s\-()+]")

# Optional scheme and subdomain before a known host
_HOST_PREFIX = r"^(https?://)?([a-z0-9-]+\.)*"


def names_host(value: str, *domains: str) -> bool:
    """True when the input is a URL on one of the given hosts."""
    hosts = "|".join(re.escape(domain) for domain in domains)
    return re.match(rf"{_HOST_PREFIX}({hosts})(/|$)", value, re.IGNORECASE) is not None


def display_title(platform: Platform | str, title: str | None) -> str:
    """Title to render for a link, falling back to the platform placeholder."""
    title = (title or "").strip()
    return title or PLATFORM_PLACEHOLDERS[Platform(platform)]


def upgrade_scheme(url: str) -> str:
    """Force https on a URL that already names its host.

    Schemeless input gets `https://`; `http://` becomes `https://`. The
    path is never touched.
    """
    if url.lower().startswith("http://"):
        return "https://" + url[len("http://"):]
    if url.lower().startswith("https://"):
        return url
    return f"https://{url}"


def _normalize_whatsapp(value: str, default_country_code: str) -> str:
    if names_host(value, "wa.me"):
        return upgrade_scheme(value)

    international = value.startswith("+") or value.startswith("00")
    digits = _PHONE_NOISE_RE.sub("", value)
    if digits.startswith("00"):
        digits = digits[2:]
    if not international and default_country_code and not digits.startswith(default_country_code):
        digits = f"{default_country_code}{digits}"
    return f"https://wa.me/{digits}"


def _normalize_linkedin(value: str) -> str:
    if names_host(value, "linkedin.com"):
        return upgrade_scheme(value)
    path = value.lstrip("/")
    if path.startswith("in/"):
        return f"https://linkedin.com/{path}"
    return f"https://linkedin.com/in/{path}"


def _normalize_youtube(value: str) -> str:
    if names_host(value, "youtube.com", "youtu.be"):
        return upgrade_scheme(value)
    if value.startswith("@"):
        return f"https://youtube.com/{value}"
    return f"https://youtube.com/@{value}"


def normalize_url(
    platform: Platform,
    raw_url: str,
    default_country_code: str | None = None,
) -> str:
    """Turn user input into the URL stored for a link.

    Args:
        platform: The link's platform
        raw_url: What the user typed: a URL, a handle, an email or a number
        default_country_code: Prefix for national WhatsApp numbers. Defaults
            to settings.whatsapp_default_country_code.

    Raises:
        ValidationError: if the input is empty after trimming
    """
    value = (raw_url or "").strip()
    if not value:
        raise ValidationError("URL cannot be empty")

    if default_country_code is None:
        default_country_code = get_settings().whatsapp_default_country_code

    if platform == Platform.EMAIL:
        return value if value.startswith("mailto:") else f"mailto:{value}"

    if platform == Platform.WHATSAPP:
        return _normalize_whatsapp(value, default_country_code)

    if platform in _HANDLE_DOMAINS:
        domain = _HANDLE_DOMAINS[platform]
        value = value.replace("@", "", 1)
        if names_host(value, domain):
            return upgrade_scheme(value)
        return f"https://{domain}/{value}"

    if platform == Platform.LINKEDIN:
        return _normalize_linkedin(value)

    if platform == Platform.FACEBOOK:
        if names_host(value, "facebook.com"):
            return upgrade_scheme(value)
        return f"https://facebook.com/{value}"

    if platform == Platform.YOUTUBE:
        return _normalize_youtube(value)

    if platform == Platform.TELEGRAM:
        if names_host(value, "t.me"):
            return upgrade_scheme(value)
        return f"https://t.me/{value.replace('@', '', 1)}"

    # Website: only add a scheme when none is present
    if _SCHEME_RE.match(value):
        return value
    return f"https://{value}"
