"""
Request enrichment for click events.

Pure functions that turn raw request metadata (user agent, referrer,
query parameters, client address) into structured click attributes.

User agent classification uses ordered rule tables: each table is
evaluated top-to-bottom and the first matching rule wins. Precedence
(Chrome before Edge, mobile before tablet) lives in the table order.
"""

import re
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, Tuple
from urllib.parse import urlparse

from .models import Location, UserAgentInfo, UtmParams


UNKNOWN = "Unknown"
DEFAULT_DEVICE = "desktop"

UTM_KEYS = ("source", "medium", "campaign", "term", "content")


@dataclass(frozen=True)
class UserAgentRule:
    """One (predicate, outcome) row of a classification table"""

    name: str
    matches: Callable[[str], bool]
    version_pattern: Optional[str] = None
    version_separator: Optional[str] = None

    def version(self, ua: str) -> str:
        if not self.version_pattern:
            return ""
        match = re.search(self.version_pattern, ua)
        if not match:
            return ""
        version = match.group(1)
        if self.version_separator:
            version = version.replace(self.version_separator, ".")
        return version


def _contains(*needles: str) -> Callable[[str], bool]:
    return lambda ua: any(needle in ua for needle in needles)


BROWSER_RULES: Tuple[UserAgentRule, ...] = (
    UserAgentRule("Chrome", lambda ua: "chrome" in ua and "edg" not in ua, r"chrome/([\d.]+)"),
    UserAgentRule("Safari", lambda ua: "safari" in ua and "chrome" not in ua, r"version/([\d.]+)"),
    UserAgentRule("Firefox", _contains("firefox"), r"firefox/([\d.]+)"),
    UserAgentRule("Edge", _contains("edg"), r"edg/([\d.]+)"),
)

OS_RULES: Tuple[UserAgentRule, ...] = (
    UserAgentRule("Windows", _contains("windows"), r"windows nt ([\d.]+)"),
    UserAgentRule("macOS", _contains("mac os x"), r"mac os x ([\d_]+)", "_"),
    UserAgentRule("Android", _contains("android"), r"android ([\d.]+)"),
    UserAgentRule("iOS", _contains("iphone", "ipad"), r"os ([\d_]+)", "_"),
    UserAgentRule("Linux", _contains("linux")),
)

# iphone is checked as mobile before ipad is checked as tablet
DEVICE_RULES: Tuple[UserAgentRule, ...] = (
    UserAgentRule("mobile", _contains("mobile", "android", "iphone")),
    UserAgentRule("tablet", _contains("tablet", "ipad")),
)


def _first_match(rules: Tuple[UserAgentRule, ...], ua: str) -> Optional[UserAgentRule]:
    for rule in rules:
        if rule.matches(ua):
            return rule
    return None


def classify_user_agent(user_agent: Optional[str]) -> UserAgentInfo:
    """
    Classify a User-Agent string into browser, OS and device attributes.

    Browser, OS and device are detected independently of each other.
    Unmatched fields fall back to "Unknown" / "" / "desktop".

    Example:
        >>> classify_user_agent("Mozilla/5.0 (Windows NT 10.0; Win64; x64) Chrome/120.0.0.0")
        UserAgentInfo(browser='Chrome', browser_version='120.0.0.0', os='Windows', ...)
    """
    ua = (user_agent or "").lower()

    browser = _first_match(BROWSER_RULES, ua)
    os_rule = _first_match(OS_RULES, ua)
    device = _first_match(DEVICE_RULES, ua)

    return UserAgentInfo(
        browser=browser.name if browser else UNKNOWN,
        browser_version=browser.version(ua) if browser else "",
        os=os_rule.name if os_rule else UNKNOWN,
        os_version=os_rule.version(ua) if os_rule else "",
        device_type=device.name if device else DEFAULT_DEVICE,
    )


def extract_referrer_domain(referrer: Optional[str]) -> Optional[str]:
    """Return the host of a referrer URL, or None if it can't be parsed"""
    if not referrer or not referrer.strip():
        return None

    try:
        host = urlparse(referrer.strip()).hostname
    except ValueError:
        return None

    return host or None


def extract_utm(params: Mapping[str, str]) -> UtmParams:
    """
    Read the five utm_* query parameters verbatim.

    Missing and empty values both come back as None.
    """
    values = {}
    for key in UTM_KEYS:
        value = params.get(f"utm_{key}")
        values[key] = value if value else None
    return UtmParams(**values)


def client_ip(forwarded_for: Optional[str], peer_host: Optional[str]) -> str:
    """Pick the originating client address, honouring X-Forwarded-For"""
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    return peer_host or ""


def lookup_location(ip_address: str) -> Location:
    """
    Resolve an IP address to a location.

    Placeholder: no geolocation provider is wired in, so every field
    stays empty.
    """
    return Location()
