import logging
import re
import secrets
import string
from typing import List, Optional, Tuple

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from clicktrack_app.exceptions import InvalidInput, ShortUriUnavailable
from clicktrack_app.models.short_url import ShortUrl
from clicktrack_app.schemas.short_url import ShortUrlCreate


logger = logging.getLogger(__name__)

SHORT_URI_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
SHORT_URI_ALPHABET = string.ascii_lowercase + string.digits


def valid_short_uri_format(short_uri: str) -> bool:
    return bool(SHORT_URI_PATTERN.match(short_uri))


def generate_tracking_id() -> str:
    """32-character hex string, e.g. 00c8328e409c4831e4aba4f65ec3a0c1"""
    return secrets.token_hex(16)


class ShortUrlService:
    """
    Thin short URL registry.

    Creates, looks up and deletes the slug -> (url1, url2) mapping and
    bumps the click_count side counter. Click analytics live in
    ClickTrackingService / StatsService.
    """

    def __init__(self, db: Session, short_uri_length: int = 5, max_retries: int = 10):
        """
        Initialize short URL service.

        Args:
            db: Database session
            short_uri_length: Length of generated short URIs
            max_retries: Attempts at finding a free random short URI
        """
        self.db = db
        self.short_uri_length = short_uri_length
        self.max_retries = max_retries

    def _generate_short_uri(self) -> str:
        """Random lowercase alphanumeric short URI not yet taken"""
        for _ in range(self.max_retries):
            candidate = "".join(secrets.choice(SHORT_URI_ALPHABET) for _ in range(self.short_uri_length))
            if not self.exists(candidate):
                return candidate

        raise ShortUriUnavailable(
            f"Could not generate unique short URI after {self.max_retries} attempts"
        )

    def _duplicate_warnings(self, url1: str, url2: Optional[str], user_id: Optional[int]) -> List[str]:
        """Warn when a destination is already used by another short URL of the same owner"""
        warnings = []
        for label, url in (("URL 1", url1), ("URL 2", url2)):
            if not url:
                continue
            existing = self.db.query(ShortUrl).filter(
                ShortUrl.user_id == user_id,
                or_(ShortUrl.url1 == url, ShortUrl.url2 == url)
            ).first()
            if existing:
                warnings.append(f"{label} ({url}) is already being used in another short link")
        return warnings

    def exists(self, short_uri: str) -> bool:
        return self.db.query(ShortUrl.id).filter(ShortUrl.short_uri == short_uri).first() is not None

    def create_short_url(self, data: ShortUrlCreate) -> Tuple[ShortUrl, List[str]]:
        """
        Create a new short URL.

        A custom short_uri is stripped and lower-cased, then checked for
        format and availability. Otherwise a random one is generated.

        Returns:
            (ShortUrl, warnings) where warnings flags reused destinations

        Raises:
            InvalidInput: If the custom short URI has an invalid format
            ShortUriUnavailable: If the custom short URI is taken
        """
        url1 = str(data.url1).strip()
        url2 = str(data.url2).strip() if data.url2 else None

        if data.short_uri and data.short_uri.strip():
            short_uri = data.short_uri.strip().lower()
            if not valid_short_uri_format(short_uri):
                raise InvalidInput("Short code can only contain letters, numbers, hyphens, and underscores")
            if self.exists(short_uri):
                raise ShortUriUnavailable(
                    f"This short code '{short_uri}' is already taken. Please try another one."
                )
        else:
            short_uri = self._generate_short_uri()

        warnings = self._duplicate_warnings(url1, url2, data.user_id)

        short_url = ShortUrl(
            user_id=data.user_id,
            url1=url1,
            url2=url2,
            short_uri=short_uri,
            tracking_id=generate_tracking_id(),
            click_count=0,
        )
        self.db.add(short_url)
        self.db.commit()
        self.db.refresh(short_url)

        logger.info("Short URL created: %s -> %s", short_uri, url1)
        return short_url, warnings

    def get_by_id(self, short_url_id: int) -> Optional[ShortUrl]:
        return self.db.get(ShortUrl, short_url_id)

    def get_by_short_uri(self, short_uri: str) -> Optional[ShortUrl]:
        return self.db.query(ShortUrl).filter(ShortUrl.short_uri == short_uri.lower()).first()

    def check_availability(self, short_uri: str) -> Tuple[bool, str]:
        """Check whether a custom short URI can be used"""
        short_uri = (short_uri or "").strip().lower()

        if not short_uri:
            return True, ""
        if not valid_short_uri_format(short_uri):
            return False, "Invalid format. Only letters, numbers, hyphens, and underscores allowed."
        if self.exists(short_uri):
            return False, "This short code is already taken. Please try another one."
        return True, "This short code is available! ✓"

    def increment_click_count(self, short_url: ShortUrl) -> None:
        """
        Bump click_count atomically in the database.

        Independent of click event ingestion: this counter and the
        ClickHouse log are only eventually consistent.
        """
        self.db.execute(
            update(ShortUrl)
            .where(ShortUrl.id == short_url.id)
            .values(click_count=ShortUrl.click_count + 1)
        )
        self.db.commit()

    def delete_short_url(self, short_url_id: int) -> bool:
        """
        Delete a short URL from the registry.

        Click events already written to ClickHouse are kept.
        """
        short_url = self.get_by_id(short_url_id)
        if not short_url:
            return False

        self.db.delete(short_url)
        self.db.commit()
        logger.info("Short URL deleted: %s", short_url.short_uri)
        return True
