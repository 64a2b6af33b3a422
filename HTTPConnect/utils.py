import base64
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

from .models import Request

# Netscape cookie dates: "Wed, 21-Oct-2015 07:28:00 GMT"
_DASHED_DATE = re.compile(r'(\d{1,2})-([A-Za-z]{3})-(\d{2,4})')


def basic_auth(request: Request, username: str, password: str) -> Request:
  """Add Basic HTTP authentication to a request."""
  credentials = f"{username}:{password}"
  encoded = base64.b64encode(credentials.encode('utf-8')).decode('ascii')
  return request.with_header('Authorization', f"Basic {encoded}")


def parse_http_date(value: str) -> Optional[datetime]:
  """Parse an HTTP/cookie date into an aware UTC datetime, or None if unparsable."""
  if not value:
      return None
  normalized = _DASHED_DATE.sub(r'\1 \2 \3', value.strip())
  try:
      parsed = parsedate_to_datetime(normalized)
  except (TypeError, ValueError, IndexError):
      return None
  if parsed is None:
      return None
  if parsed.tzinfo is None:
      parsed = parsed.replace(tzinfo=timezone.utc)
  return parsed


def format_protocol_version(version: Optional[int]) -> str:
  """Map http.client's integer version (10, 11) to "1.0"/"1.1"."""
  if version == 10:
      return '1.0'
  return '1.1'
