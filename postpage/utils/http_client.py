from __future__ import annotations

from urllib.parse import urlparse

import requests


class HTTPClient:
    """HTTP client for outbound calls to the content store and moderation endpoint."""

    # Common cloud metadata endpoints that should be blocked
    BLOCKED_METADATA_HOSTS = [
        '169.254.169.254',  # AWS, Azure, GCP metadata
        'metadata.google.internal',  # GCP metadata
        'metadata.azure.com',  # Azure metadata
    ]

    def __init__(self, allowed_domains=None, timeout=10.0, session=None):
        """Initialize the HTTP client.

        Args:
            allowed_domains (list, optional): List of allowed domains for requests.
                If provided, only these domains (and their subdomains) will be allowed.
            timeout (float): Per-request timeout in seconds.
            session (requests.Session, optional): Session to reuse connections with.
        """
        self.allowed_domains = allowed_domains or []
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get_headers(self, headers=None):
        default_headers = {
            'Accept': 'application/json'
        }
        if headers:
            default_headers.update(headers)
        return default_headers

    def _validate_url(self, url):
        """Validate an outbound URL.

        Raises:
            ValueError: If URL is blocked for security reasons
        """
        parsed = urlparse(url)

        if parsed.scheme not in ('http', 'https'):
            raise ValueError(f"Blocked: Invalid scheme '{parsed.scheme}'. Only HTTP/HTTPS allowed.")

        hostname = parsed.hostname
        if not hostname:
            raise ValueError("Blocked: Invalid URL - no hostname found")

        if hostname.lower() in [h.lower() for h in self.BLOCKED_METADATA_HOSTS]:
            raise ValueError(f"Blocked: Access to metadata endpoint '{hostname}' is not allowed")

        if self.allowed_domains:
            hostname_lower = hostname.lower()
            allowed = any(
                hostname_lower == domain.lower() or
                hostname_lower.endswith('.' + domain.lower())
                for domain in self.allowed_domains
            )
            if not allowed:
                raise ValueError(f"Blocked: Domain '{hostname}' is not in the allowed domains list")

        return True

    def get(self, url, params=None, headers=None, **kwargs):
        """Make a GET request.

        Raises:
            ValueError: If URL fails security validation
            requests.RequestException: On transport failures
        """
        self._validate_url(url)
        kwargs.setdefault('timeout', self.timeout)
        return self.session.get(url, params=params, headers=self._get_headers(headers), **kwargs)

    def post(self, url, headers=None, **kwargs):
        """Make a POST request.

        Raises:
            ValueError: If URL fails security validation
            requests.RequestException: On transport failures
        """
        self._validate_url(url)
        kwargs.setdefault('timeout', self.timeout)
        return self.session.post(url, headers=self._get_headers(headers), **kwargs)
