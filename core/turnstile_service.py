"""
Cloudflare Turnstile CAPTCHA Verification Service

Verifies Turnstile tokens from the website contact form against the Cloudflare API.

Documentation: https://developers.cloudflare.com/turnstile/
"""

import requests
import logging
from django.conf import settings

logger = logging.getLogger(__name__)


class TurnstileVerificationError(Exception):
    """Raised when the Turnstile API answers with something other than a verdict."""
    pass


class TurnstileService:
    """
    Service for verifying Cloudflare Turnstile CAPTCHA tokens.

    Settings are read on every call so they can change between requests
    (and under ``override_settings`` in tests).

    Usage:
        service = TurnstileService()
        is_valid = service.verify_token(token, user_ip='192.168.1.1')
    """

    VERIFY_URL = 'https://challenges.cloudflare.com/turnstile/v0/siteverify'

    @property
    def secret_key(self):
        return getattr(settings, 'TURNSTILE_SECRET_KEY', '')

    @property
    def enabled(self):
        return getattr(settings, 'TURNSTILE_ENABLED', True)

    @property
    def timeout(self):
        return getattr(settings, 'TURNSTILE_TIMEOUT', 10)

    def verify_token(self, token: str, user_ip: str = None) -> bool:
        """
        Verify a Turnstile token.

        Args:
            token: The Turnstile response token from the form
            user_ip: Optional caller IP address, forwarded as ``remoteip``

        Returns:
            True if token is valid, False otherwise

        Raises:
            TurnstileVerificationError: If the API returns a non-200 status
                or an unreadable body
        """
        if not self.enabled:
            logger.info("Turnstile verification disabled - accepting all tokens")
            return True

        if not token:
            logger.warning("No Turnstile token provided")
            return False

        if not self.secret_key:
            logger.error("TURNSTILE_SECRET_KEY not configured")
            return False

        payload = {
            'secret': self.secret_key,
            'response': token,
        }
        if user_ip:
            payload['remoteip'] = user_ip

        try:
            response = requests.post(
                self.VERIFY_URL,
                data=payload,
                timeout=self.timeout
            )
        except requests.exceptions.Timeout:
            logger.error("Turnstile verification timeout")
            return False  # Fail closed
        except requests.exceptions.RequestException as e:
            logger.error(f"Turnstile verification network error: {e}")
            return False  # Fail closed

        if response.status_code != 200:
            logger.error(
                f"Turnstile API returned status {response.status_code}: {response.text}"
            )
            raise TurnstileVerificationError(
                f"Turnstile API error: {response.status_code}"
            )

        try:
            result = response.json()
        except ValueError as e:
            raise TurnstileVerificationError(f"Unreadable Turnstile response: {e}") from e

        if result.get('success'):
            logger.info("Turnstile token verified successfully")
            return True

        error_codes = result.get('error-codes', [])
        logger.warning(
            f"Turnstile verification failed for {user_ip or 'unknown ip'}: "
            f"{error_codes} ({self.get_error_message(error_codes)})"
        )
        return False

    def get_error_message(self, error_codes: list) -> str:
        """
        Convert Turnstile error codes to human-readable messages.

        Common error codes:
        - missing-input-secret: Secret key missing
        - invalid-input-secret: Secret key invalid
        - missing-input-response: Token missing
        - invalid-input-response: Token invalid or expired
        - timeout-or-duplicate: Token already used or expired
        """
        error_map = {
            'missing-input-secret': 'Server configuration error',
            'invalid-input-secret': 'Server configuration error',
            'missing-input-response': 'CAPTCHA verification required',
            'invalid-input-response': 'CAPTCHA verification failed',
            'timeout-or-duplicate': 'CAPTCHA expired or already used',
        }

        messages = [error_map.get(code, f'Unknown error: {code}') for code in error_codes]
        return '; '.join(messages)


# Singleton instance
turnstile_service = TurnstileService()
