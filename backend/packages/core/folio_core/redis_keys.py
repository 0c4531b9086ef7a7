"""Redis key templates and TTL constants.

Centralized management of all Redis keys used in the application to prevent
conflicts and make maintenance easier.
"""


class RedisKeys:
    """Redis key templates and helper methods."""

    # ============================================================================
    # Translation Keys
    # ============================================================================

    # Single-flight lock for translating one document into one locale
    # Format: translation_lock:{slug}:{locale}
    @staticmethod
    def translation_lock(slug: str, locale: str) -> str:
        """
        Get translation lock key.

        Serializes concurrent cache misses for the same slug and target
        locale so only one of them calls the translation engine.

        Args:
            slug: Document slug.
            locale: Target locale code.

        Returns:
            Redis key string.
        """
        return f"translation_lock:{slug}:{locale}"
