"""
Caching module for LayerShift.
Caches per-variant summary records so repeated runs over unchanged embedding
files skip the comparison.
"""

import os
import pickle
import hashlib
import logging
from pathlib import Path
from datetime import datetime, timedelta

# Configure logging
log = logging.getLogger("layershift")


class AnalysisCache:
    """Cache manager for variant summary records."""

    def __init__(self, cache_dir="./cache", max_age_hours=24, enabled=True):
        """
        Initialize the cache manager.

        Args:
            cache_dir: Directory to store cache files
            max_age_hours: Maximum age of cache files in hours before invalidation
            enabled: Whether caching is enabled
        """
        self.cache_dir = Path(cache_dir)
        self.max_age = timedelta(hours=max_age_hours)
        self.enabled = enabled

        if self.enabled:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            log.info(f"Cache initialized at {self.cache_dir} (max age: {max_age_hours} hours)")

    def count_entries(self):
        """Count the number of cache entries."""
        if not self.enabled or not self.cache_dir.exists():
            return 0

        return len(list(self.cache_dir.glob('*.cache')))

    def get_total_size(self):
        """Get the total size of all cache entries in MB."""
        if not self.enabled or not self.cache_dir.exists():
            return 0.0

        total_bytes = sum(f.stat().st_size for f in self.cache_dir.glob('*.cache'))
        return total_bytes / (1024 * 1024)

    def count_expired_entries(self):
        """Count the number of expired cache entries."""
        if not self.enabled or not self.cache_dir.exists():
            return 0

        now = datetime.now()
        return sum(
            1 for cache_file in self.cache_dir.glob('*.cache')
            if now - datetime.fromtimestamp(cache_file.stat().st_mtime) > self.max_age
        )

    def _get_cache_key(self, embedding_paths, analysis_type, params=None):
        """
        Generate a cache key from the embedding files a result was derived from.

        The absolute path, size and modification time of every file enter the
        key, so rewriting an embedding invalidates its entries.

        Args:
            embedding_paths: Paths of the embedding files
            analysis_type: Type of analysis (e.g. 'variant_summary')
            params: Additional parameters that affect the analysis

        Returns:
            String cache key
        """
        key_parts = []
        for path in embedding_paths:
            try:
                file_stat = os.stat(path)
                file_size = file_stat.st_size
                file_mtime = file_stat.st_mtime
            except OSError:
                file_size = 0
                file_mtime = 0
            key_parts.extend([os.path.abspath(path), str(file_size), str(file_mtime)])

        key_parts.append(analysis_type)

        if params:
            for k, v in sorted(params.items()):
                key_parts.append(f"{k}:{v}")

        key_string = "|".join(key_parts)
        return hashlib.md5(key_string.encode()).hexdigest()

    def _get_cache_path(self, cache_key, analysis_type):
        """Get the file path for a cache entry."""
        return self.cache_dir / f"{analysis_type}_{cache_key}.cache"

    def get(self, embedding_paths, analysis_type, params=None):
        """
        Retrieve a cached result if available and not expired.

        Returns:
            Cached data if available, None otherwise
        """
        if not self.enabled:
            return None

        cache_key = self._get_cache_key(embedding_paths, analysis_type, params)
        cache_path = self._get_cache_path(cache_key, analysis_type)

        if not cache_path.exists():
            return None

        cache_time = datetime.fromtimestamp(cache_path.stat().st_mtime)
        if datetime.now() - cache_time > self.max_age:
            log.debug(f"Cache expired for {analysis_type} (age: {datetime.now() - cache_time})")
            return None

        try:
            with open(cache_path, 'rb') as f:
                data = pickle.load(f)
        except (pickle.PickleError, EOFError, AttributeError, ImportError) as e:
            log.warning(f"Error reading cache: {e}")
            return None

        log.debug(f"Cache hit for {analysis_type} (key: {cache_key[:8]}...)")
        return data

    def set(self, data, embedding_paths, analysis_type, params=None):
        """
        Store a result in the cache.

        Returns:
            True if successful, False otherwise
        """
        if not self.enabled:
            return False

        cache_key = self._get_cache_key(embedding_paths, analysis_type, params)
        cache_path = self._get_cache_path(cache_key, analysis_type)

        try:
            with open(cache_path, 'wb') as f:
                pickle.dump(data, f)
        except (OSError, pickle.PickleError) as e:
            log.warning(f"Error writing to cache: {e}")
            return False

        log.debug(f"Cached {analysis_type} result (key: {cache_key[:8]}...)")
        return True

    def invalidate(self, analysis_type=None):
        """
        Remove cache entries.

        Args:
            analysis_type: Only remove entries of this type (all entries if None)

        Returns:
            Number of cache entries removed
        """
        if not self.enabled:
            return 0

        pattern = f"{analysis_type}_*.cache" if analysis_type else "*.cache"
        count = 0
        for cache_file in self.cache_dir.glob(pattern):
            cache_file.unlink()
            count += 1

        log.info(f"Cleared {count} cache entries")
        return count

    def clean_expired(self):
        """
        Remove all expired cache entries.

        Returns:
            Number of expired entries removed
        """
        if not self.enabled:
            return 0

        count = 0
        now = datetime.now()

        for cache_file in self.cache_dir.glob("*.cache"):
            cache_time = datetime.fromtimestamp(cache_file.stat().st_mtime)
            if now - cache_time > self.max_age:
                cache_file.unlink()
                count += 1

        if count > 0:
            log.info(f"Cleaned {count} expired cache entries")

        return count

    def get_stats(self):
        """
        Get cache statistics.

        Returns:
            Dictionary with cache statistics
        """
        if not self.enabled:
            return {"enabled": False}

        stats = {
            "enabled": True,
            "cache_dir": str(self.cache_dir),
            "max_age_hours": self.max_age.total_seconds() / 3600,
            "total_entries": 0,
            "total_size_mb": 0,
            "expired_entries": 0,
            "analysis_types": {}
        }

        now = datetime.now()

        for cache_file in self.cache_dir.glob("*.cache"):
            stats["total_entries"] += 1
            stats["total_size_mb"] += cache_file.stat().st_size / (1024 * 1024)

            cache_time = datetime.fromtimestamp(cache_file.stat().st_mtime)
            if now - cache_time > self.max_age:
                stats["expired_entries"] += 1

            analysis_type = cache_file.stem.rsplit('_', 1)[0]
            stats["analysis_types"][analysis_type] = stats["analysis_types"].get(analysis_type, 0) + 1

        stats["total_size_mb"] = round(stats["total_size_mb"], 2)

        return stats
