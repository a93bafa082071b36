"""
Region Directory Module
=======================

Resolves the list of regions to scan, preferring a local cache file over
a ``DescribeRegions`` call.

Cache policy
------------
A readable, well-formed cache file is trusted unconditionally: there is
no TTL. A region enabled after the cache was written stays invisible
until the cache is refreshed with ``resolve_regions(force_refresh=True)``
(``--refresh-regions`` on the command line) or the file is deleted.

Cache file format::

    [
      {"RegionName": "us-east-1", "Endpoint": "ec2.us-east-1.amazonaws.com",
       "OptInStatus": "opt-in-not-required"},
      ...
    ]

Example
-------
>>> from storage_usage.core.provider import StorageProvider
>>> from storage_usage.core.region_cache import RegionDirectory
>>>
>>> directory = RegionDirectory(StorageProvider(), cache_path="regions_cache.json")
>>> regions = directory.resolve_regions()
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

from storage_usage.core.config import DEFAULT_BOOTSTRAP_REGION, DEFAULT_REGION_CACHE_PATH
from storage_usage.core.exceptions import CacheReadError, CacheWriteError

# Module logger
logger = logging.getLogger(__name__)


class RegionDirectory:
    """
    Cached region resolution.

    Parameters
    ----------
    provider : StorageProvider
        Anything with a ``list_regions(bootstrap_region)`` method.
    cache_path : str or Path, default="regions_cache.json"
        Location of the cache file.
    bootstrap_region : str, default="us-west-2"
        Region the discovery call is sent to on a cache miss.

    Attributes
    ----------
    last_source : str or None
        ``"cache"`` or ``"provider"`` after a successful resolution.
    """

    def __init__(
        self,
        provider,
        cache_path: Union[str, Path] = DEFAULT_REGION_CACHE_PATH,
        bootstrap_region: str = DEFAULT_BOOTSTRAP_REGION,
    ) -> None:
        self.provider = provider
        self.cache_path = Path(cache_path)
        self.bootstrap_region = bootstrap_region
        self.last_source = None

    def resolve_regions(self, force_refresh: bool = False) -> List[str]:
        """
        Return the region names to scan.

        Parameters
        ----------
        force_refresh : bool, default=False
            Skip the cache read and ask the provider; the cache is
            rewritten with the fresh list.

        Returns
        -------
        list of str
            Distinct region names, in cache-file or provider order.

        Raises
        ------
        DiscoveryError
            If the cache could not be used and the provider call failed.
        """
        if not force_refresh:
            try:
                regions = self.read_cache()
            except CacheReadError as e:
                logger.debug(f"Region cache miss: {e}")
            else:
                self.last_source = "cache"
                logger.info(f"Loaded {len(regions)} regions from {self.cache_path}")
                return regions

        descriptors = self.provider.list_regions(self.bootstrap_region)

        try:
            self.write_cache(descriptors)
        except CacheWriteError as e:
            logger.warning(f"Failed to write region cache: {e}")

        self.last_source = "provider"
        return list(dict.fromkeys(d["RegionName"] for d in descriptors))

    def refresh(self) -> List[str]:
        """Resolve regions from the provider and rewrite the cache."""
        return self.resolve_regions(force_refresh=True)

    def read_cache(self) -> List[str]:
        """
        Read region names from the cache file.

        Raises
        ------
        CacheReadError
            If the file is missing, unreadable, not JSON, or not a
            non-empty list of descriptors carrying ``RegionName``.
        """
        try:
            with open(self.cache_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            raise CacheReadError("Region cache not found", path=str(self.cache_path))
        except (OSError, ValueError) as e:
            raise CacheReadError(
                f"Region cache unreadable: {e}",
                path=str(self.cache_path),
            )

        if not isinstance(data, list) or not data:
            raise CacheReadError(
                "Region cache is not a non-empty list",
                path=str(self.cache_path),
            )

        regions: List[str] = []
        for entry in data:
            if not isinstance(entry, dict) or not isinstance(entry.get("RegionName"), str):
                raise CacheReadError(
                    "Region cache entry without RegionName",
                    path=str(self.cache_path),
                    details={"entry": repr(entry)[:80]},
                )
            regions.append(entry["RegionName"])
        return list(dict.fromkeys(regions))

    def write_cache(self, descriptors: List[Dict[str, Any]]) -> None:
        """
        Persist region descriptors, replacing any previous cache.

        Raises
        ------
        CacheWriteError
            If the directory or file cannot be written.
        """
        try:
            self.cache_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.cache_path, "w", encoding="utf-8") as f:
                json.dump(descriptors, f, indent=2)
        except (OSError, TypeError) as e:
            raise CacheWriteError(
                f"Cannot write region cache: {e}",
                path=str(self.cache_path),
            )
        logger.debug(f"Wrote {len(descriptors)} regions to {self.cache_path}")

    def invalidate(self) -> bool:
        """
        Delete the cache file.

        Returns
        -------
        bool
            True if a file was removed.
        """
        try:
            self.cache_path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning(f"Failed to delete region cache {self.cache_path}: {e}")
            return False
        logger.info(f"Deleted region cache {self.cache_path}")
        return True

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"RegionDirectory(cache_path='{self.cache_path}', "
            f"bootstrap_region='{self.bootstrap_region}')"
        )
