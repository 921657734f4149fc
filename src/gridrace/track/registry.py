"""
Track registry - In-memory store of built tracks.

Tracks are validated and distance-fielded once, on creation; races only
ever read the stored result.
"""

import logging
from typing import Dict, List, Sequence

from gridrace.errors import TrackNotFound
from gridrace.track.tile import TileProperties
from gridrace.track.track import Track, TrackConfig, build_track


logger = logging.getLogger(__name__)

# Upper bound on list_tracks() page size
MAX_LIMIT = 32


class TrackRegistry:
    """Registry of tracks keyed by sequential integer id.

    Usage:
        registry = TrackRegistry()
        track = registry.add_track("Oval", width, height, grid)
        same = registry.get_track(track.track_id)
    """

    def __init__(self, config: TrackConfig | None = None):
        """Initialize registry.

        Args:
            config: Validation configuration applied to every new track
        """
        self.config = config or TrackConfig()
        self._tracks: Dict[int, Track] = {}
        self._next_id: int = 1

    def __len__(self) -> int:
        return len(self._tracks)

    def __contains__(self, track_id: int) -> bool:
        return track_id in self._tracks

    def add_track(
        self,
        name: str,
        width: int,
        height: int,
        layout: Sequence[Sequence[TileProperties]],
    ) -> Track:
        """Validate, build and store a new track.

        The id counter only advances when the track is accepted.

        Args:
            name: Track name
            width: Declared width in tiles
            height: Declared height in tiles
            layout: Row-major tile properties

        Returns:
            Stored track with its assigned id

        Raises:
            ValidationError: The layout was rejected
        """
        track = build_track(
            layout,
            width,
            height,
            name=name,
            track_id=self._next_id,
            config=self.config,
        )
        self._tracks[track.track_id] = track
        self._next_id += 1

        stats = track.get_stats()
        logger.info(
            "Added track %d %r (%dx%d, finish=%d, walls=%d, sticky=%d, boost=%d)",
            track.track_id, name, width, height,
            stats.finish_tiles, stats.wall_tiles, stats.sticky_tiles, stats.boost_tiles,
        )
        return track

    def get_track(self, track_id: int) -> Track:
        """Get a track by id.

        Raises:
            TrackNotFound: No track with this id
        """
        try:
            return self._tracks[track_id]
        except KeyError:
            raise TrackNotFound(track_id) from None

    def list_tracks(
        self,
        start_after: int | None = None,
        limit: int | None = None,
    ) -> List[Track]:
        """List tracks in id order.

        Args:
            start_after: Only return ids greater than this
            limit: Page size (capped at MAX_LIMIT)

        Returns:
            Page of tracks
        """
        limit = MAX_LIMIT if limit is None else min(limit, MAX_LIMIT)
        ids = sorted(
            track_id for track_id in self._tracks
            if start_after is None or track_id > start_after
        )
        return [self._tracks[track_id] for track_id in ids[:limit]]
