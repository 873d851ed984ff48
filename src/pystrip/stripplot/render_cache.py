from typing import Any, Callable, Hashable, Optional, Tuple

from loguru import logger


class RenderCache:
    """
    Holds the last rendered geometry and the dataset identity it was built from.

    The identity only changes through ``invalidate``, which the chart calls when
    the scheduler installs a new active dataset. Between invalidations every
    ``draw`` with the same bounds returns the same object without calling the
    producer again.
    """

    def __init__(self, identity: Hashable = None):
        self._identity = identity
        self._tag: Optional[Tuple[Hashable, Hashable]] = None
        self._geometry: Any = None
        # Number of invalidations and producer calls so far
        self.generation = 0
        self.builds = 0

    @property
    def identity(self) -> Hashable:
        """Identity of the dataset the next ``draw`` must match."""
        return self._identity

    def invalidate(self, identity: Hashable) -> None:
        """Switch to a new dataset identity, making the stored geometry stale."""
        self._identity = identity
        self.generation += 1
        logger.debug(f"Render cache invalidated (identity={identity}, generation={self.generation})")

    def clear(self) -> None:
        """Drop the stored geometry without changing the identity."""
        self._tag = None
        self._geometry = None

    def is_valid(self, bounds: Hashable = None) -> bool:
        return self._tag is not None and self._tag == (self._identity, bounds)

    def draw(self, producer: Callable[[], Any], bounds: Hashable = None) -> Any:
        """
        Return cached geometry, rebuilding it only if it is stale.

        Parameters
        ----------
        producer : Callable[[], Any]
            Builds the geometry for the current dataset.
        bounds : Hashable, default=None
            Render size. Geometry built for other bounds is rebuilt.

        Returns
        -------
        Any
            The geometry tagged with the current identity and ``bounds``.
        """
        if self.is_valid(bounds):
            return self._geometry

        geometry = producer()
        self._geometry = geometry
        self._tag = (self._identity, bounds)
        self.builds += 1
        return geometry
