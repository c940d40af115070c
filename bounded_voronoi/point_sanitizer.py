"""
Filters raw coordinate lists into sets of unique, finite points.

Used for both the Voronoi sites and the vertices of the bound polygon. A pair
is dropped if either coordinate is NaN, infinite or subnormal; the remaining
pairs are de-duplicated by exact value, keeping the first occurrence so that
output order follows input order.
"""
import torch
import structlog

from .geometry_core import DTYPE, as_points_tensor

logger = structlog.get_logger()

# Smallest positive normal float64; anything non-zero below it is subnormal.
_FLOAT64_TINY = torch.finfo(DTYPE).tiny


def valid_coordinate_mask(points: torch.Tensor) -> torch.Tensor:
    """
    Marks the rows of `points` whose coordinates are all finite and not subnormal.

    Args:
        points (torch.Tensor): Tensor of shape (N, 2).

    Returns:
        torch.Tensor: Boolean tensor of shape (N,).
    """
    magnitudes = torch.abs(points)
    subnormal = (magnitudes > 0) & (magnitudes < _FLOAT64_TINY)
    return torch.all(torch.isfinite(points) & ~subnormal, dim=1)


def sanitize_points(raw_points) -> torch.Tensor:
    """
    Drops invalid coordinate pairs and removes exact duplicates (stable).

    Args:
        raw_points: Sequence of (x, y) pairs (lists, tuples, a numpy array or
                    a tensor of shape (N, 2)).

    Returns:
        torch.Tensor: Float64 tensor of shape (M, 2), M <= N, holding the
                      unique valid points in first-seen order. Empty or
                      all-invalid input gives a (0, 2) tensor.

    Raises:
        ValueError: If an entry is not a pair of numbers.
    """
    points = as_points_tensor(raw_points)
    if points.shape[0] == 0:
        return points

    valid = points[valid_coordinate_mask(points)]

    seen = set()
    keep = []
    for i, pair in enumerate(valid.tolist()):
        key = tuple(pair)
        if key in seen:
            continue
        seen.add(key)
        keep.append(i)

    dropped_invalid = points.shape[0] - valid.shape[0]
    dropped_duplicates = valid.shape[0] - len(keep)
    if dropped_invalid or dropped_duplicates:
        logger.debug("Points sanitized", received=points.shape[0], invalid=dropped_invalid,
                     duplicates=dropped_duplicates)

    if not keep:
        return torch.empty((0, 2), dtype=DTYPE)
    return valid[torch.tensor(keep, dtype=torch.long)]
